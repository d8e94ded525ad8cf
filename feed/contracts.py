import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from .errors import ContractResolutionError


ZERO_ADDRESS = "0x" + "0" * 40

_GET_ADDRESS_FOR_STRING = function_signature_to_4byte_selector("getAddressForString(string)")


@dataclass
class ContractAddresses:
    token_address_mapping: Dict[str, str]
    attestations_address: Optional[str]
    escrow_address: Optional[str]
    gold_token_address: Optional[str]
    stable_token_address: Optional[str]


class ContractResolver:
    """Resolves core contract addresses from the on-chain Registry via JSON-RPC.

    Each identifier ("Attestations", "Escrow", ...) is looked up with an
    eth_call to Registry.getAddressForString. Unlike the explorer client there
    is no retry: a missing contract means the provider points at the wrong
    network and the request should fail.
    """

    def __init__(
        self,
        rpc_url: str,
        registry_address: str,
        timeout_ms: int = 5000,
        gold_token_symbol: str = "cGLD",
        stable_token_symbol: str = "cUSD",
    ) -> None:
        self.rpc_url = rpc_url
        self.registry_address = registry_address.lower()
        self.gold_token_symbol = gold_token_symbol
        self.stable_token_symbol = stable_token_symbol
        self.timeout = aiohttp.ClientTimeout(total=max(0.2, timeout_ms / 1000.0))
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    async def _get(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            async with self._lock:
                if self._session is None or self._session.closed:
                    self._session = aiohttp.ClientSession(
                        timeout=self.timeout,
                        headers={
                            "content-type": "application/json",
                            "accept": "application/json",
                            "user-agent": "celo-feed/1.0 (+local)"
                        },
                    )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        session = await self._get()
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            async with session.post(self.rpc_url, json=payload) as resp:
                if resp.status != 200:
                    raise ContractResolutionError(f"{method} failed with HTTP {resp.status}")
                body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ContractResolutionError(f"{method} request failed: {e}") from e
        if not isinstance(body, dict) or "result" not in body:
            error = body.get("error") if isinstance(body, dict) else body
            raise ContractResolutionError(f"{method} returned no result: {error}")
        return body["result"]

    @staticmethod
    def encode_lookup(identifier: str) -> str:
        return "0x" + (_GET_ADDRESS_FOR_STRING + encode(["string"], [identifier])).hex()

    @staticmethod
    def decode_address(result: str) -> str:
        raw = bytes.fromhex(result[2:] if result.startswith("0x") else result)
        (address,) = decode(["address"], raw)
        return address.lower()

    async def address_for(self, identifier: str) -> str:
        result = await self._rpc(
            "eth_call",
            [{"to": self.registry_address, "data": self.encode_lookup(identifier)}, "latest"],
        )
        try:
            address = self.decode_address(result)
        except Exception as e:
            raise ContractResolutionError(f"Undecodable registry response for {identifier}: {result!r}") from e
        if address == ZERO_ADDRESS:
            raise ContractResolutionError(f"{identifier} is not registered at {self.registry_address}")
        return address

    async def get_contract_addresses(self) -> ContractAddresses:
        attestations, escrow, gold, stable = await asyncio.gather(
            self.address_for("Attestations"),
            self.address_for("Escrow"),
            self.address_for("GoldToken"),
            self.address_for("StableToken"),
        )
        logging.info(
            f"Resolved contracts attestations={attestations} escrow={escrow} gold={gold} stable={stable}"
        )
        return ContractAddresses(
            token_address_mapping={
                gold: self.gold_token_symbol,
                stable: self.stable_token_symbol,
            },
            attestations_address=attestations,
            escrow_address=escrow,
            gold_token_address=gold,
            stable_token_address=stable,
        )
