import asyncio
import json
import logging
from enum import Enum
from typing import Dict, Optional, Protocol

from .contracts import ContractAddresses
from .errors import ContractResolutionError, RegistryNotReadyError, UnknownTokenError


class RegistryState(Enum):
    UNINITIALIZED = "uninitialized"
    POPULATING = "populating"
    READY = "ready"


class AddressSource(Protocol):
    async def get_contract_addresses(self) -> ContractAddresses: ...


class AddressRegistry:
    """Well-known contract addresses needed to classify transfers.

    Populated at most once per instance. ``ensure_populated`` is safe to call
    from concurrent feed requests: the first caller resolves while the others
    wait on the lock and then observe the READY state. Fields are assigned
    together after a complete resolution, so readers never see a partial
    registry.
    """

    def __init__(self, source: AddressSource) -> None:
        self._source = source
        self._lock = asyncio.Lock()
        self.state = RegistryState.UNINITIALIZED
        self._token_address_mapping: Optional[Dict[str, str]] = None
        self._attestations_address: Optional[str] = None
        self._escrow_address: Optional[str] = None
        self._gold_token_address: Optional[str] = None
        self._stable_token_address: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.state is RegistryState.READY

    async def ensure_populated(self) -> None:
        if self.ready:
            return
        async with self._lock:
            if self.ready:
                return
            self.state = RegistryState.POPULATING
            try:
                addresses = await self._source.get_contract_addresses()
                self._apply(addresses)
            except BaseException:
                self.state = RegistryState.UNINITIALIZED
                raise
            self.state = RegistryState.READY

    def _apply(self, addresses: ContractAddresses) -> None:
        missing = [
            name
            for name in (
                "token_address_mapping",
                "attestations_address",
                "escrow_address",
                "gold_token_address",
                "stable_token_address",
            )
            if not getattr(addresses, name)
        ]
        if missing:
            raise ContractResolutionError(f"Contract resolution is missing {', '.join(missing)}")
        self._token_address_mapping = {
            address.lower(): symbol for address, symbol in addresses.token_address_mapping.items()
        }
        self._attestations_address = addresses.attestations_address.lower()
        self._escrow_address = addresses.escrow_address.lower()
        self._gold_token_address = addresses.gold_token_address.lower()
        self._stable_token_address = addresses.stable_token_address.lower()

    def token_symbol_for(self, token_address: str) -> str:
        if not self.ready or self._token_address_mapping is None:
            raise RegistryNotReadyError("Cannot find tokenAddressMapping")
        lower = token_address.lower()
        if lower in self._token_address_mapping:
            return self._token_address_mapping[lower]
        logging.info("Token addresses mapping: " + json.dumps(self._token_address_mapping))
        raise UnknownTokenError(lower)

    def _require(self, value: Optional[str], name: str) -> str:
        if not self.ready or not value:
            raise RegistryNotReadyError(f"Cannot find {name} address")
        return value

    def attestation_address(self) -> str:
        return self._require(self._attestations_address, "attestation")

    def escrow_address(self) -> str:
        return self._require(self._escrow_address, "escrow")

    def gold_token_address(self) -> str:
        return self._require(self._gold_token_address, "gold token")

    def stable_token_address(self) -> str:
        return self._require(self._stable_token_address, "stable token")
