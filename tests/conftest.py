"""
Shared fixtures: a populated address registry and a raw explorer row factory.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from feed.classifier import EventClassifier
from feed.config import DEFAULT_FAUCET_ADDRESS, DEFAULT_VERIFICATION_REWARDS_ADDRESS
from feed.contracts import ContractAddresses
from feed.events import RawTransfer
from feed.registry import AddressRegistry

VIEWER = "0xAAA"
OTHER = "0xBBB"
EXCHANGE_CONTRACT = "0xCCC"
ATTESTATIONS = "0x000000000000000000000000000000000000a77e"
ESCROW = "0x000000000000000000000000000000000000e5c0"
GOLD = "0x000000000000000000000000000000000000601d"
STABLE = "0x000000000000000000000000000000000000057a"
FAUCET = DEFAULT_FAUCET_ADDRESS
REWARDS = DEFAULT_VERIFICATION_REWARDS_ADDRESS

ONE = 10**18


def contract_addresses() -> ContractAddresses:
    return ContractAddresses(
        token_address_mapping={GOLD: "cGLD", STABLE: "cUSD"},
        attestations_address=ATTESTATIONS,
        escrow_address=ESCROW,
        gold_token_address=GOLD,
        stable_token_address=STABLE,
    )


def address_source() -> AsyncMock:
    source = AsyncMock()
    source.get_contract_addresses.return_value = contract_addresses()
    return source


def make_row(
    *,
    hash: str = "0x01",
    frm: str = VIEWER,
    to: str = OTHER,
    value: int = ONE,
    contract: str = STABLE,
    symbol: str = "cUSD",
    ts: int = 1_600_000_000,
    block: int = 100,
    gas_used: int = 0,
    gas_price: int = 0,
    input: str = "",
) -> dict:
    """Explorer-shaped row (string fields, camelCase keys)."""
    return {
        "hash": hash,
        "from": frm,
        "to": to,
        "contractAddress": contract,
        "value": str(value),
        "tokenSymbol": symbol,
        "tokenName": symbol,
        "tokenDecimal": "18",
        "timeStamp": str(ts),
        "blockNumber": str(block),
        "gasUsed": str(gas_used),
        "gasPrice": str(gas_price),
        "input": input,
        "nonce": "1",
        "confirmations": "10",
        "txreceipt_status": "1",
        "isError": "0",
    }


def transfer(**kwargs) -> RawTransfer:
    return RawTransfer.from_dict(make_row(**kwargs))


@pytest.fixture
def registry() -> AddressRegistry:
    reg = AddressRegistry(address_source())
    asyncio.run(reg.ensure_populated())
    return reg


@pytest.fixture
def classifier(registry) -> EventClassifier:
    return EventClassifier(registry, faucet_address=FAUCET, rewards_address=REWARDS)
