from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


# Tokens are reported in the smallest unit; 18 places to the native unit
UNIT_DECIMALS = 18


class EventType(Enum):
    EXCHANGE = "EXCHANGE"
    RECEIVED = "RECEIVED"
    SENT = "SENT"
    FAUCET = "FAUCET"
    VERIFICATION_FEE = "VERIFICATION_FEE"
    VERIFICATION_REWARD = "VERIFICATION_REWARD"
    ESCROW_SENT = "ESCROW_SENT"
    ESCROW_RECEIVED = "ESCROW_RECEIVED"


def _to_int(raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def to_units(value: int) -> Decimal:
    """Smallest-unit integer -> native-unit Decimal (exact)."""
    return Decimal(value).scaleb(-UNIT_DECIMALS)


def plain(amount: Decimal) -> str:
    """Render a Decimal without exponent or trailing zeros ("1", "-0.25")."""
    if amount == 0:
        return "0"
    return format(amount.normalize(), "f")


@dataclass(frozen=True)
class RawTransfer:
    hash: str
    from_address: str
    to_address: str
    contract_address: str
    value: int
    token_symbol: str
    timestamp: int  # unix seconds
    block_number: int
    gas_used: int
    gas_price: int
    input: str = ""
    # Receipt metadata, passed through untouched
    token_name: Optional[str] = None
    token_decimal: Optional[str] = None
    nonce: Optional[str] = None
    confirmations: Optional[str] = None
    txreceipt_status: Optional[str] = None
    is_error: Optional[str] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "RawTransfer":
        return cls(
            hash=row.get("hash") or "",
            from_address=(row.get("from") or "").lower(),
            to_address=(row.get("to") or "").lower(),
            contract_address=(row.get("contractAddress") or "").lower(),
            value=_to_int(row.get("value")),
            token_symbol=row.get("tokenSymbol") or "",
            timestamp=_to_int(row.get("timeStamp")),
            block_number=_to_int(row.get("blockNumber")),
            gas_used=_to_int(row.get("gasUsed")),
            gas_price=_to_int(row.get("gasPrice")),
            input=row.get("input") or "",
            token_name=row.get("tokenName"),
            token_decimal=row.get("tokenDecimal"),
            nonce=row.get("nonce"),
            confirmations=row.get("confirmations"),
            txreceipt_status=row.get("txreceipt_status"),
            is_error=row.get("isError"),
        )

    @property
    def gas_cost(self) -> int:
        return self.gas_used * self.gas_price


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return plain(value)
    if isinstance(value, dict):
        return {_camel(k): _jsonable(v) for k, v in value.items()}
    return value


class _Serializable:
    def as_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class ExchangeEvent(_Serializable):
    timestamp: int
    block: int
    in_symbol: str
    in_value: Decimal
    out_symbol: str
    out_value: Decimal
    hash: str
    type: EventType = EventType.EXCHANGE


@dataclass(frozen=True)
class TransferEvent(_Serializable):
    type: EventType
    timestamp: int
    block: int
    value: Decimal
    address: str
    comment: str
    symbol: str
    hash: str


@dataclass(frozen=True)
class MoneyAmount(_Serializable):
    value: str  # signed, relative to the account
    currency_code: str
    timestamp: int  # ms


@dataclass(frozen=True)
class TokenExchange(_Serializable):
    timestamp: int  # ms
    block: int
    amount: MoneyAmount
    maker_amount: MoneyAmount
    taker_amount: MoneyAmount
    hash: str
    type: EventType = EventType.EXCHANGE


@dataclass(frozen=True)
class TokenTransfer(_Serializable):
    type: EventType
    timestamp: int  # ms
    block: int
    amount: MoneyAmount
    address: str
    comment: str
    hash: str
