import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .comments import format_comment_string
from .config import DEFAULT_FAUCET_ADDRESS, DEFAULT_VERIFICATION_REWARDS_ADDRESS
from .events import (
    EventType,
    ExchangeEvent,
    MoneyAmount,
    RawTransfer,
    TokenExchange,
    TokenTransfer,
    TransferEvent,
    plain,
    to_units,
)
from .registry import AddressRegistry
from .resolver import Resolution, resolve_transfer_type


FeedEvent = Union[ExchangeEvent, TransferEvent]
TokenEvent = Union[TokenExchange, TokenTransfer]

# A transaction paying gas in the stable token logs three stable transfers:
# two fee legs summing to gas_used * gas_price, and the real transfer.
# Rows are indexed after sorting by value descending. First matching pair
# wins; the remaining index is the transfer. No match -> highest value (0).
FEE_PAIR_TABLE: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (0, 2, 1),
    (1, 2, 0),
)
FEE_FALLBACK_INDEX = 0


@dataclass(frozen=True)
class Classification:
    """Outcome for one transaction group: an event, a deliberate skip, or a failure."""

    event: Optional[Union[FeedEvent, TokenEvent]] = None
    error: Optional[str] = None

    @classmethod
    def emitted(cls, event: Union[FeedEvent, TokenEvent]) -> "Classification":
        return cls(event=event)

    @classmethod
    def skip(cls) -> "Classification":
        return cls()

    @classmethod
    def failed(cls, reason: str) -> "Classification":
        return cls(error=reason)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def skipped(self) -> bool:
        return self.event is None and self.error is None


def exchange_legs(rows: Sequence[RawTransfer], user_address: str) -> Tuple[RawTransfer, RawTransfer]:
    """Split a two-row group into (in, out) legs.

    The in leg is the row sent by the user. When neither row is, the first
    row is still taken as the in leg.
    """
    first, second = rows
    user = user_address.lower()
    if first.from_address != user and second.from_address == user:
        return second, first
    return first, second


def select_transfer(rows: Sequence[RawTransfer], stable_token_address: str) -> Optional[RawTransfer]:
    """Pick the row that represents the user's transfer, or None to drop the group."""
    if len(rows) == 1:
        return rows[0]
    if len(rows) != 3:
        return None

    stable = stable_token_address.lower()
    candidates = [r for r in rows if r.contract_address == stable and r.value != 0]
    candidates.sort(key=lambda r: r.value, reverse=True)

    if len(candidates) == 1:
        return candidates[0]
    if len(candidates) != 3:
        return None

    gas_value = candidates[0].gas_cost
    for a, b, transfer in FEE_PAIR_TABLE:
        if candidates[a].value + candidates[b].value == gas_value:
            return candidates[transfer]
    return candidates[FEE_FALLBACK_INDEX]


def _signed(value: int, negative: bool) -> str:
    amount = to_units(value)
    return plain(-amount if negative else amount)


class EventClassifier:
    def __init__(
        self,
        registry: AddressRegistry,
        faucet_address: str = DEFAULT_FAUCET_ADDRESS,
        rewards_address: str = DEFAULT_VERIFICATION_REWARDS_ADDRESS,
        comment_decoder: Callable[[str], str] = format_comment_string,
    ) -> None:
        self.registry = registry
        self.faucet_address = faucet_address.lower()
        self.rewards_address = rewards_address.lower()
        self._decode_comment = comment_decoder

    def _comment(self, row: RawTransfer) -> str:
        if not row.input:
            return ""
        try:
            return self._decode_comment(row.input) or ""
        except Exception as e:
            logging.debug(f"Dropping undecodable comment for {row.hash}: {e}")
            return ""

    def _resolve(self, user: str, row: RawTransfer) -> Optional[Resolution]:
        return resolve_transfer_type(
            user,
            row.to_address,
            row.from_address,
            self.registry.attestation_address(),
            self.registry.escrow_address(),
            self.faucet_address,
            self.rewards_address,
        )

    def _transfer_and_resolution(
        self, rows: Sequence[RawTransfer], user: str
    ) -> Tuple[Optional[RawTransfer], Optional[Resolution]]:
        event = select_transfer(rows, self.registry.stable_token_address())
        if event is None:
            return None, None
        return event, self._resolve(user, event)

    @staticmethod
    def _unclassifiable(user: str, row: RawTransfer) -> Classification:
        return Classification.failed(
            f"{user} is neither sender nor receiver (from={row.from_address} to={row.to_address})"
        )

    def classify_feed_group(
        self, tx_hash: str, rows: Sequence[RawTransfer], user_address: str
    ) -> Classification:
        user = user_address.lower()

        # Exchanges log two transfers, one in each direction
        if len(rows) == 2:
            in_leg, out_leg = exchange_legs(rows, user)
            return Classification.emitted(
                ExchangeEvent(
                    timestamp=in_leg.timestamp,
                    block=in_leg.block_number,
                    in_symbol=self.registry.token_symbol_for(in_leg.contract_address),
                    in_value=to_units(in_leg.value),
                    out_symbol=self.registry.token_symbol_for(out_leg.contract_address),
                    out_value=to_units(out_leg.value),
                    hash=tx_hash,
                )
            )

        event, resolution = self._transfer_and_resolution(rows, user)
        if event is None:
            return Classification.skip()
        if resolution is None:
            return self._unclassifiable(user, event)
        return Classification.emitted(
            TransferEvent(
                type=resolution.type,
                timestamp=event.timestamp,
                block=event.block_number,
                value=to_units(event.value),
                address=resolution.address,
                comment=self._comment(event),
                symbol=self.registry.token_symbol_for(event.contract_address),
                hash=tx_hash,
            )
        )

    def classify_token_group(
        self, tx_hash: str, rows: Sequence[RawTransfer], user_address: str, token: str
    ) -> Classification:
        user = user_address.lower()

        if len(rows) == 2:
            in_leg, out_leg = exchange_legs(rows, user)
            token_leg = next((leg for leg in (in_leg, out_leg) if leg.token_symbol == token), None)
            if token_leg is None:
                return Classification.skip()
            timestamp = in_leg.timestamp * 1000
            return Classification.emitted(
                TokenExchange(
                    timestamp=timestamp,
                    block=in_leg.block_number,
                    amount=MoneyAmount(
                        value=_signed(token_leg.value, token_leg is in_leg),
                        currency_code=token_leg.token_symbol,
                        timestamp=timestamp,
                    ),
                    maker_amount=MoneyAmount(
                        value=plain(to_units(in_leg.value)),
                        currency_code=in_leg.token_symbol,
                        timestamp=timestamp,
                    ),
                    taker_amount=MoneyAmount(
                        value=plain(to_units(out_leg.value)),
                        currency_code=out_leg.token_symbol,
                        timestamp=timestamp,
                    ),
                    hash=tx_hash,
                )
            )

        event, resolution = self._transfer_and_resolution(rows, user)
        if event is None:
            return Classification.skip()
        if resolution is None:
            return self._unclassifiable(user, event)
        timestamp = event.timestamp * 1000
        return Classification.emitted(
            TokenTransfer(
                type=resolution.type,
                timestamp=timestamp,
                block=event.block_number,
                amount=MoneyAmount(
                    value=_signed(event.value, event.from_address == user),
                    currency_code=event.token_symbol,
                    timestamp=timestamp,
                ),
                address=resolution.address,
                comment=self._comment(event),
                hash=tx_hash,
            )
        )

    def reward_events(self, rows: Sequence[RawTransfer]) -> List[TransferEvent]:
        """One VERIFICATION_REWARD per row sent by the rewards address (no grouping)."""
        rewards: List[TransferEvent] = []
        for row in rows:
            if row.from_address != self.rewards_address:
                continue
            rewards.append(
                TransferEvent(
                    type=EventType.VERIFICATION_REWARD,
                    timestamp=row.timestamp,
                    block=row.block_number,
                    value=to_units(row.value),
                    address=self.rewards_address,
                    comment=self._comment(row),
                    symbol=self.registry.token_symbol_for(row.contract_address),
                    hash=row.hash,
                )
            )
        return rewards
