from typing import NamedTuple, Optional

from .config import DEFAULT_FAUCET_ADDRESS, DEFAULT_VERIFICATION_REWARDS_ADDRESS
from .events import EventType


class Resolution(NamedTuple):
    type: EventType
    address: str  # counterparty


def resolve_transfer_type(
    user_address: str,
    to_address: str,
    from_address: str,
    attestations_address: str,
    escrow_address: str,
    faucet_address: str = DEFAULT_FAUCET_ADDRESS,
    rewards_address: str = DEFAULT_VERIFICATION_REWARDS_ADDRESS,
) -> Optional[Resolution]:
    """Map a single transfer to its event type and counterparty.

    Rules are checked in order and the first match wins, so e.g. a faucet
    grant is never reported as RECEIVED. Returns None when the user is
    neither sender nor receiver.
    """
    user = user_address.lower()
    to = to_address.lower()
    sender = from_address.lower()
    attestations = attestations_address.lower()
    escrow = escrow_address.lower()
    faucet = faucet_address.lower()
    rewards = rewards_address.lower()

    if to == user and sender == faucet:
        return Resolution(EventType.FAUCET, faucet)
    if to == attestations and sender == user:
        return Resolution(EventType.VERIFICATION_FEE, attestations)
    if to == user and sender == rewards:
        return Resolution(EventType.VERIFICATION_REWARD, rewards)
    if to == user and sender == escrow:
        return Resolution(EventType.ESCROW_RECEIVED, sender)
    if to == user:
        return Resolution(EventType.RECEIVED, sender)
    if sender == user and to == escrow:
        return Resolution(EventType.ESCROW_SENT, escrow)
    if sender == user:
        return Resolution(EventType.SENT, to)
    return None
