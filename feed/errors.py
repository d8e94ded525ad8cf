from typing import Optional


class FeedError(Exception):
    """Base class for every failure surfaced by a feed request."""


class RegistryNotReadyError(FeedError):
    pass


class ContractResolutionError(FeedError):
    pass


class UnknownTokenError(FeedError):
    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            f"No token corresponding to {address}. Check web3 provider is for correct network."
        )


class UnclassifiableTransferError(FeedError):
    def __init__(self, tx_hash: str, reason: Optional[str] = None) -> None:
        self.tx_hash = tx_hash
        self.reason = reason or "no valid event type found"
        super().__init__(f"Cannot classify transaction {tx_hash}: {self.reason}")


class ExplorerError(FeedError):
    pass
