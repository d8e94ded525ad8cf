import logging
from typing import Any, Dict, List, Sequence, TypeVar

from .blockscout import BlockscoutClient
from .classifier import Classification, EventClassifier, FeedEvent, TokenEvent
from .errors import UnclassifiableTransferError
from .events import RawTransfer, TransferEvent
from .grouping import group_by_hash
from .metrics import EVENTS_EMITTED, FEED_REQUESTS, GROUPS_DROPPED, RAW_ROWS, FetchTimer
from .registry import AddressRegistry


# Request arguments consumed here rather than forwarded to the explorer
_LOCAL_ARGS = ("token", "localCurrencyCode")

E = TypeVar("E")


def sort_by_timestamp_desc(events: Sequence[E]) -> List[E]:
    # sorted() is stable with reverse=True: equal timestamps keep processing order
    return sorted(events, key=lambda e: e.timestamp, reverse=True)


class FeedAssembler:
    """Fetch -> group -> classify -> sort for a single account.

    LIMITATION: only transfers logged as token transfers are seen. Native
    transfers of the gold token that bypass the GoldToken contract do not
    appear in the explorer's tokentx results and are omitted.
    """

    def __init__(
        self,
        client: BlockscoutClient,
        registry: AddressRegistry,
        classifier: EventClassifier,
    ) -> None:
        self.client = client
        self.registry = registry
        self.classifier = classifier

    async def _fetch(self, variant: str, args: Dict[str, Any]) -> List[RawTransfer]:
        FEED_REQUESTS.labels(variant=variant).inc()
        explorer_args = {k: v for k, v in args.items() if k not in _LOCAL_ARGS}
        with FetchTimer():
            rows = await self.client.get_raw_token_transactions(explorer_args)
        RAW_ROWS.labels(variant=variant).inc(len(rows))
        return rows

    @staticmethod
    def _collect(variant: str, tx_hash: str, result: Classification, events: list) -> None:
        if result.error is not None:
            raise UnclassifiableTransferError(tx_hash, result.error)
        if result.event is None:
            GROUPS_DROPPED.labels(variant=variant).inc()
            return
        EVENTS_EMITTED.labels(variant=variant, type=result.event.type.value).inc()
        events.append(result.event)

    async def get_feed_events(self, args: Dict[str, Any]) -> List[FeedEvent]:
        raw_transactions = await self._fetch("feed", args)
        user_address = args["address"].lower()
        groups = group_by_hash(raw_transactions)

        await self.registry.ensure_populated()
        events: List[FeedEvent] = []
        for tx_hash, transactions in groups.items():
            result = self.classifier.classify_feed_group(tx_hash, transactions, user_address)
            self._collect("feed", tx_hash, result, events)

        logging.info(
            f"[Celo] getFeedEvents address={args['address']} startblock={args.get('startblock')} "
            f"endblock={args.get('endblock')} rawTransactionCount={len(raw_transactions)} eventCount={len(events)}"
        )
        return sort_by_timestamp_desc(events)

    async def get_feed_rewards(self, args: Dict[str, Any]) -> List[TransferEvent]:
        raw_transactions = await self._fetch("rewards", args)
        await self.registry.ensure_populated()
        rewards = self.classifier.reward_events(raw_transactions)
        for reward in rewards:
            EVENTS_EMITTED.labels(variant="rewards", type=reward.type.value).inc()

        logging.info(
            f"[Celo] getFeedRewards address={args['address']} startblock={args.get('startblock')} "
            f"endblock={args.get('endblock')} rawTransactionCount={len(raw_transactions)} rewardsCount={len(rewards)}"
        )
        return sort_by_timestamp_desc(rewards)

    async def get_token_transactions(self, args: Dict[str, Any]) -> List[TokenEvent]:
        raw_transactions = await self._fetch("token", args)
        user_address = args["address"].lower()
        token = args["token"]
        groups = group_by_hash(raw_transactions)

        await self.registry.ensure_populated()
        events: List[TokenEvent] = []
        for tx_hash, transactions in groups.items():
            result = self.classifier.classify_token_group(tx_hash, transactions, user_address, token)
            self._collect("token", tx_hash, result, events)

        logging.info(
            f"[Celo] getTokenTransactions address={args['address']} token={token} "
            f"localCurrencyCode={args.get('localCurrencyCode')} "
            f"rawTransactionCount={len(raw_transactions)} eventCount={len(events)}"
        )
        matching = [e for e in events if e.amount.currency_code == token]
        return sort_by_timestamp_desc(matching)
