import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List

from dotenv import load_dotenv

from .assembler import FeedAssembler
from .blockscout import BlockscoutClient
from .classifier import EventClassifier
from .config import Settings, load_settings
from .contracts import ContractResolver
from .errors import FeedError
from .metrics import start_metrics_server
from .registry import AddressRegistry


def setup_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="feed", description="Print the activity feed of an account")
    parser.add_argument("address")
    parser.add_argument("--startblock", type=int, default=0)
    parser.add_argument("--endblock", type=int, default=None)
    kind = parser.add_mutually_exclusive_group()
    kind.add_argument("--token", help="token-scoped feed for this symbol (e.g. cUSD)")
    kind.add_argument("--rewards", action="store_true", help="verification rewards only")
    parser.add_argument("--local-currency", default=None)
    return parser.parse_args(argv)


async def run(settings: Settings, opts: argparse.Namespace) -> List[Dict[str, Any]]:
    client = BlockscoutClient(settings.blockscout_api, settings.http_timeout_ms, settings.fetch_max_attempts)
    resolver = ContractResolver(
        settings.rpc_url,
        settings.registry_address,
        settings.rpc_timeout_ms,
        gold_token_symbol=settings.gold_token_symbol,
        stable_token_symbol=settings.stable_token_symbol,
    )
    registry = AddressRegistry(resolver)
    classifier = EventClassifier(
        registry,
        faucet_address=settings.faucet_address,
        rewards_address=settings.verification_rewards_address,
    )
    assembler = FeedAssembler(client, registry, classifier)

    args: Dict[str, Any] = {"address": opts.address, "startblock": opts.startblock, "endblock": opts.endblock}
    try:
        if opts.rewards:
            events = await assembler.get_feed_rewards(args)
        elif opts.token:
            args["token"] = opts.token
            args["localCurrencyCode"] = opts.local_currency
            events = await assembler.get_token_transactions(args)
        else:
            events = await assembler.get_feed_events(args)
    finally:
        await client.close()
        await resolver.close()
    return [e.as_dict() for e in events]


def main(argv: List[str] | None = None) -> int:
    load_dotenv()
    settings = load_settings()
    setup_logging(settings.log_level)
    opts = parse_args(sys.argv[1:] if argv is None else argv)

    if settings.metrics_enabled:
        start_metrics_server(settings.metrics_port)

    try:
        events = asyncio.run(run(settings, opts))
    except FeedError as e:
        logging.error(f"Feed failed: {e}")
        return 1
    print(json.dumps(events, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
