import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .errors import ExplorerError
from .events import RawTransfer


MODULES = {
    # See https://blockscout.com/eth/mainnet/api_docs for API endpoints + param list
    "ACCOUNT": "account",
}

MODULE_ACTIONS = {
    "ACCOUNT": {
        "BALANCE": "balance",
        "TX_LIST": "txlist",
        "TOKEN_TX": "tokentx",
    },
}

_RETRY_STATUSES = (429, 500, 502, 503, 504)


class BlockscoutClient:
    def __init__(self, api_url: str, timeout_ms: int = 10000, max_attempts: int = 3) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000.0)
        self.max_attempts = max(1, max_attempts)
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            async with self._lock:
                if self._session is None or self._session.closed:
                    self._session = aiohttp.ClientSession(
                        timeout=self.timeout,
                        headers={
                            "accept": "application/json",
                            "user-agent": "celo-feed/1.0 (+local)"
                        },
                    )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, params: Dict[str, str]) -> Any:
        session = await self._get_session()
        attempts = 0
        last_error = "no attempt made"
        while attempts < self.max_attempts:
            attempts += 1
            try:
                async with session.get(self.api_url, params=params) as resp:
                    if resp.status == 200:
                        return await resp.json(content_type=None)
                    last_error = f"HTTP {resp.status}"
                    # Backoff for transient errors and 429
                    if resp.status in _RETRY_STATUSES:
                        await asyncio.sleep(0.4 * attempts)
                        continue
                    break
            except asyncio.TimeoutError:
                last_error = "timeout"
                await asyncio.sleep(0.2 * attempts)
                continue
            except aiohttp.ClientError as e:
                last_error = str(e)
                await asyncio.sleep(0.2 * attempts)
                continue
        raise ExplorerError(f"Explorer request failed after {attempts} attempt(s): {last_error}")

    async def get_raw_token_transactions(self, args: Dict[str, Any]) -> List[RawTransfer]:
        logging.info(f"Getting token transactions {args}")
        params = {k: str(v) for k, v in args.items() if v is not None}
        params["module"] = MODULES["ACCOUNT"]
        params["action"] = MODULE_ACTIONS["ACCOUNT"]["TOKEN_TX"]

        body = await self._get_json(params)
        if not isinstance(body, dict):
            raise ExplorerError(f"Unexpected explorer payload: {body!r}")
        result = body.get("result")
        if isinstance(result, list):
            return [RawTransfer.from_dict(row) for row in result]
        # status "0" with "No token transfers found" is an empty page, not an error
        message = str(body.get("message") or "")
        if "no " in message.lower() and "found" in message.lower():
            return []
        raise ExplorerError(f"Explorer error: {message or result!r}")
