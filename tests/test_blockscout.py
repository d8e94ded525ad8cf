"""
Explorer client: parameters, retries and empty-result handling.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from feed.blockscout import BlockscoutClient
from feed.errors import ExplorerError

from conftest import VIEWER, make_row


class FakeResponse:
    def __init__(self, status, body=None):
        self.status = status
        self.body = body

    async def json(self, content_type=None):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def get(self, url, params=None):
        self.calls.append((url, params))
        return self.responses.pop(0)


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr("feed.blockscout.asyncio.sleep", AsyncMock())


def client_with(session, attempts=3):
    client = BlockscoutClient("https://explorer.test/api/", max_attempts=attempts)
    client._session = session
    return client


@pytest.mark.asyncio
async def test_passes_args_through_and_parses_rows():
    session = FakeSession(FakeResponse(200, {"status": "1", "message": "OK", "result": [make_row()]}))
    client = client_with(session)
    rows = await client.get_raw_token_transactions({"address": VIEWER, "startblock": 0, "endblock": None, "sort": "desc"})

    assert len(rows) == 1
    assert rows[0].from_address == VIEWER.lower()
    url, params = session.calls[0]
    assert url == "https://explorer.test/api"
    assert params == {
        "address": VIEWER,
        "startblock": "0",
        "sort": "desc",
        "module": "account",
        "action": "tokentx",
    }


@pytest.mark.asyncio
async def test_no_transfers_found_is_empty():
    session = FakeSession(FakeResponse(200, {"status": "0", "message": "No token transfers found", "result": []}))
    assert await client_with(session).get_raw_token_transactions({"address": VIEWER}) == []

    session = FakeSession(FakeResponse(200, {"status": "0", "message": "No token transfers found", "result": None}))
    assert await client_with(session).get_raw_token_transactions({"address": VIEWER}) == []


@pytest.mark.asyncio
async def test_explorer_error_message_raises():
    session = FakeSession(FakeResponse(200, {"status": "0", "message": "Invalid address format", "result": None}))
    with pytest.raises(ExplorerError, match="Invalid address format"):
        await client_with(session).get_raw_token_transactions({"address": "nope"})


@pytest.mark.asyncio
async def test_retries_transient_status(no_sleep):
    session = FakeSession(
        FakeResponse(429),
        FakeResponse(503),
        FakeResponse(200, {"status": "1", "message": "OK", "result": [make_row(), make_row(hash="0x02")]}),
    )
    rows = await client_with(session).get_raw_token_transactions({"address": VIEWER})
    assert [r.hash for r in rows] == ["0x01", "0x02"]
    assert len(session.calls) == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(no_sleep):
    session = FakeSession(FakeResponse(500), FakeResponse(500))
    with pytest.raises(ExplorerError, match="HTTP 500"):
        await client_with(session, attempts=2).get_raw_token_transactions({"address": VIEWER})


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(no_sleep):
    session = FakeSession(FakeResponse(404), FakeResponse(200, {"result": []}))
    with pytest.raises(ExplorerError, match="HTTP 404"):
        await client_with(session).get_raw_token_transactions({"address": VIEWER})
    assert len(session.calls) == 1
