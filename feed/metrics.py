import threading
import time
from typing import Optional

from prometheus_client import Counter, Histogram, start_http_server


_server_started = False
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9110) -> None:
    global _server_started
    if _server_started:
        return
    with _server_lock:
        if _server_started:
            return
        start_http_server(port)
        _server_started = True


FEED_REQUESTS = Counter(
    "feed_requests_total",
    "Feed requests served",
    ["variant"],
)

RAW_ROWS = Counter(
    "feed_raw_rows_total",
    "Token transfer rows fetched from the explorer",
    ["variant"],
)

EVENTS_EMITTED = Counter(
    "feed_events_emitted_total",
    "Semantic events produced",
    ["variant", "type"],
)

GROUPS_DROPPED = Counter(
    "feed_groups_dropped_total",
    "Transaction groups that produced no event",
    ["variant"],
)

FETCH_MS = Histogram(
    "feed_explorer_fetch_ms",
    "Latency of the explorer token transfer fetch (ms)",
    buckets=(50, 100, 200, 300, 500, 800, 1200, 2000, 3000, 5000, 10000),
)


class FetchTimer:
    """Observes FETCH_MS around a block."""

    def __init__(self) -> None:
        self._start: Optional[float] = None

    def __enter__(self) -> "FetchTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc) -> None:
        if self._start is not None:
            FETCH_MS.observe((time.perf_counter() - self._start) * 1000.0)
