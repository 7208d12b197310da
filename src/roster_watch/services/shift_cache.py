"""Time-boxed cache of shift assignments with stale-serve on failure."""

import logging
import time
from typing import Callable, Optional

from roster_watch.models.shifts import ShiftCacheEntry, ShiftMap, build_shift_map
from roster_watch.services.resilient_fetcher import ResilientFetcher
from roster_watch.utils.csv_table import DEFAULT_HEADER_ROWS, parse_shift_payload

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 60_000


def _now_ms() -> float:
    return time.time() * 1000


class ShiftCache:
    """Serves the shift map, re-fetching only when the entry has expired.

    get_shift_map never raises: a failed refresh falls back to the previous
    map (stale-serve) or to an empty map when nothing was cached yet.
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        url: str,
        ttl_ms: int = DEFAULT_TTL_MS,
        header_rows: int = DEFAULT_HEADER_ROWS,
        headers: Optional[dict[str, str]] = None,
        clock: Callable[[], float] = _now_ms,
    ):
        """Initialize the cache.

        Args:
            fetcher: Fetcher used for the shifts endpoint
            url: Shifts endpoint URL (CSV or JSON records)
            ttl_ms: Freshness window in milliseconds
            header_rows: Banner rows skipped in CSV mode
            headers: Extra request headers (e.g. bearer token)
            clock: Wall clock in epoch milliseconds
        """
        self.fetcher = fetcher
        self.url = url
        self.ttl_ms = ttl_ms
        self.header_rows = header_rows
        self.headers = headers
        self._clock = clock
        self.entry = ShiftCacheEntry()
        self.serving_stale = False
        self.last_error: str | None = None

    def is_fresh(self) -> bool:
        return self.entry.is_fresh(self._clock(), self.ttl_ms)

    def invalidate(self) -> None:
        """Expire the entry, keeping its data for stale-serve."""
        if self.entry.data is not None:
            self.entry = ShiftCacheEntry(data=self.entry.data, fetched_at_ms=0.0)

    async def get_shift_map(self) -> ShiftMap:
        """Current shift map; fresh, stale or empty, but always usable."""
        if self.is_fresh():
            logger.debug("Serving cached shift data")
            return self.entry.data

        try:
            response = await self.fetcher.fetch(self.url, headers=self.headers, label="shifts")
            assignments = parse_shift_payload(
                response.text,
                self.header_rows,
                content_type=response.headers.get("content-type"),
            )
            shift_map = build_shift_map(assignments)
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            if self.entry.data is not None:
                self.serving_stale = True
                logger.warning(f"Failed to load shift data, serving stale cache: {self.last_error}")
                return self.entry.data
            logger.error(f"Failed to load shift data, no cache to fall back on: {self.last_error}")
            return {}

        self.entry = ShiftCacheEntry(data=shift_map, fetched_at_ms=self._clock())
        self.serving_stale = False
        self.last_error = None
        logger.info(f"Loaded {len(shift_map)} shift assignments")
        return shift_map
