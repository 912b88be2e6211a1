# backend-services/marketcap-service/services/ticker_cache.py
"""
In-memory ticker list used to answer autocomplete queries without a network round trip.

The cache has a single writer (populate) and many concurrent readers. Contents
are an immutable tuple replaced by one reference assignment, so readers either
see the old list or the new one, never a partial list.

There is no TTL and no invalidation: the list is loaded once at startup (and
optionally on a fixed interval, see app.py). Staleness is accepted for this tool.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from shared.contracts import CacheStatus, TickerRecord

logger = logging.getLogger(__name__)

DEFAULT_CACHE_LIMIT = 1000


class TickerCache:
    def __init__(self, provider, limit: int = DEFAULT_CACHE_LIMIT):
        self._provider = provider
        self._limit = limit
        self._records: Tuple[TickerRecord, ...] = ()
        self._populated_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    def populate(self) -> bool:
        """
        Downloads the most traded tickers and swaps them in.

        Never raises. On failure, or when the provider returns nothing, the
        previous contents are kept and the error is logged.

        Returns:
            bool: True if the contents were replaced.
        """
        logger.info(f"Downloading up to {self._limit} tickers into the local cache...")
        try:
            records = self._provider.list_tickers(limit=self._limit)
        except Exception as e:
            self._last_error = str(e)
            logger.error(f"Failed to populate ticker cache: {e}")
            logger.info("Search will fall back to live provider queries until the cache is populated.")
            return False

        if not records:
            self._last_error = "Quote provider returned an empty ticker list."
            logger.warning("Ticker cache not updated: the quote provider returned no tickers.")
            return False

        self._records = tuple(records[:self._limit])
        self._populated_at = datetime.now(timezone.utc)
        self._last_error = None
        logger.info(f"Ticker cache ready with {len(self._records)} tickers.")
        return True

    def is_ready(self) -> bool:
        return len(self._records) > 0

    def snapshot(self) -> Tuple[TickerRecord, ...]:
        return self._records

    def status(self) -> CacheStatus:
        records = self._records
        return CacheStatus(
            ready=len(records) > 0,
            size=len(records),
            populated_at=self._populated_at,
            last_error=self._last_error,
        )
