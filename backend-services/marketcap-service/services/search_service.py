# backend-services/marketcap-service/services/search_service.py
"""
Autocomplete search over the ticker universe.

Two strategies sit behind one interface:
- CacheSearchStrategy: substring scan of the in-memory ticker cache
- LiveSearchStrategy:  provider-side search, used only while the cache is empty

The strategy is chosen on every call from the cache's readiness.
"""
import logging
from typing import List

from shared.contracts import SearchSuggestion, TickerRecord
from helper_functions import build_suggestions, record_matches

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_SUGGESTIONS = 20


class CacheSearchStrategy:
    """Filters the cached list; preserves cache order (volume, descending)."""

    def __init__(self, cache, max_results: int = MAX_SUGGESTIONS):
        self._cache = cache
        self._max_results = max_results

    def search(self, needle: str) -> List[TickerRecord]:
        matches = []
        for record in self._cache.snapshot():
            if record_matches(record, needle):
                matches.append(record)
                if len(matches) >= self._max_results:
                    break
        return matches


class LiveSearchStrategy:
    """Delegates filtering to the quote provider. Provider errors propagate."""

    def __init__(self, provider, max_results: int = MAX_SUGGESTIONS):
        self._provider = provider
        self._max_results = max_results

    def search(self, needle: str) -> List[TickerRecord]:
        records = self._provider.list_tickers(limit=self._max_results, search=needle)
        return records[:self._max_results]


class SearchService:
    def __init__(self, cache, cache_strategy, live_strategy):
        self._cache = cache
        self._cache_strategy = cache_strategy
        self._live_strategy = live_strategy

    def search(self, query: str) -> List[SearchSuggestion]:
        """
        Returns up to MAX_SUGGESTIONS suggestions for `query`.

        Queries shorter than MIN_QUERY_LENGTH (after trimming) return an empty
        list without touching the cache or the provider.

        Raises:
            UpstreamUnavailableError: only on the live path, when the provider fails.
        """
        needle = (query or "").strip().lower()
        if len(needle) < MIN_QUERY_LENGTH:
            return []

        if self._cache.is_ready():
            records = self._cache_strategy.search(needle)
        else:
            logger.info(f"Ticker cache empty, using live provider search for {needle!r}")
            records = self._live_strategy.search(needle)
        return build_suggestions(records)


def build_search_service(cache, provider) -> SearchService:
    return SearchService(
        cache=cache,
        cache_strategy=CacheSearchStrategy(cache),
        live_strategy=LiveSearchStrategy(provider),
    )
