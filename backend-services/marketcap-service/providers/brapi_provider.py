# backend-services/marketcap-service/providers/brapi_provider.py
"""
HTTP client for the brapi.dev quote API.

Consumes two upstream operations:
- GET /quote/list   : ticker list sorted by volume, capped, optionally filtered by search text
- GET /quote/<TICKER>: full quote for a single symbol

Each method:
- Uses a bounded timeout; there are no retries.
- Returns validated contract objects (TickerRecord / QuoteSnapshot).
- Raises NotFoundError or UpstreamUnavailableError instead of leaking requests exceptions.
"""
import os
from urllib.parse import quote
import logging
from typing import Any, Dict, List, Optional
import requests

from shared.contracts import TickerRecord, QuoteSnapshot
from errors import NotFoundError, UpstreamUnavailableError
from helper_functions import normalize_ticker, parse_ticker_records, parse_quote

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv("BRAPI_BASE_URL", "https://brapi.dev/api")
DEFAULT_TIMEOUT = float(os.getenv("BRAPI_TIMEOUT_SECONDS", "8"))


class BrapiClient:
    """Thin wrapper over the brapi.dev REST API."""

    def __init__(self, api_key: Optional[str] = None, base_url: str = DEFAULT_BASE_URL,
                 timeout: float = DEFAULT_TIMEOUT):
        self.api_key = api_key if api_key is not None else os.getenv("BRAPI_API_KEY")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        if not self.api_key:
            logger.warning("BRAPI_API_KEY is not set. Requests will be sent without a token and may be rate limited.")

    def _params(self, **params) -> Dict[str, Any]:
        query = {k: v for k, v in params.items() if v is not None}
        if self.api_key:
            query["token"] = self.api_key
        return query

    def _get_json(self, path: str, params: Dict[str, Any], not_found_message: Optional[str] = None) -> Any:
        """
        Helper to send GET requests and decode the JSON body.
        A 404 raises NotFoundError when `not_found_message` is given; every other
        failure is reported as UpstreamUnavailableError.
        """
        url = f"{self.base_url}{path}"
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout calling quote provider at {url}: {e}")
            raise UpstreamUnavailableError("Timed out connecting to the quote provider.") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Error connecting to quote provider at {url}: {e}")
            raise UpstreamUnavailableError("Failed to connect to the quote provider.") from e

        if resp.status_code == 404 and not_found_message:
            raise NotFoundError(not_found_message)
        if resp.status_code != 200:
            logger.error(f"Quote provider returned {resp.status_code} for {url}: {resp.text[:300]}")
            raise UpstreamUnavailableError(f"Quote provider responded with status {resp.status_code}.")

        try:
            return resp.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from quote provider for {url}: {e}")
            raise UpstreamUnavailableError("Invalid response from the quote provider.") from e

    def list_tickers(self, limit: int = 1000, search: Optional[str] = None) -> List[TickerRecord]:
        """
        Fetches up to `limit` tickers sorted by trading volume, descending.
        With `search`, filtering happens on the provider side.
        """
        params = self._params(
            search=search,
            sortBy="volume",
            sortOrder="desc",
            limit=limit,
        )
        payload = self._get_json("/quote/list", params)
        if not isinstance(payload, dict):
            raise UpstreamUnavailableError("Unexpected ticker list format from the quote provider.")
        records = parse_ticker_records(payload.get("stocks"))
        logger.info(f"Quote provider returned {len(records)} tickers (limit={limit}, search={search!r}).")
        return records[:limit]

    def get_quote(self, ticker: str) -> QuoteSnapshot:
        """
        Fetches the quote for a single ticker.

        Raises:
            NotFoundError: The provider does not know the ticker.
            UpstreamUnavailableError: The provider could not be reached.
        """
        symbol = normalize_ticker(ticker)
        not_found = f"Ticker not found at the quote provider: {symbol}"
        payload = self._get_json(f"/quote/{quote(symbol, safe='')}", self._params(), not_found_message=not_found)

        results = payload.get("results") if isinstance(payload, dict) else None
        if not results:
            raise NotFoundError(not_found)

        snapshot = parse_quote(results[0], symbol)
        if snapshot is None:
            raise NotFoundError(not_found)
        return snapshot
