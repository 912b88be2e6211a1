# backend-services/marketcap-service/services/comparison_service.py
"""
Market-cap substitution: "what would A's share price be with B's market cap?"

Both quotes are fetched independently (concurrently when an executor is
provided); the arithmetic lives in helper_functions.compute_hypothetical_price.
"""
import logging
from concurrent.futures import Executor
from typing import Optional

from shared.contracts import ComparisonResult, QuoteSnapshot
from errors import IncompleteDataError, InvalidInputError
from helper_functions import compute_hypothetical_price, normalize_ticker

logger = logging.getLogger(__name__)


class ComparisonService:
    def __init__(self, provider, executor: Optional[Executor] = None):
        self._provider = provider
        self._executor = executor

    def _fetch_quotes(self, ticker_a: str, ticker_b: str):
        if self._executor is None:
            return self._provider.get_quote(ticker_a), self._provider.get_quote(ticker_b)

        future_a = self._executor.submit(self._provider.get_quote, ticker_a)
        future_b = self._executor.submit(self._provider.get_quote, ticker_b)
        # A's failure is reported first, matching the order of the request parameters.
        return future_a.result(), future_b.result()

    def compare(self, ticker_a: str, ticker_b: str) -> ComparisonResult:
        """
        Computes A's hypothetical price under B's market capitalization.

        Raises:
            InvalidInputError: a ticker is missing, or A's price is exactly zero.
            NotFoundError: the provider cannot resolve a ticker.
            IncompleteDataError: A's market cap, A's price or B's market cap is missing or zero.
            UpstreamUnavailableError: the provider could not be reached.
        """
        symbol_a = normalize_ticker(ticker_a)
        symbol_b = normalize_ticker(ticker_b)
        if not symbol_a or not symbol_b:
            raise InvalidInputError("Tickers A and B are required.")

        quote_a, quote_b = self._fetch_quotes(symbol_a, symbol_b)

        market_cap_a = quote_a.marketCap
        price_a = quote_a.regularMarketPrice
        market_cap_b = quote_b.marketCap

        if price_a is not None and price_a == 0:
            raise InvalidInputError("Company A's price is zero.")
        if not market_cap_a or not price_a or not market_cap_b:
            logger.warning(
                f"Incomplete quote data for {symbol_a}/{symbol_b}: "
                f"marketCapA={market_cap_a}, priceA={price_a}, marketCapB={market_cap_b}"
            )
            raise IncompleteDataError("Incomplete data: market cap or price not found.")

        hypothetical_price_a = compute_hypothetical_price(market_cap_a, price_a, market_cap_b)
        return _build_result(quote_a, quote_b, hypothetical_price_a)


def _build_result(quote_a: QuoteSnapshot, quote_b: QuoteSnapshot, hypothetical_price_a: float) -> ComparisonResult:
    return ComparisonResult(
        tickerA=quote_a.symbol,
        tickerB=quote_b.symbol,
        longNameA=quote_a.display_name,
        longNameB=quote_b.display_name,
        hypotheticalPriceA=hypothetical_price_a,
        currentPriceA=quote_a.regularMarketPrice,
        currentPriceB=quote_b.regularMarketPrice,
        logoA=quote_a.logo,
        logoB=quote_b.logo,
        websiteA=quote_a.website,
        websiteB=quote_b.website,
    )
