# backend-services/marketcap-service/helper_functions.py
import logging
from typing import Any, Iterable, List, Optional
from pydantic import ValidationError
from shared.contracts import TickerRecord, QuoteSnapshot, SearchSuggestion, format_two_decimals

# Use logger
logger = logging.getLogger(__name__)

def normalize_ticker(ticker: Optional[str]) -> str:
    """Strips whitespace and uppercases a ticker symbol. None becomes an empty string."""
    if not ticker:
        return ""
    return str(ticker).strip().upper()

def parse_ticker_records(raw_stocks: Any) -> List[TickerRecord]:
    """
    Validates the provider's 'stocks' array against the TickerRecord contract.

    Malformed entries (no symbol, wrong types) are skipped and logged so that a
    single bad row never discards the whole list.

    Args:
        raw_stocks: The decoded 'stocks' value from a /quote/list response.

    Returns:
        list: Validated records in the provider's original order.
    """
    if not isinstance(raw_stocks, list):
        logger.warning(f"Expected a list of stocks from the provider, got {type(raw_stocks).__name__}")
        return []

    records = []
    skipped = 0
    for item in raw_stocks:
        try:
            records.append(TickerRecord.model_validate(item))
        except ValidationError as e:
            skipped += 1
            logger.debug(f"Skipping malformed ticker record {item!r}: {e}")
    if skipped:
        logger.warning(f"Skipped {skipped} malformed ticker records out of {len(raw_stocks)}.")
    return records

def parse_quote(raw_result: Any, ticker: str) -> Optional[QuoteSnapshot]:
    """
    Validates one entry of a /quote/<ticker> 'results' array.
    Returns None when the entry does not satisfy the QuoteSnapshot contract.
    """
    if not isinstance(raw_result, dict):
        return None
    try:
        return QuoteSnapshot.model_validate(raw_result)
    except ValidationError as e:
        logger.error(f"Quote for {ticker} failed contract validation: {e}")
        return None

def record_matches(record: TickerRecord, needle: str) -> bool:
    """Case-insensitive substring match on the symbol or the name. `needle` must already be lowercased."""
    return needle in record.symbol.lower() or needle in (record.name or "").lower()

def build_suggestion(record: TickerRecord) -> SearchSuggestion:
    """Shapes a ticker record into the '{name} ({ticker})' option used by the client."""
    name = record.name or record.symbol
    return SearchSuggestion(
        value=record.symbol,
        label=f"{name} ({record.symbol})",
        logo=record.logo,
        website=record.website,
    )

def build_suggestions(records: Iterable[TickerRecord]) -> List[SearchSuggestion]:
    return [build_suggestion(record) for record in records]

def compute_hypothetical_price(market_cap_a: float, price_a: float, market_cap_b: float) -> float:
    """
    Price Company A would trade at if it had Company B's market capitalization.

    A's share count is not exposed by the provider, so it is implied from
    market_cap_a / price_a. B's market value is then spread over that count.
    The caller guarantees price_a and market_cap_a are non-zero.
    """
    shares_outstanding_a = market_cap_a / price_a
    return market_cap_b / shares_outstanding_a

def percentage_change(current_price: float, hypothetical_price: float) -> float:
    """
    Display-only derivation: how far the hypothetical price is from the current one, in percent.
    Clients compute the same value from the compare payload; it is never stored.
    """
    if not current_price:
        raise ValueError("current_price must be non-zero")
    return (hypothetical_price / current_price - 1) * 100

def format_price(value: float) -> str:
    """Formats a price with exactly two decimals, as returned to the client."""
    return format_two_decimals(value)
