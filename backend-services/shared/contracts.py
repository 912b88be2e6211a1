# backend-services/shared/contracts.py
"""
This module defines the Pydantic models that serve as the formal data contracts
for the market-cap comparison backend.

They cover both sides of the service: the raw shapes returned by the upstream
quote provider (brapi.dev) and the JSON payloads served to the browser client.
"""

import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def format_two_decimals(value: float) -> str:
    """Two-decimal string with ties rounded away from zero, like JavaScript's toFixed(2)."""
    return str(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# --- Contract 1: TickerRecord ---
class TickerRecord(BaseModel):
    """
    A single entry of the provider's bulk ticker list.
    The provider names the symbol field 'stock'; both spellings are accepted.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra='ignore')

    symbol: str = Field(..., alias='stock', min_length=1)
    name: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None


# --- Contract 2: SearchSuggestion ---
class SearchSuggestion(BaseModel):
    """One autocomplete option, shaped for the client's async select box."""
    value: str
    label: str
    logo: Optional[str] = None
    website: Optional[str] = None


# --- Contract 3: QuoteSnapshot ---
class QuoteSnapshot(BaseModel):
    """
    A minimal projection of the provider's single-ticker quote.
    Every numeric field is optional: the provider returns partial records for
    thinly covered tickers.
    """
    model_config = ConfigDict(extra='ignore')

    symbol: str
    longName: Optional[str] = None
    shortName: Optional[str] = None
    regularMarketPrice: Optional[float] = None
    marketCap: Optional[float] = None
    logo: Optional[str] = None
    website: Optional[str] = None

    @field_validator('regularMarketPrice', 'marketCap', mode='before')
    @classmethod
    def _unparseable_number_to_none(cls, value: Any) -> Optional[float]:
        # The provider sends placeholders such as "N/A" for uncovered fields
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    @property
    def display_name(self) -> str:
        return self.longName or self.shortName or self.symbol


# --- Contract 4: ComparisonResult ---
class ComparisonResult(BaseModel):
    """
    Result of a market-cap substitution between Company A and Company B.

    hypotheticalPriceA keeps full precision in memory and is rendered as a
    2-decimal string on the wire.
    """
    tickerA: str
    tickerB: str
    longNameA: str
    longNameB: str
    hypotheticalPriceA: float
    currentPriceA: Optional[float] = None
    currentPriceB: Optional[float] = None
    logoA: Optional[str] = None
    logoB: Optional[str] = None
    websiteA: Optional[str] = None
    websiteB: Optional[str] = None

    @field_serializer('hypotheticalPriceA')
    def _format_hypothetical_price(self, value: float) -> str:
        return format_two_decimals(value)


# --- Contract 5: CacheStatus ---
class CacheStatus(BaseModel):
    """Observability snapshot of the in-memory ticker cache."""
    ready: bool
    size: int
    populated_at: Optional[datetime] = None
    last_error: Optional[str] = None


# --- Contract 6: ApiError ---
class ApiError(BaseModel):
    """Body of every non-2xx response."""
    error: str
