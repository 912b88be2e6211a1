# backend-services/marketcap-service/tests/test_comparison_service.py
import pytest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

from services.comparison_service import ComparisonService
from errors import IncompleteDataError, InvalidInputError, NotFoundError, UpstreamUnavailableError
from mock_data_helpers import make_quote


def _provider_with(quotes):
    """Provider double whose get_quote answers from a symbol -> quote/exception mapping."""
    provider = MagicMock()

    def _get_quote(symbol):
        value = quotes[symbol]
        if isinstance(value, Exception):
            raise value
        return value

    provider.get_quote.side_effect = _get_quote
    return provider


@pytest.fixture(params=["sequential", "concurrent"])
def executor(request):
    if request.param == "sequential":
        yield None
    else:
        with ThreadPoolExecutor(max_workers=2) as pool:
            yield pool


class TestCompareArithmetic:
    def test_scenario_implied_shares(self, executor):
        """A: price 10, cap 1000 -> 100 shares. B: cap 500 -> 5.00 per share."""
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=10, market_cap=1000, long_name="Alpha S.A."),
            "BBBB3": make_quote("BBBB3", price=25, market_cap=500, short_name="BETA ON"),
        })

        result = ComparisonService(provider, executor=executor).compare("aaaa3", " bbbb3 ")

        assert result.hypotheticalPriceA == pytest.approx(5.0)
        payload = result.model_dump()
        assert payload["hypotheticalPriceA"] == "5.00"
        assert payload["tickerA"] == "AAAA3"
        assert payload["tickerB"] == "BBBB3"
        assert payload["longNameA"] == "Alpha S.A."
        assert payload["longNameB"] == "BETA ON"
        assert payload["currentPriceA"] == 10
        assert payload["currentPriceB"] == 25
        provider.get_quote.assert_any_call("AAAA3")
        provider.get_quote.assert_any_call("BBBB3")

    @pytest.mark.parametrize("price_a, cap_a, cap_b", [
        (38.12, 4.97e11, 2.63e11),
        (0.57, 1.2e9, 3.3e12),
        (1234.5, 8.0e10, 1.0e6),
    ])
    def test_matches_closed_form(self, price_a, cap_a, cap_b):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=price_a, market_cap=cap_a),
            "BBBB3": make_quote("BBBB3", price=1.0, market_cap=cap_b),
        })

        result = ComparisonService(provider).compare("AAAA3", "BBBB3")

        expected = cap_b * price_a / cap_a
        assert result.hypotheticalPriceA == pytest.approx(expected)
        assert result.model_dump()["hypotheticalPriceA"] == f"{expected:.2f}"

    def test_exact_tie_rounds_half_up(self):
        """A: 1000 shares at 10. B: cap 1125 -> 1.125 per share, shown as 1.13."""
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=10, market_cap=10000),
            "BBBB3": make_quote("BBBB3", price=1, market_cap=1125),
        })
        result = ComparisonService(provider).compare("AAAA3", "BBBB3")
        assert result.hypotheticalPriceA == 1.125
        assert result.model_dump()["hypotheticalPriceA"] == "1.13"

    def test_full_precision_kept_internally(self):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=3, market_cap=1000),
            "BBBB3": make_quote("BBBB3", price=1, market_cap=1000 / 3),
        })
        result = ComparisonService(provider).compare("AAAA3", "BBBB3")
        assert result.hypotheticalPriceA == pytest.approx(1.0)
        assert result.model_dump()["hypotheticalPriceA"] == "1.00"

    def test_repeated_compare_is_identical(self, executor):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=10, market_cap=1000),
            "BBBB3": make_quote("BBBB3", price=2, market_cap=750),
        })
        service = ComparisonService(provider, executor=executor)
        assert service.compare("AAAA3", "BBBB3") == service.compare("AAAA3", "BBBB3")

    def test_name_falls_back_to_symbol(self):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=10, market_cap=1000),
            "BBBB3": make_quote("BBBB3", price=2, market_cap=500),
        })
        result = ComparisonService(provider).compare("AAAA3", "BBBB3")
        assert result.longNameA == "AAAA3"
        assert result.longNameB == "BBBB3"


class TestCompareErrors:
    @pytest.mark.parametrize("ticker_a, ticker_b", [(None, "BBBB3"), ("AAAA3", None), ("", ""), ("  ", "BBBB3")])
    def test_missing_ticker_is_invalid_input(self, ticker_a, ticker_b):
        provider = MagicMock()
        with pytest.raises(InvalidInputError):
            ComparisonService(provider).compare(ticker_a, ticker_b)
        provider.get_quote.assert_not_called()

    @pytest.mark.parametrize("cap_a, cap_b", [(1000, 500), (None, 500), (1000, None), (0, 0)])
    def test_zero_price_is_invalid_input_regardless_of_other_fields(self, cap_a, cap_b):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=0, market_cap=cap_a),
            "BBBB3": make_quote("BBBB3", price=5, market_cap=cap_b),
        })
        with pytest.raises(InvalidInputError) as exc_info:
            ComparisonService(provider).compare("AAAA3", "BBBB3")
        assert "zero" in exc_info.value.message

    @pytest.mark.parametrize("price_a, cap_a, cap_b", [
        (None, 1000, 500),
        (10, None, 500),
        (10, 0, 500),
        (10, 1000, None),
        (10, 1000, 0),
    ])
    def test_missing_or_zero_fields_are_incomplete_data(self, price_a, cap_a, cap_b):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=price_a, market_cap=cap_a),
            "BBBB3": make_quote("BBBB3", price=5, market_cap=cap_b),
        })
        with pytest.raises(IncompleteDataError):
            ComparisonService(provider).compare("AAAA3", "BBBB3")

    def test_missing_price_b_is_not_required(self):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=10, market_cap=1000),
            "BBBB3": make_quote("BBBB3", price=None, market_cap=500),
        })
        result = ComparisonService(provider).compare("AAAA3", "BBBB3")
        assert result.currentPriceB is None
        assert result.model_dump()["hypotheticalPriceA"] == "5.00"

    def test_unresolvable_ticker_is_not_found(self, executor):
        provider = _provider_with({
            "AAAA3": make_quote("AAAA3", price=10, market_cap=1000),
            "ZZZZ9": NotFoundError("Ticker not found at the quote provider: ZZZZ9"),
        })
        with pytest.raises(NotFoundError) as exc_info:
            ComparisonService(provider, executor=executor).compare("AAAA3", "ZZZZ9")
        assert "ZZZZ9" in exc_info.value.message

    def test_error_for_a_is_reported_before_b(self, executor):
        provider = _provider_with({
            "ZZZZ8": NotFoundError("Ticker not found at the quote provider: ZZZZ8"),
            "ZZZZ9": NotFoundError("Ticker not found at the quote provider: ZZZZ9"),
        })
        with pytest.raises(NotFoundError) as exc_info:
            ComparisonService(provider, executor=executor).compare("ZZZZ8", "ZZZZ9")
        assert "ZZZZ8" in exc_info.value.message

    def test_upstream_failure_propagates(self):
        provider = _provider_with({
            "AAAA3": UpstreamUnavailableError("Failed to connect to the quote provider."),
            "BBBB3": make_quote("BBBB3", price=5, market_cap=500),
        })
        with pytest.raises(UpstreamUnavailableError):
            ComparisonService(provider).compare("AAAA3", "BBBB3")
