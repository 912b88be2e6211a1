# backend-services/marketcap-service/errors.py
"""
Exception taxonomy for the marketcap-service.

Every exception carries the HTTP status it maps to by default and a short,
human-readable message that is safe to return to the client verbatim.
"""


class MarketCapServiceError(Exception):
    """Base class for all errors the HTTP layer knows how to map."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(MarketCapServiceError):
    """Missing or invalid request parameters (including a zero price for Company A)."""
    status_code = 400


class NotFoundError(MarketCapServiceError):
    """The quote provider could not resolve the ticker."""
    status_code = 404


class IncompleteDataError(MarketCapServiceError):
    """The ticker resolves but the quote lacks price or market cap."""
    status_code = 404


class UpstreamUnavailableError(MarketCapServiceError):
    """The quote provider is unreachable, timed out, or answered with an error."""
    status_code = 503


class InternalError(MarketCapServiceError):
    """Anything unanticipated."""
    status_code = 500
