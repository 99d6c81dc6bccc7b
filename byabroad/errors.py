"""Exception hierarchy for the landed-cost engine.

Errors fall into three groups:
- Input errors (malformed URL, empty query) that are rejected immediately.
- Fetch errors raised by the HTTP collaborator. Each carries a ``transient``
  flag so callers can decide whether a retry makes sense; the engine itself
  never retries.
- ``RateUnavailable``, raised when an exchange rate cannot be resolved.
"""


class ByAbroadError(Exception):
    """Base exception for all engine errors."""


class InvalidURL(ByAbroadError):
    """Raised when a URL cannot be parsed or has no host."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL: {url!r}")
        self.url = url


class InvalidQuery(ByAbroadError):
    """Raised when a search query is empty."""


class FetchError(ByAbroadError):
    """Base class for failures reported by the HTTP transport.

    Attributes:
        transient: True if the same request may succeed later.
    """

    transient: bool = False


class Unauthorized(FetchError):
    """The remote service rejected our credentials (HTTP 401)."""


class RateLimited(FetchError):
    """The remote service throttled the request (HTTP 429)."""

    transient = True


class ServerError(FetchError):
    """Unexpected HTTP status from the remote service."""

    def __init__(self, status: int) -> None:
        super().__init__(f"Server error: {status}")
        self.status = status
        self.transient = status >= 500 or status == 0


class NetworkUnavailable(FetchError):
    """Connection could not be established."""

    transient = True


class Timeout(FetchError):
    """Request timed out."""

    transient = True


class NoData(FetchError):
    """Response was empty or lacked the expected field."""


class DecodingError(FetchError):
    """Response body could not be decoded."""


class RateUnavailable(ByAbroadError):
    """Raised when the exchange rate for a currency pair cannot be resolved."""

    def __init__(self, from_currency: str, to_currency: str, cause: Exception | None = None) -> None:
        message = f"Exchange rate {from_currency}/{to_currency} unavailable"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.cause = cause

    @property
    def transient(self) -> bool:
        """Whether the underlying failure is worth retrying."""
        return isinstance(self.cause, FetchError) and self.cause.transient
