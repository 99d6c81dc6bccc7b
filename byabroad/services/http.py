"""HTTP transport used by the currency, search and extraction components.

Components depend on the ``Fetcher`` protocol only; ``HttpFetcher`` is the
aiohttp implementation wired in by the container. Transport failures are
mapped onto the ``FetchError`` hierarchy so callers never see aiohttp
exceptions.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

import aiohttp

from ..config import HttpConfig
from ..errors import (
    FetchError,
    NetworkUnavailable,
    RateLimited,
    ServerError,
    Timeout,
    Unauthorized,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class Fetcher(Protocol):
    """Asynchronous byte fetcher."""

    async def fetch(self, url: str, params: Mapping[str, str] | None = None) -> bytes:
        """Fetch ``url`` and return the response body.

        Raises:
            FetchError: On any transport or HTTP status failure.
        """
        ...


def error_for_status(status: int) -> FetchError:
    """Map a non-success HTTP status onto a fetch error."""
    if status == 401:
        return Unauthorized("Unauthorized (401)")
    if status == 429:
        return RateLimited("Rate limited (429)")
    return ServerError(status)


def create_session(config: HttpConfig) -> aiohttp.ClientSession:
    """Create configured aiohttp session for page and API requests.

    Sets up session with connection limits, timeouts, and browser-like headers
    so store pages are served the same markup a browser would get.

    Args:
        config: HTTP transport settings.

    Returns:
        aiohttp.ClientSession: Configured HTTP session for making requests.
    """
    connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
    timeout = aiohttp.ClientTimeout(total=config.timeout)

    headers = {
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,application/json;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "DNT": "1",
        "Connection": "keep-alive",
    }

    return aiohttp.ClientSession(connector=connector, timeout=timeout, headers=headers)


class HttpFetcher:
    """aiohttp-backed ``Fetcher``.

    The session is created on first use and closed by ``close`` or when used
    as an async context manager.
    """

    def __init__(self, config: HttpConfig, session: aiohttp.ClientSession | None = None):
        self.config = config
        self._session = session

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_session(self.config)
        return self._session

    async def fetch(self, url: str, params: Mapping[str, str] | None = None) -> bytes:
        """Fetch a URL and return the raw body.

        Args:
            url: Absolute URL.
            params: Query parameters.

        Returns:
            Response body bytes for 2xx responses.

        Raises:
            Unauthorized: On HTTP 401.
            RateLimited: On HTTP 429.
            ServerError: On any other non-2xx status.
            Timeout: When the request exceeds the configured timeout.
            NetworkUnavailable: When the connection fails.
        """
        try:
            async with self.session.get(url, params=params) as response:
                if not 200 <= response.status < 300:
                    logger.warning(f"HTTP {response.status} from {url}")
                    raise error_for_status(response.status)
                return await response.read()
        except asyncio.TimeoutError as e:
            logger.warning(f"Timeout fetching {url}")
            raise Timeout(f"Timed out fetching {url}") from e
        except aiohttp.ClientError as e:
            logger.warning(f"Network error fetching {url}: {e}")
            raise NetworkUnavailable(str(e)) from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
