"""FeedFetcher: Fetch a key's extraction source and turn the body into a value.

One httpx.AsyncClient is shared by all fetcher instances and redirects are
not followed. Each request has a hard deadline.

.. code-block:: python

    fetcher = FeedFetcher(timeout=2.0)
    value = await fetcher.fetch_value(b"https://api.example.com/price", config)
"""

import logging
from typing import ClassVar

import httpx

from .errors import ExtractionFailedError
from .JsonExtractor import extract_value
from .KeyConfig import KeyConfig
from .OracleValue import OracleValue

logger = logging.getLogger(__name__)


class FetcherError(Exception):
    """Raised when an extraction source cannot be read.

    Covers undecodable source URLs, transport failures, timeouts and bodies
    that are not UTF-8.
    """

    pass


class FetcherHTTPError(FetcherError):
    """Raised when the source answers with a status other than 200.

    :ivar status_code: HTTP status code from the failed request.
    """

    def __init__(self, status_code: int, body: str):
        """Initialize the error.

        :param status_code: Status the source answered with.
        :param body: Start of the response body, for diagnostics.
        """
        self.status_code = status_code
        super().__init__(f"Source answered {status_code}: {body}")


class FeedFetcher:
    """Fetches raw response bodies and extracts oracle values from them.

    :cvar DEFAULT_TIMEOUT: Default request deadline in seconds.
    :ivar timeout: Request deadline in seconds.
    :ivar client: Optional client overriding the shared one (used in tests).
    """

    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    DEFAULT_TIMEOUT = 2.0

    def __init__(
        self,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        :param timeout: Request deadline in seconds (default: 2).
        :param client: Optional HTTP client; the shared client is used if None.
        """
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.client = client

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Return the client shared by every fetcher, creating it on first use.

        Redirects are not followed: a source counts only if it answers 200
        itself.
        """
        if cls._shared_client is None or cls._shared_client.is_closed:
            cls._shared_client = httpx.AsyncClient(timeout=cls.DEFAULT_TIMEOUT)
        return cls._shared_client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close the shared client, if one was created."""
        client, cls._shared_client = cls._shared_client, None
        if client is not None and not client.is_closed:
            await client.aclose()

    async def fetch(self, source: bytes) -> str:
        """GET ``source`` and return the body as text.

        :param source: URL stored for the key, as UTF-8 bytes.
        :returns: Response body decoded as UTF-8.
        :raises FetcherHTTPError: On a status other than 200.
        :raises FetcherError: On an invalid URL, network error, timeout or
            non-UTF-8 body.
        """
        try:
            url = source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FetcherError(f"Invalid source URL: {e}") from e

        client = self.client or self.get_shared_client()
        try:
            response = await client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise FetcherError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise FetcherError(f"Request failed: {e}") from e
        except httpx.InvalidURL as e:
            raise FetcherError(f"Invalid source URL: {e}") from e

        if response.status_code != 200:
            logger.debug(f"GET {url} answered {response.status_code}: {response.text[:200]}")
            raise FetcherHTTPError(response.status_code, response.text[:200])

        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FetcherError(f"Response body is not UTF-8: {e}") from e

    async def fetch_value(self, source: bytes, config: KeyConfig) -> OracleValue:
        """Fetch ``source`` and extract the value described by ``config``.

        :param source: URL stored for the key.
        :param config: The key's extraction path and numeric kind.
        :returns: The extracted value.
        :raises FetcherError: If the request fails.
        :raises ExtractionFailedError: If the body holds no usable value.
        """
        body = await self.fetch(source)
        try:
            path = config.path
        except UnicodeDecodeError as e:
            raise ExtractionFailedError(f"Extraction path is not UTF-8: {e}") from e

        value = extract_value(body, path, config.numeric_kind)
        if value is None:
            logger.warning(f"Unable to extract {path!r} from the response: {body[:200]!r}")
            raise ExtractionFailedError(f"No {config.numeric_kind.name} value at {path!r}")
        return value
