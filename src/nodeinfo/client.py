"""Synchronous HTTP client for NodeInfo discovery and retrieval.

The client performs the two-step NodeInfo exchange:
- discover(): GET https://<domain>/.well-known/nodeinfo and pick the
  document URL for the most preferred supported schema (2.1, then 2.0)
- fetch_document(): GET that URL and parse the body into a Document
- fetch(): both steps in sequence

Every call blocks until the request completes or fails. There are no
retries: a failed attempt is raised immediately. Discovery-phase failures
are always DiscoveryError, retrieval failures are FetchError, and an
unparseable document is ParseError.

Example:
    >>> from nodeinfo.client import Client
    >>>
    >>> client = Client(timeout=5)
    >>> info = client.fetch("mastodon.social")
    >>> print(info.software.name)
"""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from nodeinfo import __version__
from nodeinfo.discovery.wellknown import normalize_url, parse_links, select_nodeinfo_href
from nodeinfo.errors import DiscoveryError, FetchError, HTTPError
from nodeinfo.models.constants import (
    CONTENT_TYPE_JSON,
    DEFAULT_FOLLOW_REDIRECTS,
    DEFAULT_TIMEOUT,
    WELL_KNOWN_PATH,
)
from nodeinfo.models.document import Document
from nodeinfo.observability import get_logger

# Module logger
logger = get_logger(__name__)

USER_AGENT = f"nodeinfo-python/{__version__}"

DEFAULT_HEADERS: dict[str, str] = {
    "Accept": CONTENT_TYPE_JSON,
    "User-Agent": USER_AGENT,
}


class Client:
    """Client for discovering and fetching NodeInfo from federated servers.

    Configuration is fixed at construction and applies to every request.

    Attributes:
        timeout: Request timeout in seconds
        follow_redirects: Whether HTTP redirects are followed

    Example:
        >>> client = Client()
        >>> url = client.discover("example.com")
        >>> document = client.fetch_document(url)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        follow_redirects: bool = DEFAULT_FOLLOW_REDIRECTS,
        transport: httpx.BaseTransport | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            timeout: HTTP timeout in seconds (default: 10)
            follow_redirects: Whether to follow HTTP redirects (default: True)
            transport: Optional custom transport (for testing). Must be an
                instance of httpx.BaseTransport (e.g., httpx.MockTransport).
            headers: Extra request headers; override the default Accept and
                User-Agent headers when keys collide.

        Raises:
            ValueError: If timeout is not positive.
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self._transport = transport
        self._headers = {**DEFAULT_HEADERS, **(headers or {})}

    def fetch(self, domain: str) -> Document:
        """Discover and fetch the NodeInfo document for a domain.

        Args:
            domain: The domain to query (e.g., "mastodon.social")

        Returns:
            The parsed Document.

        Raises:
            DiscoveryError: If discovery fails
            FetchError: If retrieving the document fails
            ParseError: If the document cannot be parsed
        """
        url = self.discover(domain)
        return self.fetch_document(url)

    def discover(self, domain: str) -> str:
        """Discover the NodeInfo document URL for a domain.

        Args:
            domain: Bare domain or URL; any scheme and one trailing slash
                are dropped and https is always used.

        Returns:
            The document URL for the most preferred supported schema.

        Raises:
            DiscoveryError: On non-2xx status, transport failure, malformed
                body, missing or invalid links, or no supported schema.
        """
        url = normalize_url(domain, WELL_KNOWN_PATH)
        logger.debug("nodeinfo.client.discover", domain=domain, url=url)

        try:
            response = self._get(url)
        except HTTPError as e:
            raise DiscoveryError(e.message, response=e.response, details=e.details) from e

        links = parse_links(response.content)
        href = select_nodeinfo_href(links)

        logger.debug("nodeinfo.client.discovered", domain=domain, url=href)
        return href

    def fetch_document(self, url: str) -> Document:
        """Fetch and parse the NodeInfo document at ``url``.

        Raises:
            FetchError: On non-2xx status or transport failure
            ParseError: If the body is not a valid NodeInfo document
        """
        logger.debug("nodeinfo.client.fetch_document", url=url)

        try:
            response = self._get(url)
        except HTTPError as e:
            raise FetchError(e.message, response=e.response, details=e.details) from e

        return Document.parse(response.content)

    def _http_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            follow_redirects=self.follow_redirects,
            headers=self._headers,
            transport=self._transport,
        )

    def _get(self, url: str) -> httpx.Response:
        """GET ``url``, raising HTTPError for transport failures and non-2xx status."""
        try:
            with self._http_client() as http:
                response = http.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(
                "nodeinfo.client.request_failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise HTTPError(f"HTTP request failed: {e}", cause=e) from e

        if not response.is_success:
            logger.debug(
                "nodeinfo.client.request_failed",
                url=url,
                status_code=response.status_code,
            )
            raise HTTPError(f"HTTP {response.status_code}", response=response)

        return response
