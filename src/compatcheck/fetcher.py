"""HTTP fetching for the markup check.

Every request uses a fresh client, so no cookies carry over between fetches.
Bodies are returned exactly as sent by the server; decompression is left to
the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol

import httpx

from compatcheck.constants import DEFAULT_REQUEST_HEADERS, DEFAULT_REQUEST_TIMEOUT_SECONDS
from compatcheck.exceptions import TransportError

logger = logging.getLogger(__name__)


def build_identity_headers(user_agent: str) -> Dict[str, str]:
    """Request headers presenting the fetcher as a given browser.

    Args:
        user_agent: User-Agent string of the browser

    Returns:
        Headers dictionary
    """
    headers = dict(DEFAULT_REQUEST_HEADERS)
    headers["User-Agent"] = user_agent
    return headers


@dataclass
class FetchResponse:
    """Raw response of a page fetch."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


class PageFetcher(Protocol):
    """Anything that can GET a URL under a set of identity headers."""

    async def fetch(self, url: str, headers: Mapping[str, str]) -> FetchResponse:
        ...


class HttpFetcher:
    """Fetches pages with httpx, following redirects."""

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds
            transport: Optional httpx transport (proxies are otherwise taken
                from HTTP_PROXY/HTTPS_PROXY)
        """
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str, headers: Mapping[str, str]) -> FetchResponse:
        """
        GET a URL and return its undecoded body.

        Args:
            url: URL to fetch
            headers: Identity headers for the request

        Returns:
            FetchResponse with the final status, headers and raw body

        Raises:
            TransportError: If the request fails (network, DNS, TLS, timeout)
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url, headers=dict(headers)) as response:
                    body = b"".join([chunk async for chunk in response.aiter_raw()])
                    logger.debug(f"Fetched {url} -> {response.status_code} ({len(body)} bytes)")
                    return FetchResponse(
                        status_code=response.status_code,
                        headers=dict(response.headers),
                        body=body,
                    )
        except httpx.HTTPError as e:
            error_msg = str(e) if str(e) else type(e).__name__
            logger.error(f"Error fetching {url}: {error_msg}")
            raise TransportError(f"Error fetching {url}: {error_msg}", url=url) from e
