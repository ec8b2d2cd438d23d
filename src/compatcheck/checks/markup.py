"""Checks whether the server sends the same markup to a second browser.

The page content fetched by the crawler is compared with a fetch of the same
URL under a second browser identity. Only the number of visible elements per
configured selector is compared. When the counts disagree, the page is fetched
once more under the second identity: if that fetch disagrees with the previous
one too, the page changes on every request (ads, rotating content) and is
reported as transient rather than as a browser-dependent difference.
"""

import asyncio
import gzip
import logging
import zlib
from typing import List, Optional, Sequence, Tuple

from compatcheck.checks.base import BaseCheck
from compatcheck.config import MarkupCheckConfig, load_markup_config
from compatcheck.constants import (
    DEFAULT_CHARSET,
    MARKUP_EXCLUDED_MESSAGE,
    MARKUP_TEST_NAME,
    MARKUP_TRANSIENT_MESSAGE,
)
from compatcheck.exceptions import DecodeError
from compatcheck.fetcher import FetchResponse, HttpFetcher, PageFetcher, build_identity_headers
from compatcheck.models import CheckResult, ElementCheckConfig, ElementResult, Website
from compatcheck.visibility import count_visible_elements, parse_markup

logger = logging.getLogger(__name__)


def is_excluded(site_url: str, exclude_list: Sequence[str]) -> bool:
    """True when the URL contains any of the excluded fragments."""
    return any(fragment in site_url for fragment in exclude_list)


def _charset(response: FetchResponse) -> str:
    content_type = response.header("content-type") or ""
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"\'')
    return DEFAULT_CHARSET


def _to_text(data: bytes, charset: str) -> str:
    try:
        return data.decode(charset, errors="replace")
    except LookupError:
        logger.debug(f"Unknown charset {charset!r}, using {DEFAULT_CHARSET}")
        return data.decode(DEFAULT_CHARSET, errors="replace")


def _inflate_raw(body: bytes) -> bytes:
    return zlib.decompress(body, -zlib.MAX_WBITS)


async def decompress(body: bytes, encoding: str, charset: str = DEFAULT_CHARSET) -> str:
    """
    Decompress a gzip or raw deflate body to text.

    Args:
        body: Compressed body
        encoding: Declared content encoding
        charset: Character set of the decompressed body

    Returns:
        Decoded markup

    Raises:
        DecodeError: If the encoding is unknown or the body is corrupt or empty
    """
    encoding = encoding.strip().lower()

    if encoding not in ("gzip", "deflate"):
        raise DecodeError(f"Unknown content encoding: {encoding}", encoding=encoding)
    if not body:
        raise DecodeError("Error found: Empty body", encoding=encoding)

    if encoding == "gzip":
        try:
            data = await asyncio.to_thread(gzip.decompress, body)
        except (OSError, EOFError, zlib.error) as e:
            raise DecodeError(f"Error found: can't gunzip content {e}", encoding=encoding) from e
    else:
        try:
            data = await asyncio.to_thread(_inflate_raw, body)
        except zlib.error as e:
            raise DecodeError(f"Error found: can't deflate content {e}", encoding=encoding) from e

    return _to_text(data, charset)


async def get_body(response: FetchResponse) -> str:
    """
    Markup of a response, decompressed according to its Content-Encoding.

    Raises:
        DecodeError: If the body cannot be decompressed or is empty
    """
    charset = _charset(response)
    encoding = response.header("content-encoding")

    if encoding:
        return await decompress(response.body, encoding, charset)

    if not response.body:
        raise DecodeError("Error found: Empty body")

    return _to_text(response.body, charset)


def compare_markup(
    primary: str,
    secondary: str,
    elements: Sequence[ElementCheckConfig],
    default_threshold: float,
) -> Tuple[bool, List[ElementResult]]:
    """
    Compare visible element counts of two documents.

    Args:
        primary: First document markup
        secondary: Second document markup
        elements: Selectors to compare, with optional thresholds
        default_threshold: Threshold for elements without their own

    Returns:
        Tuple of (all elements passed, per-element results)
    """
    primary_doc = parse_markup(primary)
    secondary_doc = parse_markup(secondary)
    passed = True

    results = []
    for element in elements:
        threshold = element.threshold if element.threshold is not None else default_threshold
        result = ElementResult(
            element=element.name,
            threshold=threshold,
            primary_count=count_visible_elements(primary_doc, element.name),
            secondary_count=count_visible_elements(secondary_doc, element.name),
            passed=True,
        )
        result.passed = result.ratio >= threshold
        results.append(result)
        passed = passed and result.passed

    return passed, results


class MarkupConsistencyCheck(BaseCheck):
    """Compares the page markup served to two different browsers."""

    test_name = MARKUP_TEST_NAME

    def __init__(
        self,
        config: Optional[MarkupCheckConfig] = None,
        fetcher: Optional[PageFetcher] = None,
    ):
        """Initialize the check.

        Args:
            config: Markup check configuration (loaded from the environment
                when None)
            fetcher: Page fetcher (an HttpFetcher when None)
        """
        self.config = config or load_markup_config()
        self.fetcher = fetcher or HttpFetcher(timeout=self.config.timeout)

    def _compare(self, primary: str, secondary: str) -> Tuple[bool, List[ElementResult]]:
        return compare_markup(
            primary, secondary, self.config.elements, self.config.default_threshold
        )

    async def _fetch_markup(self, url: str) -> str:
        response = await self.fetcher.fetch(url, build_identity_headers(self.config.user_agent))
        if response.status_code >= 400:
            logger.warning(f"{url} returned HTTP {response.status_code}")
        return await get_body(response)

    async def check(self, website: Website) -> CheckResult:
        if is_excluded(website.original_url, self.config.exclude_list):
            logger.info(f"{website.original_url} is excluded from the markup check")
            return CheckResult(
                test_name=self.test_name,
                passed=True,
                excluded=True,
                data=MARKUP_EXCLUDED_MESSAGE,
                url=website.url,
            )

        secondary = await self._fetch_markup(website.url)
        passed, results = self._compare(website.content, secondary)

        if passed:
            return CheckResult(
                test_name=self.test_name, passed=True, data=results, url=website.url
            )

        logger.debug(f"{website.url}: markup differs, fetching again to rule out instability")

        # Same identity again: does the page even agree with itself?
        secondary_retry = await self._fetch_markup(website.url)
        stable, _ = self._compare(secondary, secondary_retry)

        if not stable:
            logger.info(f"{website.url}: markup changes on every request, treating as transient")
            return CheckResult(
                test_name=self.test_name,
                passed=True,
                transient=True,
                data=MARKUP_TRANSIENT_MESSAGE,
                url=website.url,
            )

        logger.info(f"{website.url}: markup differs between browsers")
        return CheckResult(
            test_name=self.test_name, passed=False, data=results, url=website.url
        )
