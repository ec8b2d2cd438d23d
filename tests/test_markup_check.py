"""Tests for the markup consistency check."""

import gzip
import zlib

import pytest
from compatcheck.checks.markup import (
    MarkupConsistencyCheck,
    compare_markup,
    decompress,
    get_body,
    is_excluded,
)
from compatcheck.config import MarkupCheckConfig
from compatcheck.constants import MARKUP_TRANSIENT_MESSAGE
from compatcheck.exceptions import DecodeError, TransportError
from compatcheck.fetcher import FetchResponse
from compatcheck.models import ElementCheckConfig, ElementResult, Website


def divs(count: int) -> str:
    return "<html><body>" + "<div>x</div>" * count + "</body></html>"


def html_response(markup: str) -> FetchResponse:
    return FetchResponse(
        status_code=200,
        headers={"Content-Type": "text/html; charset=utf-8"},
        body=markup.encode("utf-8"),
    )


class FakeFetcher:
    """Returns canned responses in order and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def fetch(self, url, headers):
        self.calls.append((url, dict(headers)))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def config():
    return MarkupCheckConfig(
        default_threshold=0.5,
        elements=[ElementCheckConfig("div")],
        exclude_list=["excluded.example.com"],
        user_agent="SecondBrowser/1.0",
    )


@pytest.fixture
def website():
    return Website(
        url="https://example.com/",
        original_url="example.com",
        content=divs(10),
    )


class TestCompareMarkup:
    """Test cases for compare_markup."""

    def test_identical_markup(self):
        elements = [ElementCheckConfig("div"), ElementCheckConfig("p")]
        passed, results = compare_markup(divs(3), divs(3), elements, 0.9)

        assert passed is True
        assert [r.element for r in results] == ["div", "p"]
        assert all(r.ratio == 1.0 for r in results)

    def test_both_counts_zero_pass(self):
        passed, results = compare_markup(divs(0), divs(0), [ElementCheckConfig("div")], 1.0)
        assert passed is True
        assert results[0].primary_count == results[0].secondary_count == 0

    def test_ratio_below_threshold_fails(self):
        passed, results = compare_markup(divs(10), divs(4), [ElementCheckConfig("div")], 0.5)

        assert passed is False
        assert results[0].primary_count == 10
        assert results[0].secondary_count == 4
        assert results[0].ratio == pytest.approx(0.4)

    def test_element_threshold_overrides_default(self):
        elements = [ElementCheckConfig("div", threshold=0.3)]
        passed, results = compare_markup(divs(10), divs(4), elements, 0.9)

        assert passed is True
        assert results[0].threshold == 0.3

    def test_one_failing_element_fails_comparison(self):
        elements = [ElementCheckConfig("div"), ElementCheckConfig("p")]
        passed, results = compare_markup(
            divs(2) + "<p>a</p>", divs(2) + "<p>a</p>" * 3, elements, 0.5
        )
        assert passed is False
        assert [r.passed for r in results] == [True, False]


class TestGetBody:
    """Test cases for body decoding."""

    @pytest.mark.asyncio
    async def test_plain_body(self):
        assert await get_body(html_response("<p>hi</p>")) == "<p>hi</p>"

    @pytest.mark.asyncio
    async def test_gzip_body(self):
        response = FetchResponse(
            status_code=200,
            headers={"content-encoding": "gzip"},
            body=gzip.compress("<p>héllo</p>".encode("utf-8")),
        )
        assert await get_body(response) == "<p>héllo</p>"

    @pytest.mark.asyncio
    async def test_raw_deflate_body(self):
        compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
        body = compressor.compress(b"<p>deflated</p>") + compressor.flush()
        response = FetchResponse(status_code=200, headers={"Content-Encoding": "deflate"}, body=body)

        assert await get_body(response) == "<p>deflated</p>"

    @pytest.mark.asyncio
    async def test_charset_from_content_type(self):
        response = FetchResponse(
            status_code=200,
            headers={"Content-Type": "text/html; charset=ISO-8859-1"},
            body="<p>café</p>".encode("latin-1"),
        )
        assert await get_body(response) == "<p>café</p>"

    @pytest.mark.asyncio
    async def test_unknown_encoding(self):
        with pytest.raises(DecodeError, match="Unknown content encoding: br"):
            await decompress(b"data", "br")

    @pytest.mark.asyncio
    async def test_corrupt_gzip(self):
        with pytest.raises(DecodeError):
            await decompress(b"not gzip at all", "gzip")

    @pytest.mark.asyncio
    async def test_empty_body(self):
        with pytest.raises(DecodeError, match="Empty body"):
            await get_body(FetchResponse(status_code=200, headers={}, body=b""))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("encoding", ["gzip", "deflate"])
    async def test_empty_compressed_body(self, encoding):
        response = FetchResponse(status_code=200, headers={"Content-Encoding": encoding}, body=b"")

        with pytest.raises(DecodeError, match="Empty body") as exc_info:
            await get_body(response)

        assert exc_info.value.encoding == encoding


class TestMarkupConsistencyCheck:
    """Test cases for MarkupConsistencyCheck."""

    def test_is_excluded(self):
        assert is_excluded("https://news.example.com/a", ["news.example"]) is True
        assert is_excluded("https://example.com/a", ["news.example"]) is False
        assert is_excluded("https://example.com/a", []) is False

    @pytest.mark.asyncio
    async def test_excluded_site_makes_no_request(self, config):
        fetcher = FakeFetcher()
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)
        website = Website(
            url="https://excluded.example.com/",
            original_url="excluded.example.com/",
            content=divs(1),
        )

        result = await check.check(website)

        assert result.passed is True
        assert result.excluded is True
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_identical_markup_passes(self, config, website):
        fetcher = FakeFetcher(html_response(divs(10)))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        result = await check.check(website)

        assert result.test_name == "markup"
        assert result.passed is True
        assert result.excluded is None
        assert len(fetcher.calls) == 1
        assert isinstance(result.data[0], ElementResult)
        assert result.data[0].ratio == 1.0

    @pytest.mark.asyncio
    async def test_secondary_identity_is_used(self, config, website):
        fetcher = FakeFetcher(html_response(divs(10)))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        await check.check(website)

        url, headers = fetcher.calls[0]
        assert url == "https://example.com/"
        assert headers["User-Agent"] == "SecondBrowser/1.0"
        assert headers["Accept-Encoding"] == "gzip,deflate"

    @pytest.mark.asyncio
    async def test_consistent_difference_fails(self, config, website):
        fetcher = FakeFetcher(html_response(divs(4)), html_response(divs(4)))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        result = await check.check(website)

        assert result.passed is False
        assert result.transient is None
        assert len(fetcher.calls) == 2
        assert fetcher.calls[0][1] == fetcher.calls[1][1]
        assert result.data[0].primary_count == 10
        assert result.data[0].secondary_count == 4
        assert result.data[0].passed is False

    @pytest.mark.asyncio
    async def test_unstable_page_is_transient(self, config, website):
        # 4 vs 7 is still within 0.5, so compare with a stricter threshold
        config.default_threshold = 0.9
        fetcher = FakeFetcher(html_response(divs(4)), html_response(divs(7)))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        result = await check.check(website)

        assert result.passed is True
        assert result.transient is True
        assert result.data == MARKUP_TRANSIENT_MESSAGE
        assert len(fetcher.calls) == 2

    @pytest.mark.asyncio
    async def test_transport_error_voids_check(self, config, website):
        fetcher = FakeFetcher(TransportError("connection refused"))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        with pytest.raises(TransportError):
            await check.check(website)

    @pytest.mark.asyncio
    async def test_retry_error_voids_check(self, config, website):
        fetcher = FakeFetcher(html_response(divs(4)), TransportError("timeout"))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        with pytest.raises(TransportError):
            await check.check(website)
        assert len(fetcher.calls) == 2

    @pytest.mark.asyncio
    async def test_empty_secondary_body_voids_check(self, config, website):
        fetcher = FakeFetcher(FetchResponse(status_code=200, headers={}, body=b""))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        with pytest.raises(DecodeError):
            await check.check(website)

    @pytest.mark.asyncio
    async def test_result_dict(self, config, website):
        fetcher = FakeFetcher(html_response(divs(4)), html_response(divs(4)))
        check = MarkupConsistencyCheck(config=config, fetcher=fetcher)

        result = (await check.check(website)).to_dict()

        assert result["testName"] == "markup"
        assert result["passed"] is False
        assert result["data"] == [{
            "element": "div",
            "threshold": 0.5,
            "primaryCount": 10,
            "secondaryCount": 4,
            "passed": False,
        }]
