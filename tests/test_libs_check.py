"""Tests for the library version check."""

import asyncio

import pytest
from compatcheck.checks.libs import LibraryVersionCheck
from compatcheck.constants import INLINE_SCRIPT_URL
from compatcheck.libraries import LibraryRegistry, merge
from compatcheck.models import Script, Website

JQUERY_CURRENT = "/*! jQuery v1.11.3 | (c) 2005, 2015 jQuery Foundation */"
JQUERY_OLD = "/*! jQuery v1.4.2 jquery.com */"
DOJO_BANNED = "dojo.version = { major: 1, minor: 7, patch: 0, flag: '' }"

PAGE = """<html>
<head>
<script src="/js/jquery.min.js"></script>
</head>
<body>
<p>content</p>
<script src="/js/dojo.js"></script>
</body>
</html>"""


@pytest.fixture
def registry():
    return LibraryRegistry.merge([
        {"name": "Dojo", "bannedVersions": ["1.7.0"]},
    ])


@pytest.fixture(autouse=True)
def restore_active_registry():
    yield
    merge()


def make_website(*scripts):
    return Website(
        url="https://example.com/",
        original_url="example.com",
        content=PAGE,
        js=tuple(scripts),
    )


class TestLibraryVersionCheck:
    """Test cases for LibraryVersionCheck."""

    @pytest.mark.asyncio
    async def test_no_scripts_pass(self, registry):
        result = await LibraryVersionCheck(registry).check(make_website())

        assert result.test_name == "jslibs"
        assert result.passed is True
        assert result.data == []
        assert result.url == "https://example.com/"

    @pytest.mark.asyncio
    async def test_up_to_date_library_passes(self, registry):
        website = make_website(Script("/js/jquery.min.js", JQUERY_CURRENT))
        result = await LibraryVersionCheck(registry).check(website)
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_banned_version_reported_with_line(self, registry):
        website = make_website(
            Script("/js/jquery.min.js", JQUERY_CURRENT),
            Script("/js/dojo.js", DOJO_BANNED),
        )

        result = await LibraryVersionCheck(registry).check(website)

        assert result.passed is False
        assert result.data.name == "Dojo"
        assert result.data.version == "1.7.0"
        assert result.data.banned_version == "1.7.0"
        assert result.data.url == "/js/dojo.js"
        assert result.data.line_number == 7

    @pytest.mark.asyncio
    async def test_first_violation_wins(self, registry):
        website = make_website(
            Script("/js/jquery.min.js", JQUERY_OLD),
            Script("/js/dojo.js", DOJO_BANNED),
        )

        result = await LibraryVersionCheck(registry).check(website)

        assert result.data.name == "jQuery"
        assert result.data.line_number == 3
        assert result.to_dict()["data"] == {
            "name": "jQuery",
            "version": "1.4.2",
            "minVersion": "1.6.4",
            "needsUpdate": True,
            "url": "/js/jquery.min.js",
            "lineNumber": 3,
        }

    @pytest.mark.asyncio
    async def test_inline_scripts_are_skipped(self, registry):
        website = make_website(Script(INLINE_SCRIPT_URL, JQUERY_OLD))
        result = await LibraryVersionCheck(registry).check(website)
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_skipped_library(self):
        registry = LibraryRegistry.merge([{"name": "jQuery", "skip": True}])
        website = make_website(Script("/js/jquery.min.js", JQUERY_OLD))

        result = await LibraryVersionCheck(registry).check(website)

        assert result.passed is True

    @pytest.mark.asyncio
    async def test_empty_script_content(self, registry):
        website = make_website(Script("/js/jquery.min.js", None))
        result = await LibraryVersionCheck(registry).check(website)
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_script_url_missing_from_markup(self, registry):
        website = make_website(Script("https://cdn.example.net/jquery.js", JQUERY_OLD))
        result = await LibraryVersionCheck(registry).check(website)
        assert result.data.line_number == 1

    @pytest.mark.asyncio
    async def test_uses_active_registry_by_default(self):
        merge([{"name": "jQuery", "minVersion": {"major": "1.", "minor": "0"}}])
        website = make_website(Script("/js/jquery.min.js", JQUERY_OLD))

        result = await LibraryVersionCheck().check(website)

        assert result.passed is True

    @pytest.mark.asyncio
    async def test_checks_run_concurrently(self, registry):
        check = LibraryVersionCheck(registry)
        websites = [
            make_website(Script("/js/jquery.min.js", JQUERY_OLD)),
            make_website(Script("/js/jquery.min.js", JQUERY_CURRENT)),
        ]

        results = await asyncio.gather(*(check.check(w) for w in websites))

        assert [r.passed for r in results] == [False, True]
