# src/compatcheck/constants.py
"""Centralized constants for the compatibility checks.

For user-configurable values, see config.py and MarkupCheckConfig.
"""

# =============================================================================
# Browser Identities
# =============================================================================

# Identity used by the markup check for its own requests
SECONDARY_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_REQUEST_HEADERS = {
    "Accept": "text/html, application/xhtml+xml, */*",
    "Accept-Encoding": "gzip,deflate",
    "Accept-Language": "en-US,en;q=0.5",
}

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0

DEFAULT_CHARSET = "utf-8"


# =============================================================================
# Markup Check
# =============================================================================

MARKUP_TEST_NAME = "markup"

# Minimum smaller/larger count ratio for an element to be consistent
DEFAULT_MARKUP_THRESHOLD = 0.9

# Elements compared between the two identities, in report order
DEFAULT_MARKUP_ELEMENTS = [
    {"name": "a"},
    {"name": "div"},
    {"name": "form"},
    {"name": "iframe", "threshold": 0.5},
    {"name": "img"},
    {"name": "input"},
    {"name": "p"},
    {"name": "table"},
]

MARKUP_EXCLUDED_MESSAGE = (
    "The site was excluded for this test. See the 'exclude_list' setting."
)

MARKUP_TRANSIENT_MESSAGE = (
    "Site candidate for exclude list. The HTML markup for this site presents "
    "differences on each request regardless of the user agent."
)


# =============================================================================
# Library Check
# =============================================================================

LIBS_TEST_NAME = "jslibs"

# Script URL used by the crawler for inline <script> blocks
INLINE_SCRIPT_URL = "embed"
