"""Cross-browser compatibility checks for fetched web pages."""

__version__ = "0.1.0"

from compatcheck.auditor import CompatibilityAuditor
from compatcheck.checks import BaseCheck, LibraryVersionCheck, MarkupConsistencyCheck
from compatcheck.config import MarkupCheckConfig, settings
from compatcheck.exceptions import CompatCheckError, DecodeError, TransportError
from compatcheck.fetcher import FetchResponse, HttpFetcher, build_identity_headers
from compatcheck.libraries import (
    DEFAULT_LIBRARIES,
    LibraryDescriptor,
    LibraryRegistry,
    Signature,
    get_active_registry,
    merge,
    merge_config,
)
from compatcheck.models import (
    CheckResult,
    ElementCheckConfig,
    ElementResult,
    Script,
    VersionInfo,
    Website,
)
from compatcheck.versioning import compare_versions

__all__ = [
    # Checks
    "CompatibilityAuditor",
    "BaseCheck",
    "LibraryVersionCheck",
    "MarkupConsistencyCheck",
    # Configuration
    "MarkupCheckConfig",
    "settings",
    # Errors
    "CompatCheckError",
    "DecodeError",
    "TransportError",
    # Fetching
    "FetchResponse",
    "HttpFetcher",
    "build_identity_headers",
    # Libraries
    "DEFAULT_LIBRARIES",
    "LibraryDescriptor",
    "LibraryRegistry",
    "Signature",
    "get_active_registry",
    "merge",
    "merge_config",
    "compare_versions",
    # Models
    "CheckResult",
    "ElementCheckConfig",
    "ElementResult",
    "Script",
    "VersionInfo",
    "Website",
]
