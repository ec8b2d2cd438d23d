"""Data models for the compatibility checks."""

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from compatcheck.constants import INLINE_SCRIPT_URL


@dataclass(frozen=True)
class Script:
    """A script resource loaded by the page."""

    js_url: str
    content: str = ""

    @property
    def is_inline(self) -> bool:
        return self.js_url == INLINE_SCRIPT_URL


@dataclass(frozen=True)
class Website:
    """A page already fetched by the crawler under the primary identity."""

    url: str  # Resolved, absolute
    original_url: str  # As supplied, used for exclusion matching
    content: str  # Primary identity markup
    js: Tuple[Script, ...] = ()

    def line_number_of(self, text: str) -> int:
        """1-based line of the first occurrence of text in the markup.

        Text that does not occur in the markup is reported on line 1.
        """
        pos = self.content.find(text) if text else -1
        if pos < 0:
            return 1
        return self.content.count("\n", 0, pos) + 1


@dataclass(frozen=True)
class ElementCheckConfig:
    """An element selector compared by the markup check."""

    name: str
    threshold: Optional[float] = None  # Falls back to the default threshold

    @classmethod
    def from_dict(cls, data: dict) -> "ElementCheckConfig":
        threshold = data.get("threshold")
        return cls(
            name=data["name"],
            threshold=float(threshold) if threshold is not None else None,
        )

    def to_dict(self) -> dict:
        result = {"name": self.name}
        if self.threshold is not None:
            result["threshold"] = self.threshold
        return result


@dataclass
class ElementResult:
    """Visible element counts for one selector in two documents."""

    element: str
    threshold: float
    primary_count: int
    secondary_count: int
    passed: bool

    @property
    def ratio(self) -> float:
        """Smaller count over larger count (1.0 when both are zero)."""
        larger = max(self.primary_count, self.secondary_count)
        if larger <= 0:
            return 1.0
        return min(self.primary_count, self.secondary_count) / larger

    def to_dict(self) -> dict:
        return {
            "element": self.element,
            "threshold": self.threshold,
            "primaryCount": self.primary_count,
            "secondaryCount": self.secondary_count,
            "passed": self.passed,
        }


@dataclass
class VersionInfo:
    """Outcome of matching a library signature against a script."""

    name: str
    version: str
    min_version: str
    needs_update: bool
    banned_version: Optional[str] = None
    url: Optional[str] = None
    line_number: Optional[int] = None

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "version": self.version,
            "minVersion": self.min_version,
            "needsUpdate": self.needs_update,
        }
        if self.banned_version is not None:
            result["bannedVersion"] = self.banned_version
        if self.url is not None:
            result["url"] = self.url
        if self.line_number is not None:
            result["lineNumber"] = self.line_number
        return result


@dataclass
class CheckResult:
    """Uniform result record produced by every check."""

    test_name: str
    passed: bool
    data: Any = field(default_factory=list)
    url: Optional[str] = None
    excluded: Optional[bool] = None
    transient: Optional[bool] = None

    def to_dict(self) -> dict:
        """Render the result with the keys expected by report consumers."""
        result = {
            "testName": self.test_name,
            "passed": self.passed,
            "data": _render(self.data),
        }
        if self.url is not None:
            result["url"] = self.url
        if self.excluded is not None:
            result["excluded"] = self.excluded
        if self.transient is not None:
            result["transient"] = self.transient
        return result


def _render(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_render(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value
