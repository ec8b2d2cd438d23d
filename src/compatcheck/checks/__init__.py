"""Compatibility checks run against a fetched website."""

from compatcheck.checks.base import BaseCheck
from compatcheck.checks.libs import LibraryVersionCheck
from compatcheck.checks.markup import MarkupConsistencyCheck

__all__ = [
    "BaseCheck",
    "LibraryVersionCheck",
    "MarkupConsistencyCheck",
]
