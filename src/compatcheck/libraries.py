"""Signatures of common JavaScript libraries and the versions they need.

Each library is a data record: a minimum version, optional banned versions and
an extraction strategy selected by name. Most libraries use the ``regex``
strategy (ordered signatures, optional substring guard); jQuery has a bespoke
rule. Libraries supplied through external configuration that are not built in
are recognized with a single ``match`` regex whose first group is the
version.
"""

import json
import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from compatcheck.config import settings
from compatcheck.models import VersionInfo
from compatcheck.versioning import is_older, normalize_patch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signature:
    """A regex whose groups make up a version string.

    Groups are joined with "." unless a template is given, in which case the
    groups are substituted positionally ("1.{0}.0").
    """

    pattern: str
    template: Optional[str] = None
    flags: int = re.MULTILINE

    def search(self, text: str) -> Optional[str]:
        match = re.search(self.pattern, text, self.flags)
        if not match:
            return None
        groups = [group for group in match.groups() if group is not None]
        if self.template is not None:
            return self.template.format(*groups)
        return ".".join(groups)


@dataclass(frozen=True)
class LibraryDescriptor:
    """A library the check knows how to recognize."""

    name: str
    min_version: Tuple[str, str]  # (major, minor), e.g. ("1.6.", "4")
    banned_versions: Tuple[str, ...] = ()
    patch_optional: bool = False
    skip: bool = False
    strategy: str = "regex"
    signatures: Tuple[Signature, ...] = ()
    requires: Optional[str] = None  # Substring that must appear before matching

    @property
    def min_version_string(self) -> str:
        major, minor = self.min_version
        return (major + minor).rstrip(".")

    def extract(self, script_text: str) -> Optional[str]:
        """Return the version found in the script text, or None."""
        try:
            rule = STRATEGIES[self.strategy]
        except KeyError:
            raise ValueError(f"Unknown extraction strategy for {self.name}: {self.strategy}")
        return rule(self, script_text)

    def check(self, script_text: str) -> Optional[VersionInfo]:
        """Extract and check the version of this library in a script."""
        version = self.extract(script_text)
        if not version:
            return None
        return check_version(self, version)


def check_version(library: LibraryDescriptor, version: str) -> VersionInfo:
    """Compare an extracted version with the library's requirements.

    Args:
        library: Descriptor of the matched library
        version: Version string extracted from the script

    Returns:
        VersionInfo with needs_update set when the version is older than the
        minimum or explicitly banned
    """
    info = VersionInfo(
        name=library.name,
        version=version,
        min_version=library.min_version_string,
        needs_update=False,
    )

    compared = normalize_patch(version) if library.patch_optional else version
    info.needs_update = is_older(compared, info.min_version)

    if library.banned_versions:
        for candidate in (version, compared):
            if candidate in library.banned_versions:
                info.banned_version = candidate
                info.needs_update = True
                break

    return info


# =============================================================================
# Extraction strategies
# =============================================================================

def _regex_rule(library: LibraryDescriptor, text: str) -> Optional[str]:
    if library.requires and library.requires not in text:
        return None
    for signature in library.signatures:
        version = signature.search(text)
        if version:
            return version
    return None


def _first_group_rule(library: LibraryDescriptor, text: str) -> Optional[str]:
    # Externally configured libraries: the first captured group is the version
    for signature in library.signatures:
        match = re.search(signature.pattern, text, signature.flags)
        if match and match.re.groups and match.group(1):
            return match.group(1)
    return None


_JQUERY_HEADER = re.compile(r"(?:jQuery\s*v)(\d+.\d+.\d+)\s")
_JQUERY_PROPERTY = re.compile(r'jquery:\s*"([^"]+)')
_JQUERY_ASSIGNMENT = re.compile(r'(?:jquery[,\)].{0,200}=")(\d+\.\d+)(\..*?)"', re.IGNORECASE)


def _jquery_rule(library: LibraryDescriptor, text: str) -> Optional[str]:
    # Plugins carry headers like "Requires: jQuery v1.7.1"
    header = _JQUERY_HEADER.search(text)
    if header:
        plugin = re.compile(r"(?::\s*)" + re.escape(header.group(0)))
        if not plugin.search(text):
            return header.group(1)

    prop = _JQUERY_PROPERTY.search(text)
    if prop:
        return prop.group(1)

    assignment = _JQUERY_ASSIGNMENT.search(text)
    if assignment:
        return assignment.group(1) + (assignment.group(2) or "")

    return None


STRATEGIES: Dict[str, Callable[[LibraryDescriptor, str], Optional[str]]] = {
    "regex": _regex_rule,
    "jquery": _jquery_rule,
    "match": _first_group_rule,
}


# =============================================================================
# Built-in registry
# =============================================================================

DEFAULT_LIBRARIES: Tuple[LibraryDescriptor, ...] = (
    LibraryDescriptor(
        name="Prototype",
        min_version=("1.6.", "1"),
        signatures=(Signature(r"Prototype JavaScript framework, version (\d+\.\d+\.\d+)"),),
    ),
    LibraryDescriptor(
        name="Dojo",
        min_version=("1.5.", "3"),
        requires="dojo",
        signatures=(
            Signature(r"\.version\s*=\s*\{\s*major:\s*(\d+)\D+(\d+)\D+(\d+)"),
            Signature(r"\s*major:\s*(\d+),\s*minor:\s*(\d+),\s*patch:\s*(\d+),",
                      flags=re.MULTILINE | re.IGNORECASE),
        ),
    ),
    LibraryDescriptor(
        name="Mootools",
        min_version=("1.2.", "6"),
        signatures=(Signature(r"this.MooTools\s*=\s*\{version:\s*'(\d+\.\d+\.\d+)"),),
    ),
    LibraryDescriptor(
        name="SWFObject",
        min_version=("2.", "1"),
        signatures=(Signature(r"\*\s+SWFObject v(\d+\.\d+)"),),
    ),
    LibraryDescriptor(
        name="jQuery Form Plugin",
        min_version=("3.", "19"),
        signatures=(Signature(r"Form Plugin\s+\*\s+version: (\d+\.\d+)"),),
    ),
    LibraryDescriptor(
        # Only the comment header is reliable; the runtime version lives in a
        # local variable far from Modernizr._version.
        name="Modernizr",
        min_version=("1.1.", ""),
        signatures=(Signature(r"\*\s*Modernizr\s+(\d+\.\d+\.\d+)"),),
    ),
    LibraryDescriptor(
        name="jQuery cookie",
        min_version=("1.3.", "1"),
        signatures=(Signature(r"\*\s*jQuery Cookie Plugin v(\d+\.\d+\.\d+)"),),
    ),
    LibraryDescriptor(
        name="hoverIntent",
        min_version=("1.8.", "0"),
        signatures=(
            Signature(r"\*\s*hoverIntent v(\d+\.\d+\.\d+)"),
            Signature(r"\*\s*hoverIntent r(\d)", template="1.{0}.0"),
        ),
    ),
    LibraryDescriptor(
        name="jQuery Easing",
        min_version=("1.3.", "0"),
        patch_optional=True,
        signatures=(Signature(r"\*\s*jQuery Easing v(\d+\.\d+)\s*"),),
    ),
    LibraryDescriptor(
        name="underscore",
        min_version=("1.0.", "0"),
        signatures=(Signature(r'exports._(?:.*)?.VERSION="(\d+.\d+.\d+)"'),),
    ),
    LibraryDescriptor(
        name="hammer js",
        min_version=("2.0.", "2"),
        requires="hammer.input",
        signatures=(Signature(r".VERSION\s*=\s*['|\"](\d+.\d+.\d+)['|\"]"),),
    ),
    LibraryDescriptor(
        name="jQuery Superfish",
        min_version=("1.7.", "4"),
        signatures=(Signature(r'jQuery Superfish Menu Plugin - v(\d+.\d+.\d+)"'),),
    ),
    LibraryDescriptor(
        name="jQuery mousewheel",
        min_version=("3.1.", "12"),
        patch_optional=True,
        signatures=(Signature(r'.mousewheel={version:"(\d+.\d+.\d+)', flags=0),),
    ),
    LibraryDescriptor(
        name="jQuery mobile",
        min_version=("1.4.", "3"),
        patch_optional=True,
        signatures=(Signature(r'.mobile,{version:"(\d+.\d+.\d+)', flags=0),),
    ),
    LibraryDescriptor(
        name="jQuery UI",
        min_version=("1.8.", "24"),
        signatures=(Signature(r'\.ui,[\s\r\n]*\{[\s\r\n]*version:\s*"(\d+.\d+.\d+)'),),
    ),
    LibraryDescriptor(
        name="jQuery",
        min_version=("1.6.", "4"),
        patch_optional=True,
        strategy="jquery",
    ),
)


# =============================================================================
# Merging external configuration
# =============================================================================

# External configuration keys (check-libs.json style) mapped to descriptor fields
_FIELD_ALIASES = {
    "minVersion": "min_version",
    "bannedVersions": "banned_versions",
    "patchOptional": "patch_optional",
}

_OVERRIDABLE_FIELDS = {
    "min_version", "banned_versions", "patch_optional", "skip", "requires",
}


def _coerce_fields(name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for key, value in config.items():
        key = _FIELD_ALIASES.get(key, key)
        if key not in _OVERRIDABLE_FIELDS:
            continue
        if key == "min_version":
            if isinstance(value, Mapping):
                value = (str(value.get("major", "")), str(value.get("minor", "")))
            elif isinstance(value, (list, tuple)) and len(value) == 2:
                value = (str(value[0]), str(value[1]))
            else:
                raise ValueError(
                    f"Library '{name}': minVersion must be {{'major': ..., 'minor': ...}} "
                    f"or a [major, minor] pair, got {value!r}"
                )
        elif key == "banned_versions":
            value = tuple(str(item) for item in value or ())
        elif key in ("patch_optional", "skip"):
            value = bool(value)
        fields[key] = value
    return fields


def merge_config(
    defaults: Iterable[LibraryDescriptor],
    overrides: Iterable[Mapping[str, Any]],
) -> List[LibraryDescriptor]:
    """Overlay external library configuration onto a list of descriptors.

    Entries naming a known library overwrite only the fields they mention.
    Entries naming an unknown library are appended and recognized by the first
    group of their ``match`` regex. Entries without a name are ignored.

    Args:
        defaults: Descriptors to start from (not modified)
        overrides: Configuration entries, e.g. parsed from check-libs.json

    Returns:
        New list of descriptors

    Raises:
        ValueError: If an entry's minVersion is neither a mapping nor a pair
    """
    merged: List[LibraryDescriptor] = list(defaults)
    index = {library.name: i for i, library in enumerate(merged)}

    for config in overrides:
        name = config.get("name")
        if not name:
            continue

        fields = _coerce_fields(name, config)

        if name not in index:
            pattern = config.get("match")
            if not pattern:
                logger.warning(f"Library '{name}' has no 'match' pattern and will never be detected")
            fields.setdefault("min_version", ("", ""))
            library = LibraryDescriptor(
                name=name,
                strategy="match",
                signatures=(Signature(pattern),) if pattern else (),
                **fields,
            )
            index[name] = len(merged)
            merged.append(library)
            continue

        if "match" in config:
            logger.warning(f"Ignoring 'match' for built-in library '{name}'")

        merged[index[name]] = replace(merged[index[name]], **fields)

    return merged


def load_library_config(path: str) -> List[Dict[str, Any]]:
    """Read a JSON list of library overrides.

    Args:
        path: Path to the JSON file

    Returns:
        List of override entries (empty when the file does not exist)
    """
    file_path = Path(path)
    if not file_path.exists():
        logger.warning(f"Library configuration not found: {path}")
        return []

    with open(file_path, 'r') as f:
        config = json.load(f)

    if isinstance(config, Mapping):
        config = config.get("libraries", [])

    return list(config)


class LibraryRegistry:
    """Immutable snapshot of the libraries the check recognizes."""

    def __init__(self, libraries: Optional[Iterable[LibraryDescriptor]] = None):
        self._libraries: Tuple[LibraryDescriptor, ...] = tuple(
            DEFAULT_LIBRARIES if libraries is None else libraries
        )

    def __iter__(self) -> Iterator[LibraryDescriptor]:
        return iter(self._libraries)

    def __len__(self) -> int:
        return len(self._libraries)

    @property
    def libraries(self) -> Tuple[LibraryDescriptor, ...]:
        return self._libraries

    def get(self, name: str) -> Optional[LibraryDescriptor]:
        for library in self._libraries:
            if library.name == name:
                return library
        return None

    @classmethod
    def merge(cls, overrides: Optional[Iterable[Mapping[str, Any]]] = None) -> "LibraryRegistry":
        """Build a registry from the built-in libraries and optional overrides."""
        if not overrides:
            return cls(DEFAULT_LIBRARIES)
        return cls(merge_config(DEFAULT_LIBRARIES, overrides))


_active_registry: Optional[LibraryRegistry] = None


def get_active_registry() -> LibraryRegistry:
    """Registry used by checks that were not given one explicitly.

    On first use the file named by COMPATCHECK_LIBRARY_CONFIG is merged in.
    """
    global _active_registry
    if _active_registry is None:
        overrides = None
        if settings.LIBRARY_CONFIG_FILE:
            overrides = load_library_config(settings.LIBRARY_CONFIG_FILE)
            logger.info(f"Loaded {len(overrides)} library overrides from {settings.LIBRARY_CONFIG_FILE}")
        _active_registry = LibraryRegistry.merge(overrides)
    return _active_registry


def merge(config: Optional[Iterable[Mapping[str, Any]]] = None) -> LibraryRegistry:
    """Replace the active registry.

    Not meant to run while library checks are in flight; checks snapshot the
    registry when they start.

    Args:
        config: Override entries; None restores the built-in libraries

    Returns:
        The new active registry
    """
    global _active_registry
    _active_registry = LibraryRegistry.merge(config)
    return _active_registry
