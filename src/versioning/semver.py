"""Semantic version helpers built on ``semantic_version``.

UI modules encode snapshot builds as an oversized numeric patch component
(e.g. ``11.0.109900000000247``). Such versions are rewritten to
``<major>.<minor>.0-<patch>`` before parsing so that prerelease ordering and
range inclusion apply. Range expressions are never rewritten.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Tuple

import semantic_version
from semantic_version.base import AllOf, AnyOf, Range

from constants import Constants
from versioning.models import PreReleaseFilter, ResolutionMode

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"^\d+$")
_HYPHEN_RANGE_RE = re.compile(r"^\S+\s+-\s+\S+$")
_OPERATOR_SPACE_RE = re.compile(r"([<>=]+)\s+")
_COMPARATOR_CHARS = ("<", ">", "=")


def normalize_version(version: Optional[str]) -> Optional[str]:
    """Rewrite UI snapshot versions (patch of 5+ digits) to prerelease form.

    >>> normalize_version("11.0.109900000000247")
    '11.0.0-109900000000247'
    >>> normalize_version("19.6.361")
    '19.6.361'
    """
    if version is None or "-" in version or "+" in version:
        return version
    parts = version.split(".")
    if len(parts) != 3:
        return version
    patch = parts[2]
    if not _DIGITS_RE.match(patch):
        return version
    if len(patch) >= Constants.UI_SNAPSHOT_THRESHOLD:
        return f"{parts[0]}.{parts[1]}.0-{patch}"
    return version


def parse_version(version: Optional[str]) -> Optional[semantic_version.Version]:
    """Parse a version after normalization; None when it is not strict semver."""
    if not version:
        return None
    try:
        return semantic_version.Version(normalize_version(version.strip()))
    except ValueError:
        return None


def is_exact_version(spec: Optional[str]) -> bool:
    return parse_version(spec) is not None


def is_prerelease(version: str) -> bool:
    parsed = parse_version(version)
    return bool(parsed and parsed.prerelease)


def resolution_mode(spec: Optional[str]) -> ResolutionMode:
    """Classify a version spec as exact, range or latest."""
    if not spec or spec.strip().lower() == Constants.LATEST_VERSION:
        return ResolutionMode.LATEST
    if is_exact_version(spec):
        return ResolutionMode.EXACT
    return ResolutionMode.RANGE


def _normalize_spec(spec_str: str) -> str:
    """Normalize npm range syntax (hyphen, x-ranges) into SimpleSpec-compatible form."""
    s = spec_str.strip()

    # Hyphen ranges: "1.2.3 - 1.4.5" => ">=1.2.3,<=1.4.5"
    m = re.match(r'^\s*([0-9A-Za-z\.\-\+]+)\s+-\s+([0-9A-Za-z\.\-\+]+)\s*$', s)
    if m:
        return f">={m.group(1)},<={m.group(2)}"

    s2 = s.replace('*', 'x').lower()
    m = re.match(r'^\s*(\d+)\.(\d+)\.x\s*$', s2)
    if m:
        major, minor = int(m.group(1)), int(m.group(2))
        return f">={major}.{minor}.0,<{major}.{minor + 1}.0"

    m = re.match(r'^\s*(\d+)(?:\.x)?\s*$', s2)
    if m:
        major = int(m.group(1))
        return f">={major}.0.0,<{major + 1}.0.0"

    return spec_str


def _with_floor_prerelease(target: semantic_version.Version) -> semantic_version.Version:
    return semantic_version.Version(
        major=target.major, minor=target.minor, patch=target.patch, prerelease=("0",), build=target.build
    )


def _include_prereleases(clause, lower_bounds: bool = True):
    """Rewrite a clause tree so prerelease versions compare by plain semver order.

    With ``lower_bounds``, release ``>=`` and ``<`` bounds are lowered to
    their ``-0`` prerelease so ``^11.0.0`` admits ``11.0.0-109900000000247``
    but not ``12.0.0-alpha``. Explicit comparators keep their bounds.
    """
    if isinstance(clause, (AllOf, AnyOf)):
        return clause.__class__(*(_include_prereleases(c, lower_bounds) for c in clause.clauses))
    if isinstance(clause, Range):
        target = clause.target
        if lower_bounds and not target.prerelease and clause.operator in (Range.OP_GTE, Range.OP_LT):
            target = _with_floor_prerelease(target)
        return Range(
            clause.operator,
            target,
            prerelease_policy=Range.PRERELEASE_ALWAYS,
            build_policy=clause.build_policy,
        )
    return clause


def _is_comparator(term: str) -> bool:
    return term[:1] in _COMPARATOR_CHARS


def _npm_prerelease_clause(text: str):
    """Rewrite each ``||`` alternative term by term.

    Caret, tilde and x-range terms get ``-0`` floors; explicit comparators
    and hyphen ranges are compared as written.
    """
    alternatives = []
    for group in text.split("||"):
        group = _OPERATOR_SPACE_RE.sub(r"\1", group.strip()) or "*"
        if _HYPHEN_RANGE_RE.match(group):
            alternatives.append(_include_prereleases(semantic_version.NpmSpec(group).clause, lower_bounds=False))
            continue
        terms = [
            _include_prereleases(semantic_version.NpmSpec(term).clause, lower_bounds=not _is_comparator(term))
            for term in group.split()
        ]
        alternatives.append(terms[0] if len(terms) == 1 else AllOf(*terms))
    return alternatives[0] if len(alternatives) == 1 else AnyOf(*alternatives)


class VersionRange:
    """A parsed range expression with an explicit prerelease policy."""

    def __init__(self, expression: str, include_prerelease: bool = False):
        self.expression = expression
        self.include_prerelease = include_prerelease
        text = expression.strip()
        if not text or text.lower() == Constants.LATEST_VERSION:
            text = "*"
        try:
            if include_prerelease:
                self._clause = _npm_prerelease_clause(text)
            else:
                self._clause = semantic_version.NpmSpec(text).clause
        except ValueError:
            # Fallback to normalized SimpleSpec if NpmSpec cannot parse
            simple = semantic_version.SimpleSpec(_normalize_spec(text))
            self._clause = simple.clause
            if include_prerelease:
                explicit = any(c in text for c in _COMPARATOR_CHARS)
                self._clause = _include_prereleases(self._clause, lower_bounds=not explicit)

    def match(self, version: semantic_version.Version) -> bool:
        return self._clause.match(version)

    def __contains__(self, version: semantic_version.Version) -> bool:
        return self.match(version)

    def __repr__(self) -> str:
        return f"VersionRange({self.expression!r}, include_prerelease={self.include_prerelease})"


def build_range(expression: str, include_prerelease: bool = False) -> Optional[VersionRange]:
    """Parse a range expression; None (logged) when it is not valid range syntax."""
    try:
        return VersionRange(expression, include_prerelease)
    except ValueError as exc:
        logger.debug("Invalid version range '%s': %s", expression, exc)
        return None


def satisfies(version: str, constraint: str, include_prerelease: bool = False) -> bool:
    """Check a (normalized) version against an un-normalized range expression."""
    parsed = parse_version(version)
    version_range = build_range(constraint, include_prerelease)
    if parsed is None or version_range is None:
        return False
    return version_range.match(parsed)


def matches_prerelease_filter(
    version: semantic_version.Version,
    pre_release_filter: Optional[PreReleaseFilter],
    default: PreReleaseFilter = PreReleaseFilter.TRUE,
) -> bool:
    """ONLY admits prereleases, FALSE admits releases, TRUE admits both."""
    effective = pre_release_filter or default
    tagged = bool(version.prerelease)
    if effective == PreReleaseFilter.ONLY:
        return tagged
    if effective == PreReleaseFilter.FALSE:
        return not tagged
    return True


def sort_descending(versions: Iterable[str]) -> List[str]:
    """Sort version strings by parsed semver, highest first; unparsable ones dropped."""
    parsed: List[Tuple[semantic_version.Version, str]] = []
    for original in versions:
        version = parse_version(original)
        if version is not None:
            parsed.append((version, original))
    parsed.sort(key=lambda pair: pair[0], reverse=True)
    return [original for _, original in parsed]


def increment_patch(version: semantic_version.Version) -> semantic_version.Version:
    """Patch increment that keeps the prerelease and build metadata."""
    return semantic_version.Version(
        major=version.major,
        minor=version.minor,
        patch=version.patch + 1,
        prerelease=version.prerelease,
        build=version.build,
    )


def apply_build_number(version: semantic_version.Version, build_number: str) -> semantic_version.Version:
    """Replace a trailing numeric prerelease part with ``build_number`` or append it."""
    parts = list(version.prerelease)
    if parts and _DIGITS_RE.match(parts[-1]):
        parts[-1] = build_number
    else:
        parts.append(build_number)
    return semantic_version.Version(
        major=version.major,
        minor=version.minor,
        patch=version.patch,
        prerelease=tuple(parts),
        build=version.build,
    )
