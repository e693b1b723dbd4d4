"""Comparison and selection of npm-style semver range literals.

Range literals are the strings found in package.json dependency maps, such as
``^1.2.3``, ``~1.2.3``, ``1.2.3``, ``*`` or ``workspace:*``. Ordering works on
the coerced version core first and falls back to range prefix precedence when
cores are equal, so that ``^1.0.0`` ranks above ``~1.0.0`` which ranks above
``1.0.0``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cmp_to_key, total_ordering

from packaging.version import Version

from .errors import InvalidVersionError

# Lowest to highest. Prefixes not listed rank with the bare version.
RANGE_PRECEDENCE = ("~", "^")

_COERCE_RE = re.compile(
    r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])"
)
_RANGE_PREFIX_RE = re.compile(r"^\D+")

_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_SEMVER_RE = re.compile(
    rf"^[v=\s]*(\d+)\.(\d+)\.(\d+)(?:-?({_IDENTIFIERS}))?(?:\+{_IDENTIFIERS})?$"
)
_XR = r"\d+|[xX*]"
_PARTIAL_RE = re.compile(
    rf"^[v=\s]*({_XR})(?:\.({_XR})(?:\.({_XR})(?:-?({_IDENTIFIERS}))?(?:\+{_IDENTIFIERS})?)?)?$"
)
_HYPHEN_RE = re.compile(r"^\s*(\S+)\s+-\s+(\S+)\s*$")
_OPERATOR_RE = re.compile(r"^(<=|>=|<|>|=|~>|~|\^)?(.*)$")
_OPERATOR_SPACE_RE = re.compile(r"(<=|>=|<|>|=|~>|~|\^)\s+")


def coerce(version_range: str) -> Version | None:
    """Extract the first ``major[.minor[.patch]]`` group as a version.

    Missing components default to zero and anything around the numbers (range
    prefixes, a leading ``v``, pre-release tags) is ignored. Returns ``None``
    when the literal holds no number at all, e.g. ``*`` or ``workspace:*``.
    """
    match = _COERCE_RE.search(version_range)
    if not match:
        return None
    major, minor, patch = (int(group or 0) for group in match.groups())
    return Version(f"{major}.{minor}.{patch}")


def version_range_to_range(version_range: str) -> str:
    """Return the range prefix of a literal, e.g. ``^`` for ``^1.0.0``."""
    match = _RANGE_PREFIX_RE.match(version_range)
    return match.group(0) if match else ""


def compare_ranges(a_range: str, b_range: str) -> int:
    """Compare range prefixes such as ``^`` and ``~`` by how wide they are."""
    a_precedence = RANGE_PRECEDENCE.index(a_range) if a_range in RANGE_PRECEDENCE else -1
    b_precedence = RANGE_PRECEDENCE.index(b_range) if b_range in RANGE_PRECEDENCE else -1
    if a_precedence > b_precedence:
        return 1
    if a_precedence < b_precedence:
        return -1
    return 0


def compare_version_ranges(a: str, b: str) -> int:
    """Compare two range literals like ``^1.0.0`` and ``~2.5.0``.

    Raises:
        InvalidVersionError: If either literal has no coercible version.
    """
    a_version = coerce(a)
    if a_version is None:
        raise InvalidVersionError(a)
    b_version = coerce(b)
    if b_version is None:
        raise InvalidVersionError(b)

    if a_version == b_version:
        return compare_ranges(version_range_to_range(a), version_range_to_range(b))

    return 1 if a_version > b_version else -1


def compare_version_ranges_safe(a: str, b: str) -> int:
    """Like compare_version_ranges, but treats invalid literals as equal."""
    try:
        return compare_version_ranges(a, b)
    except InvalidVersionError:
        return 0


def get_latest_version(versions: list[str]) -> str:
    """Return the highest literal. Raises InvalidVersionError on bad input."""
    return sorted(versions, key=cmp_to_key(compare_version_ranges))[-1]


def get_highest_range_type(ranges: list[str]) -> str:
    """Return the widest prefix, e.g. ``^`` for ``["~", "^"]``."""
    return sorted(ranges, key=cmp_to_key(compare_ranges))[-1]


def get_increased_latest_version(versions: list[str]) -> str:
    """Return the literal every declaration should converge on.

    This is the highest literal, widened to the widest prefix among the lower
    literals whose range the highest version still satisfies.
    ``["^1.0.0", "1.5.0"]`` gives ``^1.5.0`` rather than the narrower
    ``1.5.0``, and ``["^1.0.0", "~1.4.0", "1.4.5"]`` gives ``^1.4.5``.
    """
    latest_version = get_latest_version(versions)
    latest_version_bare = coerce(latest_version)
    if latest_version_bare is None:
        return latest_version

    result = latest_version
    for version in versions:
        if version == latest_version:
            continue

        version_bare = coerce(version)
        if (
            version_bare is not None
            and latest_version_bare > version_bare
            and satisfies(str(latest_version_bare), version)
            and compare_ranges(version_range_to_range(version), version_range_to_range(result)) > 0
        ):
            result = _replace_core(version, latest_version_bare)

    return result


def _replace_core(version_range: str, core: Version) -> str:
    match = _COERCE_RE.search(version_range)
    start, end = match.start(1), match.end(match.lastindex)
    return f"{version_range[:start]}{core}{version_range[end:]}"


# npm range matching


@total_ordering
@dataclass(frozen=True)
class SemVer:
    """A full ``major.minor.patch[-prerelease]`` version."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def _key(self):
        if self.prerelease:
            pre = (0, tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease))
        else:
            pre = (1, ())
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other: SemVer) -> bool:
        return self._key() < other._key()

    @property
    def release(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)


def parse_semver(version: str) -> SemVer:
    """Parse a full semver version, tolerating a leading ``v`` or ``=``.

    Raises:
        ValueError: If the string is not a complete semver version.
    """
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise ValueError(f"Invalid semver version: '{version}'")
    major, minor, patch, prerelease = match.groups()
    return SemVer(
        int(major),
        int(minor),
        int(patch),
        tuple(prerelease.split(".")) if prerelease else (),
    )


Comparator = tuple[str, SemVer]

_ZERO = SemVer(0, 0, 0)
_ANY: list[Comparator] = [(">=", _ZERO)]
_NOTHING: list[Comparator] = [("<", SemVer(0, 0, 0, ("0",)))]


def _upper(major: int, minor: int = 0, patch: int = 0) -> Comparator:
    # Exclusive upper bound that also excludes pre-releases of the bound itself.
    return ("<", SemVer(major, minor, patch, ("0",)))


def _parse_partial(text: str):
    match = _PARTIAL_RE.match(text)
    if not match:
        raise ValueError(f"Invalid version range component: '{text}'")
    parts: list[int | None] = []
    for group in match.groups()[:3]:
        if group is None or group in ("x", "X", "*") or (parts and parts[-1] is None):
            parts.append(None)
        else:
            parts.append(int(group))
    prerelease = tuple(match.group(4).split(".")) if match.group(4) else ()
    return parts[0], parts[1], parts[2], prerelease


def _tilde(text: str) -> list[Comparator]:
    major, minor, patch, prerelease = _parse_partial(text)
    if major is None:
        return _ANY
    if minor is None:
        return [(">=", SemVer(major, 0, 0)), _upper(major + 1)]
    if patch is None:
        return [(">=", SemVer(major, minor, 0)), _upper(major, minor + 1)]
    return [(">=", SemVer(major, minor, patch, prerelease)), _upper(major, minor + 1)]


def _caret(text: str) -> list[Comparator]:
    major, minor, patch, prerelease = _parse_partial(text)
    if major is None:
        return _ANY
    if minor is None:
        return [(">=", SemVer(major, 0, 0)), _upper(major + 1)]
    if patch is None:
        if major == 0:
            return [(">=", SemVer(0, minor, 0)), _upper(0, minor + 1)]
        return [(">=", SemVer(major, minor, 0)), _upper(major + 1)]

    lower = (">=", SemVer(major, minor, patch, prerelease))
    if major > 0:
        return [lower, _upper(major + 1)]
    if minor > 0:
        return [lower, _upper(0, minor + 1)]
    return [lower, _upper(0, 0, patch + 1)]


def _primitive(operator: str, text: str) -> list[Comparator]:
    major, minor, patch, prerelease = _parse_partial(text)

    if operator in ("", "="):
        if major is None:
            return _ANY
        if minor is None:
            return [(">=", SemVer(major, 0, 0)), _upper(major + 1)]
        if patch is None:
            return [(">=", SemVer(major, minor, 0)), _upper(major, minor + 1)]
        return [("=", SemVer(major, minor, patch, prerelease))]

    if major is None:
        return _NOTHING if operator in ("<", ">") else _ANY

    if minor is None or patch is None:
        if operator == ">":
            if minor is None:
                return [(">=", SemVer(major + 1, 0, 0))]
            return [(">=", SemVer(major, minor + 1, 0))]
        if operator == ">=":
            return [(">=", SemVer(major, minor or 0, 0))]
        if operator == "<":
            return [_upper(major, minor or 0)]
        # <=
        if minor is None:
            return [_upper(major + 1)]
        return [_upper(major, minor + 1)]

    return [(operator, SemVer(major, minor, patch, prerelease))]


def _hyphen(low: str, high: str) -> list[Comparator]:
    comparators: list[Comparator] = []

    major, minor, patch, prerelease = _parse_partial(low)
    if major is not None:
        comparators.append((">=", SemVer(major, minor or 0, patch or 0, prerelease)))

    major, minor, patch, prerelease = _parse_partial(high)
    if major is not None:
        if minor is None:
            comparators.append(_upper(major + 1))
        elif patch is None:
            comparators.append(_upper(major, minor + 1))
        else:
            comparators.append(("<=", SemVer(major, minor, patch, prerelease)))

    return comparators or _ANY


def parse_range(version_range: str) -> list[list[Comparator]]:
    """Parse an npm range into alternatives of comparator sets.

    Raises:
        ValueError: If any part of the range is not valid npm range syntax.
    """
    alternatives = []
    for alternative in version_range.split("||"):
        hyphen = _HYPHEN_RE.match(alternative)
        if hyphen:
            alternatives.append(_hyphen(hyphen.group(1), hyphen.group(2)))
            continue

        tokens = _OPERATOR_SPACE_RE.sub(r"\1", alternative.strip()).split()
        if not tokens:
            alternatives.append(_ANY)
            continue

        comparators: list[Comparator] = []
        for token in tokens:
            operator, rest = _OPERATOR_RE.match(token).groups()
            operator = operator or ""
            if operator in ("~", "~>"):
                comparators.extend(_tilde(rest))
            elif operator == "^":
                comparators.extend(_caret(rest))
            else:
                comparators.extend(_primitive(operator, rest))
        alternatives.append(comparators)

    return alternatives


def _test(operator: str, version: SemVer, bound: SemVer) -> bool:
    if operator == "=":
        return version == bound
    if operator == ">":
        return version > bound
    if operator == ">=":
        return version >= bound
    if operator == "<":
        return version < bound
    return version <= bound


def _test_set(comparators: list[Comparator], version: SemVer) -> bool:
    if not all(_test(operator, version, bound) for operator, bound in comparators):
        return False

    if version.prerelease:
        # Pre-releases only match a set that names a pre-release of the same release.
        return any(
            bound.prerelease and bound.release == version.release
            for _, bound in comparators
        )

    return True


def satisfies(version: str, version_range: str) -> bool:
    """Check whether a version falls within an npm range.

    Invalid versions and ranges (``workspace:*``, ``latest``) never match.
    """
    try:
        parsed = parse_semver(version)
        alternatives = parse_range(version_range)
    except ValueError:
        return False
    return any(_test_set(comparators, parsed) for comparators in alternatives)
