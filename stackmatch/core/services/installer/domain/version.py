"""
L1 Domain: Semantic version model (pure).

Parses, compares, and matches versions against constraint
expressions. No I/O, no subprocess.

Constraint syntax::

    ""  "*"                  any version
    ">=1.2" "<2" "!=1.0.1"   operator-prefixed (>=, <=, !=, >, <, ==, =)
    "1.2.0 - 1.3.0"          inclusive range
    "1.x" "1.2.X" "1.*"      wildcards
    "1.2.3-*"                any pre-release of a version prefix
    "1.2.3"                  exact
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

from stackmatch.core.errors import InvalidConstraintError, InvalidVersionError

# Permissive on purpose: "1" and "1.2" are valid and default the rest to 0.
_VERSION_RE = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z\-.]+))?"
    r"(?:\+([0-9A-Za-z\-.]+))?$"
)

# Longest operators first so ">=" is never read as ">".
_OPERATORS: tuple[str, ...] = (">=", "<=", "!=", "==", ">", "<", "=")

_OPERATOR_CHECKS = {
    ">=": lambda cmp: cmp >= 0,
    "<=": lambda cmp: cmp <= 0,
    "!=": lambda cmp: cmp != 0,
    "==": lambda cmp: cmp == 0,
    ">": lambda cmp: cmp > 0,
    "<": lambda cmp: cmp < 0,
    "=": lambda cmp: cmp == 0,
}

_WILDCARD_CHARS = frozenset("xX*")
_WILDCARD_ALLOWED_RE = re.compile(r"^[0-9A-Za-z.*+\-]+$")
_NUMERIC_PREFIX_RE = re.compile(r"^\d+(?:\.\d+)*$")

# Package-manager version strings: epoch, numeric core, trailing noise.
_EPOCH_RE = re.compile(r"^\d+:")
_COERCE_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.\d+)*(.*)$")
_PRE_RELEASE_TAG_RE = re.compile(r"^-([A-Za-z][0-9A-Za-z.]*)")


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """An immutable semantic version.

    Build metadata is kept for display but never takes part in
    equality or ordering.
    """

    major: int
    minor: int = 0
    patch: int = 0
    pre_release: str = ""
    build: str = ""

    @classmethod
    def parse(cls, value: str) -> Version:
        return parse_version(value)

    def compare(self, other: Version) -> int:
        return compare(self, other)

    def satisfies(self, constraint: str) -> bool:
        return satisfies(self, constraint)

    def core_string(self) -> str:
        """``M.m.p[-pre]`` without build metadata."""
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release:
            text += f"-{self.pre_release}"
        return text

    def __str__(self) -> str:
        text = self.core_string()
        if self.build:
            text += f"+{self.build}"
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) == 0

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) < 0

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.pre_release))


def parse_version(value: str) -> Version:
    """Parse a version string.

    Accepts an optional leading ``v``; minor and patch default to 0.

    Raises:
        InvalidVersionError: If the string is not a version.
    """
    if not value:
        raise InvalidVersionError("invalid version format: empty string")

    match = _VERSION_RE.match(value)
    if match is None:
        raise InvalidVersionError(f"invalid version format: {value}")

    major, minor, patch, pre_release, build = match.groups()
    return Version(
        major=int(major),
        minor=int(minor) if minor else 0,
        patch=int(patch) if patch else 0,
        pre_release=pre_release or "",
        build=build or "",
    )


def compare(a: Version, b: Version) -> int:
    """Compare two versions, returning -1, 0 or 1.

    A release is greater than any pre-release of the same triple.
    Two pre-release tags compare as plain strings (ASCII order), so
    ``alpha.10`` sorts before ``alpha.2``.
    """
    left = (a.major, a.minor, a.patch)
    right = (b.major, b.minor, b.patch)
    if left != right:
        return -1 if left < right else 1

    if a.pre_release == b.pre_release:
        return 0
    if not a.pre_release:
        return 1
    if not b.pre_release:
        return -1
    return -1 if a.pre_release < b.pre_release else 1


def satisfies(version: Version, constraint: str) -> bool:
    """Check a version against a constraint expression.

    Raises:
        InvalidConstraintError: If the constraint is malformed.
    """
    constraint = constraint.strip()
    if constraint in ("", "*"):
        return True

    for op in _OPERATORS:
        if constraint.startswith(op):
            target = _parse_bound(constraint[len(op):].strip(), constraint)
            return _OPERATOR_CHECKS[op](compare(version, target))

    if " - " in constraint:
        lower_text, upper_text = constraint.split(" - ", 1)
        lower = _parse_bound(lower_text.strip(), constraint)
        upper = _parse_bound(upper_text.strip(), constraint)
        return compare(version, lower) >= 0 and compare(version, upper) <= 0

    if _WILDCARD_CHARS.intersection(constraint):
        return _match_wildcard(version, constraint)

    return compare(version, _parse_bound(constraint, constraint)) == 0


def validate_constraint(constraint: str) -> None:
    """Raise ``InvalidConstraintError`` if the constraint is malformed."""
    satisfies(Version(0), constraint)


def _parse_bound(text: str, constraint: str) -> Version:
    try:
        return parse_version(text)
    except InvalidVersionError as e:
        raise InvalidConstraintError(f"invalid version constraint {constraint!r}: {e}") from e


def _match_wildcard(version: Version, constraint: str) -> bool:
    if constraint in ("*", "x", "X"):
        return True

    if not _WILDCARD_ALLOWED_RE.match(constraint):
        raise InvalidConstraintError(f"invalid wildcard pattern: {constraint!r}")

    pattern = constraint
    if pattern[0] == "v" and len(pattern) > 1 and pattern[1].isdigit():
        pattern = pattern[1:]

    # 1.x / 1.2.X: prefix match on the string form
    if pattern.endswith((".x", ".X")):
        prefix = pattern[:-2]
        if not _NUMERIC_PREFIX_RE.match(prefix):
            raise InvalidConstraintError(f"invalid wildcard pattern: {constraint!r}")
        return str(version).startswith(prefix + ".")

    # 1.2.3-*: any pre-release of the prefix
    if pattern.endswith("-*"):
        return str(version).startswith(pattern[:-2])

    regex = "".join(
        "[0-9]+" if ch in "xX" else ".*" if ch == "*" else re.escape(ch)
        for ch in pattern
    )
    return re.fullmatch(regex, version.core_string()) is not None


def is_valid_version(value: str) -> bool:
    """Strict form check: exactly ``major.minor.patch``.

    Each component is numeric or a wildcard (``x``, ``X``, ``*``).
    A leading ``v`` and ``-pre`` / ``+build`` suffixes are allowed.
    """
    if not value:
        return False
    if value.startswith("v"):
        value = value[1:]

    base = re.split(r"[-+]", value, maxsplit=1)[0]
    parts = base.split(".")
    if len(parts) != 3:
        return False
    return all(part in ("x", "X", "*") or part.isdigit() for part in parts)


def coerce_version(raw: str) -> Version | None:
    """Best-effort version from package-manager output.

    Strips what distribution tooling adds around an upstream version::

        "1:2.34.1-1ubuntu1_amd64"  → 2.34.1
        "1.2.3-4.fc38"             → 1.2.3
        "20.1.0.3"                 → 20.1.0
        "3.0.0-rc1"                → 3.0.0-rc1

    Returns:
        A Version, or None when the text has no leading number.
    """
    text = raw.strip()
    if not text:
        return None

    text = _EPOCH_RE.sub("", text)
    if "_" in text:
        text = text.rsplit("_", 1)[0]

    match = _COERCE_RE.match(text)
    if match is None:
        return None

    major, minor, patch, rest = match.groups()
    pre = _PRE_RELEASE_TAG_RE.match(rest)
    return Version(
        major=int(major),
        minor=int(minor) if minor else 0,
        patch=int(patch) if patch else 0,
        pre_release=pre.group(1) if pre else "",
    )
