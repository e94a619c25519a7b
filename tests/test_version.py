"""
Tests for the version model: parsing, ordering, constraint matching.
"""

import pytest

from stackmatch.core.errors import InvalidConstraintError, InvalidVersionError
from stackmatch.core.services.installer.domain.version import (
    Version,
    coerce_version,
    compare,
    is_valid_version,
    parse_version,
    satisfies,
    validate_constraint,
)

SAMPLE_VERSIONS = [
    "0.0.1", "1.0.0", "1.2.3", "1.2.3-alpha", "1.2.3-beta.1",
    "1.2.4", "2.0.0-rc1", "2.0.0", "10.0.0",
]


# ── Parsing ─────────────────────────────────────────────────────


class TestParse:
    @pytest.mark.parametrize("raw, expected", [
        ("1.2.3", "1.2.3"),
        ("v1.2", "1.2.0"),
        ("1", "1.0.0"),
        ("1.2.3-beta.1", "1.2.3-beta.1"),
        ("1.2.3+build.5", "1.2.3+build.5"),
        ("v2.0.0-rc1+sha.abc", "2.0.0-rc1+sha.abc"),
    ])
    def test_normalized_string(self, raw, expected):
        assert str(parse_version(raw)) == expected

    def test_fields(self):
        v = parse_version("v3.4.5-rc.2+exp")
        assert (v.major, v.minor, v.patch) == (3, 4, 5)
        assert v.pre_release == "rc.2"
        assert v.build == "exp"

    @pytest.mark.parametrize("raw", ["", "abc", "v", "1.2.3.4", "1..2", "1.2.3-", "x.y.z"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidVersionError):
            parse_version(raw)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            parse_version("nope")

    def test_classmethod_alias(self):
        assert Version.parse("1.2") == Version(1, 2, 0)

    def test_large_numbers(self):
        assert parse_version("123456789012.0.0").major == 123456789012


# ── Ordering ────────────────────────────────────────────────────


class TestCompare:
    @pytest.mark.parametrize("a", SAMPLE_VERSIONS)
    @pytest.mark.parametrize("b", SAMPLE_VERSIONS)
    def test_antisymmetric(self, a, b):
        va, vb = parse_version(a), parse_version(b)
        assert compare(va, vb) == -compare(vb, va)

    @pytest.mark.parametrize("a", SAMPLE_VERSIONS)
    def test_reflexive(self, a):
        assert compare(parse_version(a), parse_version(a)) == 0

    def test_numeric_not_lexical(self):
        assert parse_version("10.0.0") > parse_version("9.9.9")
        assert parse_version("1.10.0") > parse_version("1.9.0")

    def test_release_beats_pre_release(self):
        assert parse_version("1.0.0") > parse_version("1.0.0-rc1")

    def test_pre_release_ascii_order(self):
        # Plain string comparison: "alpha.10" sorts before "alpha.2"
        assert parse_version("1.0.0-alpha.10") < parse_version("1.0.0-alpha.2")
        assert parse_version("1.0.0-alpha") < parse_version("1.0.0-beta")

    def test_build_ignored(self):
        a = parse_version("1.2.3+one")
        b = parse_version("1.2.3+two")
        assert compare(a, b) == 0
        assert a == b
        assert hash(a) == hash(b)

    def test_sorting(self):
        ordered = sorted(parse_version(v) for v in ["2.0.0", "1.0.0-rc1", "1.0.0", "0.9.9"])
        assert [str(v) for v in ordered] == ["0.9.9", "1.0.0-rc1", "1.0.0", "2.0.0"]

    def test_method_form(self):
        assert Version(1).compare(Version(2)) == -1


# ── Constraints ─────────────────────────────────────────────────


class TestSatisfies:
    @pytest.mark.parametrize("raw", SAMPLE_VERSIONS)
    def test_empty_and_star_match_everything(self, raw):
        v = parse_version(raw)
        assert satisfies(v, "")
        assert satisfies(v, "*")
        assert satisfies(v, "  ")

    @pytest.mark.parametrize("constraint, expected", [
        (">=1.2.0", True),
        (">=1.2.3", True),
        (">1.2.3", False),
        ("<=1.2.3", True),
        ("<1.2.3", False),
        ("<2", True),
        ("!=1.2.3", False),
        ("!=1.2.4", True),
        ("=1.2.3", True),
        ("==1.2.3", True),
        (">= 1.0", True),
    ])
    def test_operators(self, constraint, expected):
        assert satisfies(parse_version("1.2.3"), constraint) is expected

    def test_range_inclusive(self):
        v = parse_version("1.2.3")
        assert satisfies(v, "1.2.0 - 1.3.0")
        assert not satisfies(v, "1.0.0 - 1.2.2")
        assert satisfies(v, "1.2.3 - 1.3.0")
        assert satisfies(v, "1.0.0 - 1.2.3")

    @pytest.mark.parametrize("constraint, expected", [
        ("1.2.x", True),
        ("1.3.x", False),
        ("1.x", True),
        ("1.X", True),
        ("2.x", False),
        ("x", True),
        ("X", True),
        ("1.*", True),
        ("1.2.*", True),
        ("1.x.3", True),
        ("1.x.4", False),
        ("v1.2.x", True),
    ])
    def test_wildcards(self, constraint, expected):
        assert satisfies(parse_version("1.2.3"), constraint) is expected

    def test_wildcard_prefix_does_not_overmatch(self):
        assert not satisfies(parse_version("1.20.0"), "1.2.x")

    def test_pre_release_wildcard(self):
        assert satisfies(parse_version("1.2.3-beta.1"), "1.2.3-*")
        assert not satisfies(parse_version("1.2.4-beta.1"), "1.2.3-*")

    def test_exact(self):
        assert satisfies(parse_version("1.2.3"), "1.2.3")
        assert satisfies(parse_version("1.2.0"), "1.2")
        assert not satisfies(parse_version("1.2.3"), "1.2.4")

    @pytest.mark.parametrize("constraint", [">=abc", "<", "1.2.0 - nope", "1.x.$", "foo", "1.y.x"])
    def test_malformed_raises(self, constraint):
        with pytest.raises(InvalidConstraintError):
            satisfies(parse_version("1.2.3"), constraint)

    def test_validate_constraint(self):
        validate_constraint(">=1.0")
        with pytest.raises(InvalidConstraintError):
            validate_constraint(">=what")


# ── Validation and coercion ─────────────────────────────────────


class TestIsValidVersion:
    @pytest.mark.parametrize("raw", ["1.2.3", "v1.2.3", "1.2.x", "1.*.3", "1.2.3-rc1", "1.2.3+b"])
    def test_valid(self, raw):
        assert is_valid_version(raw)

    @pytest.mark.parametrize("raw", ["", "1.2", "1", "1.2.3.4", "a.b.c", "1.2.y"])
    def test_invalid(self, raw):
        assert not is_valid_version(raw)


class TestCoerceVersion:
    @pytest.mark.parametrize("raw, expected", [
        ("1:2.34.1-1ubuntu1_amd64", "2.34.1"),
        ("1.2.3-4.fc38", "1.2.3"),
        ("20.1.0.3", "20.1.0"),
        ("3.0.0-rc1", "3.0.0-rc1"),
        ("18.19.0+dfsg-6", "18.19.0"),
        ("2.43.0-1", "2.43.0"),
        ("v20", "20.0.0"),
    ])
    def test_package_manager_strings(self, raw, expected):
        assert str(coerce_version(raw)) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "latest", "Installed"])
    def test_no_number(self, raw):
        assert coerce_version(raw) is None
