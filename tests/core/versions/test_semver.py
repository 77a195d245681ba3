"""Tests for SemanticVersion parsing, ordering and helpers."""

from __future__ import annotations

import pytest

from modwarden.core.versions import (
    SemanticVersion,
    parse_version,
    sort_descending,
    try_parse_version,
)


class TestParse:
    """Accepted and rejected version strings."""

    def test_full_semver(self) -> None:
        v = parse_version("2.29.1")
        assert (v.major, v.minor, v.patch, v.pre) == (2, 29, 1, "")

    def test_missing_components_default_to_zero(self) -> None:
        assert parse_version("3") == SemanticVersion(3, 0, 0)
        assert parse_version("3.4") == SemanticVersion(3, 4, 0)

    def test_leading_v_is_accepted(self) -> None:
        assert parse_version("v1.2.3") == SemanticVersion(1, 2, 3)

    def test_prerelease_forms(self) -> None:
        assert parse_version("1.0.0rc1").pre == "rc1"
        assert parse_version("1.0.0-beta.2").pre == "b2"
        assert parse_version("2.0.0.dev3").pre == "dev3"

    @pytest.mark.parametrize(("alias", "canonical"), [
        ("1.0.0alpha1", "1.0.0a1"),
        ("1.0.0-beta.2", "1.0.0b2"),
        ("1.0.0c1", "1.0.0rc1"),
        ("1.0.0pre1", "1.0.0rc1"),
        ("1.0.0preview1", "1.0.0rc1"),
        ("1.0.0RC1", "1.0.0rc1"),
        ("1.0.0rc", "1.0.0rc0"),
    ])
    def test_label_aliases_are_equal(self, alias: str, canonical: str) -> None:
        a, b = parse_version(alias), parse_version(canonical)
        assert a == b
        assert hash(a) == hash(b)
        assert not a < b and not a > b
        assert a <= b and a >= b

    def test_constructor_folds_aliases(self) -> None:
        assert SemanticVersion(1, 0, 0, pre="alpha1") == parse_version("1.0.0a1")
        assert SemanticVersion(1, 0, 0, pre="preview2").pre == "rc2"

    def test_unknown_label_rejected(self) -> None:
        with pytest.raises(ValueError, match="pre-release label"):
            SemanticVersion(1, 0, 0, pre="gamma1")

    def test_post_local_and_fourth_component_ignored(self) -> None:
        assert parse_version("3.1.0.post2") == SemanticVersion(3, 1, 0)
        assert parse_version("1.4.2+local.7") == SemanticVersion(1, 4, 2)
        assert parse_version("1.2.3.4") == SemanticVersion(1, 2, 3)

    @pytest.mark.parametrize("bad", ["", "abc", "1..2", "x1.0", "1.0.0-"])
    def test_invalid_raises(self, bad: str) -> None:
        with pytest.raises(ValueError, match="Invalid semantic version"):
            parse_version(bad)

    def test_try_parse_returns_none(self) -> None:
        assert try_parse_version("nonsense") is None
        assert try_parse_version(None) is None
        assert try_parse_version("1.0") == SemanticVersion(1, 0, 0)

    def test_parse_passes_through_instances(self) -> None:
        v = SemanticVersion(1, 2, 3)
        assert SemanticVersion.parse(v) is v


class TestOrdering:
    """Precedence rules."""

    def test_numeric_not_lexical(self) -> None:
        assert parse_version("2.10.0") > parse_version("2.9.9")

    def test_prerelease_below_final(self) -> None:
        assert parse_version("1.0.0rc1") < parse_version("1.0.0")

    def test_prerelease_label_order(self) -> None:
        ordered = ["1.0.0.dev1", "1.0.0a1", "1.0.0b1", "1.0.0rc1", "1.0.0"]
        parsed = [parse_version(v) for v in ordered]
        assert parsed == sorted(parsed)

    def test_prerelease_numbers(self) -> None:
        assert parse_version("1.0.0rc2") > parse_version("1.0.0rc1")

    def test_equal_ignores_raw_text(self) -> None:
        assert parse_version("2.0") == parse_version("2.0.0")
        assert hash(parse_version("2.0")) == hash(parse_version("2.0.0"))

    def test_comparison_with_other_types(self) -> None:
        with pytest.raises(TypeError):
            parse_version("1.0.0") < "1.0.0"  # noqa: B015


class TestStr:
    def test_raw_text_preserved(self) -> None:
        assert str(parse_version("2.29")) == "2.29"

    def test_constructed_version_renders(self) -> None:
        assert str(SemanticVersion(1, 2, 3)) == "1.2.3"
        assert str(SemanticVersion(1, 2, 3, pre="rc1")) == "1.2.3rc1"


class TestSortDescending:
    def test_newest_first_and_unique(self) -> None:
        versions = [parse_version(v) for v in ["1.0.0", "2.0", "1.5.0", "2.0.0"]]
        result = sort_descending(versions)
        assert [str(v) for v in result] == ["2.0", "1.5.0", "1.0.0"]

    def test_label_aliases_collapse(self) -> None:
        versions = [parse_version(v) for v in ["1.0.0c1", "1.0.0rc1", "1.0.0alpha1", "1.0.0a1"]]
        result = sort_descending(versions)
        assert [str(v) for v in result] == ["1.0.0c1", "1.0.0alpha1"]

    def test_empty(self) -> None:
        assert sort_descending([]) == ()
