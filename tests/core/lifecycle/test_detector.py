"""Tests for ConflictDetector classification and recommendations."""

from __future__ import annotations

from modwarden.core.lifecycle import (
    CapabilityState,
    CapabilityStatus,
    ConflictDetector,
    ConflictKind,
    ConflictSeverity,
)
from modwarden.core.versions import VersionRegistry, parse_version


def _state(name: str, minimum: str, loaded: str | None = None, *installed: str) -> CapabilityState:
    return CapabilityState(
        name=name,
        min_version=parse_version(minimum),
        loaded_version=parse_version(loaded) if loaded else None,
        loaded_as=name if loaded else None,
        installed_versions=tuple(parse_version(v) for v in installed),
    )


class TestClassification:
    """One report entry per observation class."""

    def test_exact_match_is_clean(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry, {"auth": _state("auth", "2.29.1", "2.29.1")},
        )
        assert report.conflicts == []
        assert report.missing == []
        assert report.recommendations == []
        assert report.is_resolved

    def test_loaded_below_minimum_is_high(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry, {"auth": _state("auth", "2.29.1", "2.10.0", "2.10.0")},
        )
        assert not report.safe_to_proceed
        (conflict,) = report.conflicts
        assert conflict.kind is ConflictKind.BELOW_MINIMUM
        assert conflict.severity is ConflictSeverity.HIGH
        assert conflict.loaded_version == parse_version("2.10.0")
        assert conflict.required_version == parse_version("2.29.1")
        assert conflict.loaded_as == "auth"

    def test_high_conflict_recommendations(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry, {"auth": _state("auth", "2.29.1", "2.10.0", "2.10.0")},
        )
        assert report.recommendations == [
            "Unload capability auth (loaded 2.10.0, requires >= 2.29.1)",
            "Install capability auth at version >= 2.29.1",
        ]

    def test_high_conflict_with_compatible_install_needs_no_install(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry,
            {"auth": _state("auth", "2.29.1", "2.10.0", "2.30.0", "2.10.0")},
        )
        assert report.recommendations == [
            "Unload capability auth (loaded 2.10.0, requires >= 2.29.1)",
        ]

    def test_loaded_above_minimum_is_low(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry, {"auth": _state("auth", "2.29.1", "3.0.0")},
        )
        (conflict,) = report.conflicts
        assert conflict.kind is ConflictKind.ABOVE_MINIMUM
        assert conflict.severity is ConflictSeverity.LOW
        assert report.safe_to_proceed
        assert report.recommendations == []

    def test_available_compatible_is_clean(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry, {"auth": _state("auth", "2.29.1", None, "2.30.0")},
        )
        assert report.is_resolved
        assert not report.needs_remediation

    def test_available_incompatible_is_missing(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry, {"auth": _state("auth", "2.29.1", None, "2.10.0")},
        )
        (missing,) = report.missing
        assert missing.status is CapabilityStatus.AVAILABLE_INCOMPATIBLE
        assert report.recommendations == [
            "Install capability auth at version >= 2.29.1 (installed: 2.10.0)",
        ]

    def test_not_available_is_missing(self, auth_registry) -> None:
        report = ConflictDetector().detect(
            auth_registry, {"auth": _state("auth", "2.29.1")},
        )
        (missing,) = report.missing
        assert missing.status is CapabilityStatus.NOT_AVAILABLE
        assert report.safe_to_proceed
        assert not report.is_resolved


class TestReportShape:
    def test_two_missing_capabilities(self, auth_groups_registry) -> None:
        report = ConflictDetector().detect(
            auth_groups_registry,
            {
                "auth": _state("auth", "2.29.1"),
                "groups": _state("groups", "2.29.1"),
            },
        )
        assert report.safe_to_proceed
        assert len(report.missing) == 2
        assert report.recommendations == [
            "Install capability auth at version >= 2.29.1",
            "Install capability groups at version >= 2.29.1",
        ]

    def test_absent_state_treated_as_not_available(self, auth_registry) -> None:
        report = ConflictDetector().detect(auth_registry, {})
        assert report.states["auth"].status is CapabilityStatus.NOT_AVAILABLE
        assert len(report.missing) == 1

    def test_state_minimum_aligned_with_registry(self, auth_registry) -> None:
        stale = _state("auth", "1.0.0", "2.10.0")
        report = ConflictDetector().detect(auth_registry, {"auth": stale})
        assert report.states["auth"].min_version == parse_version("2.29.1")
        assert not report.safe_to_proceed

    def test_registry_order_preserved(self) -> None:
        registry = VersionRegistry.from_mapping({"zeta": "1.0.0", "alpha": "1.0.0"})
        report = ConflictDetector().detect(registry, {})
        assert [m.name for m in report.missing] == ["zeta", "alpha"]
        assert list(report.states) == ["zeta", "alpha"]
