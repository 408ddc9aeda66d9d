"""
Unit tests for the vulnerability filters.

Tests cover:
- Severity threshold filtering
- Scope filtering
- Allowed advisory removal (which never drops changes)
- Inputs are never mutated
"""

import pytest

from depguard.policy import (
    filter_allowed_advisories,
    filter_by_scope,
    filter_by_severity,
)
from depguard.schema import SEVERITIES, Scope, Severity


def _vuln(severity: str, ghsa: str) -> dict:
    return {
        "severity": severity,
        "advisory_ghsa_id": ghsa,
        "advisory_summary": "summary",
        "advisory_url": "github.com/future-funk",
    }


@pytest.fixture
def npm_change(make_change):
    return make_change(
        name="Reeuhq",
        scope="runtime",
        vulnerabilities=[_vuln("critical", "first-random_string")],
    )


@pytest.fixture
def ruby_change(make_change):
    return make_change(
        name="actionsomething",
        scope="development",
        vulnerabilities=[
            _vuln("moderate", "second-random_string"),
            _vuln("low", "third-random_string"),
        ],
    )


@pytest.fixture
def clean_change(make_change):
    return make_change(name="helpful", scope="runtime", vulnerabilities=[])


class TestSeverity:
    """Tests for Severity ordering."""

    def test_order(self) -> None:
        """Test that severities are listed most severe first."""
        assert SEVERITIES == (Severity.CRITICAL, Severity.HIGH, Severity.MODERATE, Severity.LOW)
        assert Severity.CRITICAL.rank < Severity.LOW.rank


class TestFilterBySeverity:
    """Tests for filter_by_severity."""

    def test_high_threshold(self, npm_change, ruby_change) -> None:
        """Test that only critical/high vulnerabilities survive a high threshold."""
        assert filter_by_severity(Severity.HIGH, [npm_change, ruby_change]) == [npm_change]

    def test_low_threshold_keeps_everything(self, npm_change, ruby_change) -> None:
        """Test that a low threshold keeps all vulnerabilities."""
        assert filter_by_severity(Severity.LOW, [npm_change, ruby_change]) == [npm_change, ruby_change]

    def test_narrows_vulnerabilities(self, ruby_change) -> None:
        """Test that a change keeps only its qualifying vulnerabilities."""
        result = filter_by_severity(Severity.MODERATE, [ruby_change])

        assert len(result) == 1
        assert [v.advisory_ghsa_id for v in result[0].vulnerabilities] == ["second-random_string"]
        assert len(ruby_change.vulnerabilities) == 2

    def test_drops_changes_without_vulnerabilities(self, clean_change) -> None:
        """Test that changes with no vulnerabilities are dropped."""
        assert filter_by_severity(Severity.LOW, [clean_change]) == []


class TestFilterByScope:
    """Tests for filter_by_scope."""

    def test_runtime(self, npm_change, ruby_change) -> None:
        """Test filtering to runtime."""
        assert filter_by_scope([Scope.RUNTIME], [npm_change, ruby_change]) == [npm_change]

    def test_development(self, npm_change, ruby_change) -> None:
        """Test filtering to development."""
        assert filter_by_scope([Scope.DEVELOPMENT], [npm_change, ruby_change]) == [ruby_change]

    def test_both(self, npm_change, ruby_change) -> None:
        """Test filtering to several scopes keeps order."""
        result = filter_by_scope([Scope.RUNTIME, Scope.DEVELOPMENT], [npm_change, ruby_change])
        assert result == [npm_change, ruby_change]

    def test_unknown_scope_excluded_by_default_scopes(self, make_change) -> None:
        """Test that unknown scope doesn't match runtime."""
        change = make_change(scope=None)
        assert change.scope == Scope.UNKNOWN
        assert filter_by_scope([Scope.RUNTIME], [change]) == []


class TestFilterAllowedAdvisories:
    """Tests for filter_allowed_advisories."""

    def test_none_is_noop(self, npm_change, ruby_change) -> None:
        """Test that None leaves the changes untouched."""
        changes = [npm_change, ruby_change]
        result = filter_allowed_advisories(None, changes)

        assert result == changes
        assert result is not changes

    def test_unknown_id(self, npm_change, ruby_change, clean_change) -> None:
        """Test that an unrelated ID changes nothing."""
        changes = [npm_change, ruby_change, clean_change]
        assert filter_allowed_advisories(["notrealGHSAID"], changes) == changes

    def test_strips_advisory_but_keeps_change(self, npm_change, ruby_change, clean_change) -> None:
        """Test that a change whose only advisory is allowed stays, with none left."""
        result = filter_allowed_advisories(["first-random_string"], [npm_change, ruby_change, clean_change])

        assert [c.name for c in result] == ["Reeuhq", "actionsomething", "helpful"]
        assert result[0].vulnerabilities == []
        assert result[1] == ruby_change

    def test_partial(self, ruby_change) -> None:
        """Test that only the allowed advisory is removed."""
        result = filter_allowed_advisories(["second-random_string"], [ruby_change])

        assert [v.advisory_ghsa_id for v in result[0].vulnerabilities] == ["third-random_string"]
        assert len(ruby_change.vulnerabilities) == 2

    def test_then_severity_drops_emptied_changes(self, npm_change, ruby_change, clean_change) -> None:
        """Test that severity filtering after allow-listing drops emptied changes."""
        allowed = ["first-random_string", "second-random_string", "third-random_string"]
        result = filter_by_severity(
            Severity.LOW,
            filter_allowed_advisories(allowed, [npm_change, ruby_change, clean_change]),
        )
        assert result == []
