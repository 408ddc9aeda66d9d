"""
Integration tests for report generation.

Tests cover:
- JSON report structure and counts
- Console report content for each section
"""

import asyncio
import json
from io import StringIO

import pytest
from rich.console import Console

from depguard.report import build_report_dict, generate_json_report, render_console_report
from depguard.review import ReviewEngine, ReviewResult
from depguard.schema import (
    InvalidLicenseChanges,
    PolicyConfig,
    load_policy_from_string,
    validate_changes,
)


@pytest.fixture
def failing_result(sample_policy_yaml, sample_changes, fake_lookup) -> ReviewResult:
    """Review the sample change list under the sample policy."""
    policy = load_policy_from_string(sample_policy_yaml)
    changes = validate_changes(sample_changes).value
    return asyncio.run(ReviewEngine(policy, fake_lookup).review(changes))


def _render(result: ReviewResult, verbose: bool = False) -> str:
    buffer = StringIO()
    console = Console(file=buffer, width=200, force_terminal=False, color_system=None)
    render_console_report(result, console=console, verbose=verbose)
    return buffer.getvalue()


class TestJsonReport:
    """Tests for the JSON report."""

    def test_round_trips(self, failing_result: ReviewResult) -> None:
        """Test that the report is valid JSON with every section."""
        report = json.loads(generate_json_report(failing_result))

        assert report["report_version"] == "1.0"
        assert "generated_at" in report
        for key in (
            "summary",
            "vulnerable_changes",
            "invalid_licenses",
            "denied_changes",
            "resolved_vulnerabilities",
        ):
            assert key in report

    def test_summary(self, failing_result: ReviewResult) -> None:
        """Test summary counts and verdict."""
        summary = build_report_dict(failing_result)["summary"]

        assert summary["success"] is False
        assert summary["exit_code"] == 1
        assert summary["manifests"] == ["package.json"]
        assert summary["counts"] == {
            "changes": 3,
            "vulnerable_changes": 1,
            "vulnerabilities": 1,
            "forbidden_licenses": 1,
            "unresolved_licenses": 0,
            "unlicensed": 0,
            "denied_changes": 1,
            "resolved_vulnerabilities": 1,
        }

    def test_sections_serialize_enums_as_strings(self, failing_result: ReviewResult) -> None:
        """Test that enum values are plain strings."""
        report = build_report_dict(failing_result)

        vulnerable = report["vulnerable_changes"][0]
        assert vulnerable["change_type"] == "added"
        assert vulnerable["vulnerabilities"][0]["severity"] == "high"
        assert report["resolved_vulnerabilities"][0]["severity"] == "critical"
        assert report["invalid_licenses"]["forbidden"][0]["license"] == "WTFPL"

    def test_indent(self, failing_result: ReviewResult) -> None:
        """Test the indent parameter."""
        assert "\n" not in generate_json_report(failing_result, indent=None)


class TestConsoleReport:
    """Tests for the console report."""

    def test_failing_sections(self, failing_result: ReviewResult) -> None:
        """Test that every failing section is printed."""
        output = _render(failing_result)

        assert "Vulnerabilities" in output
        assert "package.json" in output
        assert "Command Injection in lodash" in output
        assert "License Issues" in output
        assert "WTFPL" in output
        assert "Denied Packages" in output
        assert "left-pad" in output
        assert "FAILED" in output

    def test_resolved_only_in_verbose(self, failing_result: ReviewResult) -> None:
        """Test that resolved vulnerabilities need --verbose."""
        assert "GHSA-xvch-5gv4-984h" not in _render(failing_result)
        verbose = _render(failing_result, verbose=True)
        assert "GHSA-xvch-5gv4-984h" in verbose
        assert "https://github.com/advisories/GHSA-35jh-r3h4-6jhm" in verbose

    def test_passing(self) -> None:
        """Test the verdict for a clean review."""
        output = _render(ReviewResult(policy=PolicyConfig()))

        assert "PASSED" in output
        assert "License Issues" not in output

    def test_warn_only(self, failing_result: ReviewResult) -> None:
        """Test the verdict for a warn-only failure."""
        result = ReviewResult(
            policy=PolicyConfig(warn_only=True),
            denied_changes=failing_result.denied_changes,
        )
        assert "WARN ONLY" in _render(result)

    def test_manifests_in_summary(self, failing_result: ReviewResult) -> None:
        """Test that reviewed manifests are listed."""
        assert "Manifests" in _render(failing_result)

    def test_bracketed_package_data_printed_verbatim(self, make_change) -> None:
        """Test that square brackets in package data are not read as markup."""
        vulnerable = make_change(
            name="[/x]pkg",
            manifest="[/x]/package.json",
            vulnerabilities=[
                {
                    "severity": "high",
                    "advisory_ghsa_id": "GHSA-aaaa-bbbb-cccc",
                    "advisory_summary": "Overflow in [/x] parser",
                    "advisory_url": "https://example.com/[/x]",
                }
            ],
        )
        unresolved = make_change(name="[bold]odd", license="Custom [/see LICENSE] terms")
        result = ReviewResult(
            policy=PolicyConfig(),
            manifests=["[/x]/package.json"],
            vulnerable_changes=[vulnerable],
            invalid_licenses=InvalidLicenseChanges(unresolved=[unresolved]),
            denied_changes=[vulnerable],
        )

        output = _render(result, verbose=True)

        assert "[/x]pkg" in output
        assert "Overflow in [/x] parser" in output
        assert "https://example.com/[/x]" in output
        assert "Custom [/see LICENSE] terms" in output
        assert "[bold]odd" in output
        assert "FAILED" in output
