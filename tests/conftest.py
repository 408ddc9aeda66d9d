"""
Pytest configuration and fixtures for depguard tests.

This module provides shared fixtures used across unit and integration
tests.
"""

import asyncio
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import pytest

from depguard.schema import Change


DEFAULT_CHANGE: dict[str, Any] = {
    "change_type": "added",
    "manifest": "package.json",
    "ecosystem": "npm",
    "name": "lodash",
    "version": "4.17.20",
    "package_url": "pkg:npm/lodash@4.17.20",
    "license": "MIT",
    "source_repository_url": "https://github.com/lodash/lodash",
    "scope": "runtime",
    "vulnerabilities": [
        {
            "severity": "high",
            "advisory_ghsa_id": "GHSA-35jh-r3h4-6jhm",
            "advisory_summary": "Command Injection in lodash",
            "advisory_url": "https://github.com/advisories/GHSA-35jh-r3h4-6jhm",
        },
        {
            "severity": "moderate",
            "advisory_ghsa_id": "GHSA-29mw-wpgm-hmr9",
            "advisory_summary": "Regular Expression Denial of Service (ReDoS) in lodash",
            "advisory_url": "https://github.com/advisories/GHSA-29mw-wpgm-hmr9",
        },
    ],
}


class FakeLicenseLookup:
    """
    In-memory stand-in for GitHubLicenseClient.

    Attributes:
        licenses: "owner/repo" -> SPDX id (missing keys return None)
        failing: "owner/repo" keys whose lookup raises
        delays: "owner/repo" -> seconds to sleep before answering
        calls: (owner, repo) pairs in call order
    """

    def __init__(
        self,
        licenses: dict[str, str | None] | None = None,
        failing: set[str] | None = None,
        delays: dict[str, float] | None = None,
        host: str = "github.com",
    ) -> None:
        self.licenses = licenses or {}
        self.failing = failing or set()
        self.delays = delays or {}
        self.host = host
        self.calls: list[tuple[str, str]] = []

    async def lookup_repository_license(self, owner: str, repo: str) -> str | None:
        key = f"{owner}/{repo}"
        self.calls.append((owner, repo))
        if key in self.delays:
            await asyncio.sleep(self.delays[key])
        if key in self.failing:
            raise RuntimeError(f"lookup exploded for {key}")
        return self.licenses.get(key)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_change() -> Callable[..., Change]:
    """Return a factory for Change objects with lodash defaults."""

    def factory(**overrides: Any) -> Change:
        return Change(**{**DEFAULT_CHANGE, **overrides})

    return factory


@pytest.fixture
def fake_lookup() -> FakeLicenseLookup:
    """Return a license lookup that knows no licenses."""
    return FakeLicenseLookup()


@pytest.fixture
def make_lookup() -> Callable[..., FakeLicenseLookup]:
    """Return a factory for configured FakeLicenseLookup objects."""
    return FakeLicenseLookup


@pytest.fixture
def sample_policy_yaml() -> str:
    """Return a typical policy YAML for testing."""
    return """
fail_on_severity: moderate
fail_on_scopes:
  - runtime
allow_licenses:
  - MIT
  - Apache-2.0
  - BSD-3-Clause
deny_packages:
  - pkg:npm/left-pad
deny_groups:
  - pkg:maven/org.apache.logging.log4j/
allow_ghsas:
  - GHSA-29mw-wpgm-hmr9
"""


@pytest.fixture
def sample_changes() -> list[dict[str, Any]]:
    """Return a raw change list as found in a compare API response."""
    return [
        DEFAULT_CHANGE,
        {
            **DEFAULT_CHANGE,
            "name": "left-pad",
            "version": "1.3.0",
            "package_url": "pkg:npm/left-pad@1.3.0",
            "license": "WTFPL",
            "source_repository_url": None,
            "vulnerabilities": [],
        },
        {
            **DEFAULT_CHANGE,
            "change_type": "removed",
            "name": "minimist",
            "version": "0.0.8",
            "package_url": "pkg:npm/minimist@0.0.8",
            "vulnerabilities": [
                {
                    "severity": "critical",
                    "advisory_ghsa_id": "GHSA-xvch-5gv4-984h",
                    "advisory_summary": "Prototype Pollution in minimist",
                    "advisory_url": "https://github.com/advisories/GHSA-xvch-5gv4-984h",
                }
            ],
        },
    ]
