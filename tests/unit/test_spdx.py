"""
Unit tests for SPDX expression evaluation.

Tests cover:
- Validity of identifiers, compound expressions and references
- satisfies / satisfies_any / satisfies_all semantics
- OTHER placeholder substitution
- Totality: malformed input returns False instead of raising
"""

import pytest

from depguard import spdx


class TestIsValid:
    """Tests for is_valid."""

    @pytest.mark.parametrize(
        "expr",
        [
            "MIT",
            "Apache-2.0",
            "MIT OR Apache-2.0",
            "MIT AND (BSD-3-Clause OR ISC)",
            "LicenseRef-my-company-license",
        ],
    )
    def test_valid(self, expr: str) -> None:
        """Test that known identifiers and references are valid."""
        assert spdx.is_valid(expr)

    @pytest.mark.parametrize(
        "expr",
        [
            "FOOBARBAZ",
            "",
            "   ",
            "NOASSERTION",
            "MIT AND (",
            "MIT OR NOASSERTION",
        ],
    )
    def test_invalid(self, expr: str) -> None:
        """Test that unknown, empty and malformed expressions are invalid."""
        assert not spdx.is_valid(expr)


class TestSatisfies:
    """Tests for satisfies."""

    def test_identical(self) -> None:
        """Test that a license satisfies itself."""
        assert spdx.satisfies("MIT", "MIT")

    def test_one_branch_allowed(self) -> None:
        """Test that one allowed OR-branch is enough."""
        assert spdx.satisfies("MIT OR GPL-3.0-only", "MIT")

    def test_conjunction_needs_every_license(self) -> None:
        """Test that an AND candidate needs all its licenses allowed."""
        assert not spdx.satisfies("MIT AND ISC", "MIT")
        assert spdx.satisfies("MIT AND ISC", "MIT OR ISC")

    def test_constraint_operators_do_not_narrow(self) -> None:
        """Test that a license appearing anywhere in the constraint is allowed."""
        assert spdx.satisfies("MIT", "MIT AND (GPL-2.0-only OR ISC)")

    def test_not_allowed(self) -> None:
        """Test that an absent license is not allowed."""
        assert not spdx.satisfies("GPL-3.0-only", "MIT OR Apache-2.0")

    def test_case_insensitive(self) -> None:
        """Test that identifiers compare case-insensitively."""
        assert spdx.satisfies("mit", "MIT")

    def test_malformed_is_false(self) -> None:
        """Test that malformed input returns False."""
        assert not spdx.satisfies("MIT AND (", "MIT")
        assert not spdx.satisfies("MIT", "")


class TestSatisfiesAnyAll:
    """Tests for satisfies_any and satisfies_all."""

    def test_any(self) -> None:
        """Test that one covered branch satisfies any."""
        assert spdx.satisfies_any("MIT OR Apache-2.0", ["MIT"])
        assert not spdx.satisfies_any("GPL-3.0-only", ["MIT", "Apache-2.0"])

    def test_any_conjunction(self) -> None:
        """Test that a conjunction must be fully covered."""
        assert not spdx.satisfies_any("MIT AND GPL-3.0-only", ["MIT"])
        assert spdx.satisfies_any("MIT AND GPL-3.0-only", ["MIT", "GPL-3.0-only"])

    def test_all(self) -> None:
        """Test that every branch must be covered."""
        assert spdx.satisfies_all("MIT AND Apache-2.0", ["MIT", "Apache-2.0"])
        assert not spdx.satisfies_all("MIT AND Apache-2.0", ["MIT"])
        assert not spdx.satisfies_all("MIT OR Apache-2.0", ["MIT"])
        assert spdx.satisfies_all("MIT OR Apache-2.0", ["MIT", "Apache-2.0"])

    def test_malformed_is_false(self) -> None:
        """Test that malformed input returns False."""
        assert not spdx.satisfies_any("(((", ["MIT"])
        assert not spdx.satisfies_all("(((", ["MIT"])
        assert not spdx.satisfies_any("", ["MIT"])


class TestOther:
    """Tests for OTHER placeholder substitution."""

    def test_replaces_standalone_other(self) -> None:
        """Test that a bare OTHER is replaced."""
        assert spdx.replace_other("MIT OR OTHER") == f"MIT OR {spdx.OTHER_PLACEHOLDER}"

    def test_keeps_other_inside_identifiers(self) -> None:
        """Test that OTHER inside a hyphenated identifier is kept."""
        assert spdx.replace_other("LicenseRef-OTHER-1") == "LicenseRef-OTHER-1"

    def test_other_never_satisfies(self) -> None:
        """Test that OTHER is never allowed on its own."""
        assert not spdx.satisfies("MIT AND OTHER", "MIT")
        assert spdx.satisfies("MIT OR OTHER", "MIT")
