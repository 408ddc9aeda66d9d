"""
Exception hierarchy for depguard.

All depguard exceptions inherit from DepguardError, allowing callers to catch
all depguard-specific exceptions with a single except clause.

Exception Categories:
    - PolicyConfigError: The policy configuration is invalid
    - ChangesLoadError: The change list could not be read or validated
    - LicenseLookupError: A repository license lookup returned garbage

Only the first two ever reach the caller. Malformed package URLs and license
expressions are never raised: they surface as an ``error`` field, a ``False``
result, or the ``unresolved`` license bucket. LicenseLookupError is raised
inside the GitHub client and converted to "no license" at the classifier.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Policy configuration errors: 1xxx
ERROR_POLICY_INVALID = 1001
ERROR_POLICY_LICENSE_CONFLICT = 1002
ERROR_POLICY_NOT_FOUND = 1003

# Change list errors: 2xxx
ERROR_CHANGES_INVALID = 2001
ERROR_CHANGES_NOT_FOUND = 2002

# Collaborator errors: 3xxx
ERROR_LOOKUP_FAILED = 3001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class DepguardError(Exception):
    """
    Base exception for all depguard errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Policy Configuration Errors
# =============================================================================


@dataclass
class PolicyConfigError(DepguardError):
    """
    Raised when a policy configuration fails validation.

    Attributes:
        source: Where the policy came from (file path or "<string>")
        errors: Flattened validation messages
    """

    source: str = ""
    errors: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            detail = "; ".join(self.errors) if self.errors else "unknown error"
            self.message = f"Invalid policy configuration: {detail}"
        if self.code == 0:
            self.code = ERROR_POLICY_INVALID
        self.context.update({
            "source": self.source,
            "errors": self.errors,
        })


@dataclass
class LicenseListConflictError(PolicyConfigError):
    """Raised when both an allow list and a deny list of licenses are set."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Can't specify both allow_licenses and deny_licenses"
        if self.code == 0:
            self.code = ERROR_POLICY_LICENSE_CONFLICT
        if not self.suggestion:
            self.suggestion = "Keep either allow_licenses or deny_licenses, not both"
        super().__post_init__()


@dataclass
class PolicyNotFoundError(PolicyConfigError):
    """Raised when the policy file does not exist."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Policy file not found: {self.source}"
        if self.code == 0:
            self.code = ERROR_POLICY_NOT_FOUND
        super().__post_init__()


# =============================================================================
# Change List Errors
# =============================================================================


@dataclass
class ChangesLoadError(DepguardError):
    """
    Raised when a change list cannot be loaded.

    Attributes:
        source: Where the change list came from
        errors: Flattened validation messages
    """

    source: str = ""
    errors: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            detail = "; ".join(self.errors[:5]) if self.errors else "unknown error"
            if len(self.errors) > 5:
                detail += f" (and {len(self.errors) - 5} more)"
            self.message = f"Invalid change list: {detail}"
        if self.code == 0:
            self.code = ERROR_CHANGES_INVALID
        self.context.update({
            "source": self.source,
            "errors": self.errors,
        })


@dataclass
class ChangesNotFoundError(ChangesLoadError):
    """Raised when the change list file does not exist."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Change list not found: {self.source}"
        if self.code == 0:
            self.code = ERROR_CHANGES_NOT_FOUND
        super().__post_init__()


# =============================================================================
# Collaborator Errors
# =============================================================================


@dataclass
class LicenseLookupError(DepguardError):
    """
    Raised when a repository license lookup fails.

    Never escapes the license classifier; a failed lookup means the change
    is treated as having no license.
    """

    owner: str = ""
    repo: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"License lookup failed for {self.owner}/{self.repo}: "
                f"{self.underlying_error}"
            )
        if self.code == 0:
            self.code = ERROR_LOOKUP_FAILED
        self.context.update({
            "owner": self.owner,
            "repo": self.repo,
            "underlying_error": self.underlying_error,
        })
