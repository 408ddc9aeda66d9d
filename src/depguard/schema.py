"""
Schema definitions for depguard.

This module defines all the Pydantic models used throughout depguard:
- Change/Vulnerability: One dependency difference and its advisories
- ResolvedVulnerability: An advisory that went away with a removed package
- InvalidLicenseChanges: The output of the license classifier
- PolicyConfig/LicenseException: What the organization allows and denies
- ValidationResult: Value-or-errors result returned at every input boundary

Design Decisions:
    - Models are immutable (frozen=True); normalizing a record means
      producing a new one with model_copy(), never assigning in place
    - Unknown fields are rejected so typos in policy files fail loudly
    - Policy keys accept both snake_case and the hyphenated form used by
      action inputs (fail_on_severity / fail-on-severity)
    - Boundary validators return ValidationResult instead of raising;
      the file loaders turn a failed result into a typed DepguardError
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from depguard import spdx
from depguard.errors import (
    ChangesLoadError,
    ChangesNotFoundError,
    LicenseListConflictError,
    PolicyConfigError,
    PolicyNotFoundError,
)
from depguard.purl import PackageURL, parse_purl


T = TypeVar("T")

LICENSE_CONFLICT_MESSAGE = "Can't specify both allow_licenses and deny_licenses"


# =============================================================================
# Enums
# =============================================================================


class Severity(str, Enum):
    """
    Advisory severity.

    Declaration order is the severity order, most severe first.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Position in SEVERITIES; lower is more severe."""
        return SEVERITIES.index(self)


SEVERITIES: tuple[Severity, ...] = tuple(Severity)


class ChangeType(str, Enum):
    """Whether a dependency was added or removed."""

    ADDED = "added"
    REMOVED = "removed"


class Scope(str, Enum):
    """Whether a dependency is needed at runtime or only for development."""

    UNKNOWN = "unknown"
    RUNTIME = "runtime"
    DEVELOPMENT = "development"


# =============================================================================
# Change Models
# =============================================================================


class Vulnerability(BaseModel):
    """
    A security advisory affecting a package version.

    Attributes:
        severity: Advisory severity
        advisory_ghsa_id: GitHub Security Advisory identifier
        advisory_summary: One-line advisory summary
        advisory_url: Link to the advisory
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    severity: Severity = Field(..., description="Advisory severity")
    advisory_ghsa_id: str = Field(..., description="GHSA identifier")
    advisory_summary: str = Field(default="", description="Advisory summary")
    advisory_url: str = Field(default="", description="Advisory URL")


class Change(BaseModel):
    """
    One dependency difference between two dependency-graph states.

    Attributes:
        change_type: added or removed
        manifest: Path of the manifest the dependency came from
        ecosystem: Package ecosystem as reported by the graph
        name: Package name
        version: Package version
        package_url: Raw package URL string
        license: License expression, or None if unknown
        source_repository_url: Where the source lives, if known
        scope: runtime, development or unknown
        vulnerabilities: Advisories affecting this version, in order
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    change_type: ChangeType = Field(..., description="added or removed")
    manifest: str = Field(..., description="Originating manifest path")
    ecosystem: str = Field(..., description="Package ecosystem")
    name: str = Field(..., description="Package name")
    version: str = Field(..., description="Package version")
    package_url: str = Field(..., description="Raw package URL")
    license: str | None = Field(default=None, description="License expression")
    source_repository_url: str | None = Field(
        default=None,
        description="Source repository URL",
    )
    scope: Scope = Field(default=Scope.UNKNOWN, description="Dependency scope")
    vulnerabilities: list[Vulnerability] = Field(
        default_factory=list,
        description="Advisories affecting this version",
    )

    @field_validator("scope", mode="before")
    @classmethod
    def default_missing_scope(cls, v: Any) -> Any:
        return Scope.UNKNOWN if v is None else v

    @field_validator("vulnerabilities", mode="before")
    @classmethod
    def default_missing_vulnerabilities(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def is_removed(self) -> bool:
        return self.change_type == ChangeType.REMOVED


class ResolvedVulnerability(BaseModel):
    """
    A vulnerability that disappears because its package was removed.

    Carries the advisory fields plus the identity of the removed package.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    severity: Severity
    advisory_ghsa_id: str
    advisory_summary: str
    advisory_url: str
    package_name: str
    package_version: str
    package_url: str
    manifest: str
    ecosystem: str


class InvalidLicenseChanges(BaseModel):
    """
    Result of license classification.

    A change appears in at most one bucket.

    Attributes:
        forbidden: License is valid but violates the allow/deny list
        unresolved: License could not be evaluated (invalid SPDX)
        unlicensed: No license could be found
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    forbidden: list[Change] = Field(default_factory=list)
    unresolved: list[Change] = Field(default_factory=list)
    unlicensed: list[Change] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.forbidden) + len(self.unresolved) + len(self.unlicensed)

    def all(self) -> list[Change]:
        """All classified changes, in bucket order."""
        return [*self.forbidden, *self.unresolved, *self.unlicensed]


# =============================================================================
# Policy Models
# =============================================================================


def _split_list(v: Any) -> Any:
    """Accept "a, b, c" wherever a list of strings is expected."""
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


def _to_purl(v: Any) -> Any:
    if isinstance(v, str):
        purl = parse_purl(v.strip())
        if purl.error:
            msg = f"Invalid package URL {v!r}: {purl.error}"
            raise ValueError(msg)
        return purl
    return v


class LicenseException(BaseModel):
    """
    A per-dependency license exception.

    Without a license, the exception exempts the package from license checks
    entirely. With a license, the exemption only applies when the package's
    license is exactly that string.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    purl: PackageURL = Field(..., description="Package the exception applies to")
    license: str | None = Field(
        default=None,
        description="Exact license string the exception applies to",
    )

    @model_validator(mode="before")
    @classmethod
    def accept_bare_purl(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"purl": data}
        return data

    @field_validator("purl", mode="before")
    @classmethod
    def parse_purl_string(cls, v: Any) -> Any:
        return _to_purl(v)

    @property
    def is_wildcard(self) -> bool:
        return self.license is None


class PolicyConfig(BaseModel):
    """
    Complete policy configuration.

    Attributes:
        fail_on_severity: Minimum advisory severity that counts as a failure
        fail_on_scopes: Dependency scopes whose advisories are evaluated
        allow_licenses: SPDX identifiers that are allowed (exclusive with deny)
        deny_licenses: SPDX identifiers that are denied (exclusive with allow)
        allow_dependencies_licenses: Per-package license exceptions
        deny_packages: Packages that may never be added
        deny_groups: Namespaces whose packages may never be added
        allow_ghsas: Advisory IDs to ignore
        license_check: Whether to classify licenses at all
        vulnerability_check: Whether to evaluate advisories at all
        warn_only: Report problems without failing
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=lambda name: name.replace("_", "-"),
    )

    fail_on_severity: Severity = Field(
        default=Severity.LOW,
        description="Minimum severity that fails the review",
    )
    fail_on_scopes: list[Scope] = Field(
        default_factory=lambda: [Scope.RUNTIME],
        description="Scopes whose vulnerabilities are evaluated",
    )
    allow_licenses: list[str] | None = Field(
        default=None,
        description="Allowed SPDX license identifiers",
    )
    deny_licenses: list[str] | None = Field(
        default=None,
        description="Denied SPDX license identifiers",
    )
    allow_dependencies_licenses: list[LicenseException] = Field(
        default_factory=list,
        description="Per-package license exceptions",
    )
    deny_packages: list[PackageURL] = Field(
        default_factory=list,
        description="Denied packages (optionally pinned to a version)",
    )
    deny_groups: list[PackageURL] = Field(
        default_factory=list,
        description="Denied namespaces",
    )
    allow_ghsas: list[str] | None = Field(
        default=None,
        description="Advisory IDs to ignore",
    )
    license_check: bool = Field(default=True, description="Run license checks")
    vulnerability_check: bool = Field(
        default=True,
        description="Run vulnerability checks",
    )
    warn_only: bool = Field(default=False, description="Never fail the review")

    @field_validator(
        "fail_on_scopes",
        "allow_licenses",
        "deny_licenses",
        "allow_dependencies_licenses",
        "deny_packages",
        "deny_groups",
        "allow_ghsas",
        mode="before",
    )
    @classmethod
    def split_comma_separated(cls, v: Any) -> Any:
        return _split_list(v)

    @field_validator("deny_packages", "deny_groups", mode="before")
    @classmethod
    def parse_purl_strings(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_to_purl(item) for item in v]
        return v

    @field_validator("allow_licenses", "deny_licenses")
    @classmethod
    def validate_spdx_identifiers(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        invalid = [license_id for license_id in v if not spdx.is_valid(license_id)]
        if invalid:
            msg = f"Invalid SPDX license identifier(s): {', '.join(invalid)}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_license_lists_exclusive(self) -> "PolicyConfig":
        if self.allow_licenses and self.deny_licenses:
            raise ValueError(LICENSE_CONFLICT_MESSAGE)
        return self

    @property
    def wildcard_exceptions(self) -> list[LicenseException]:
        return [e for e in self.allow_dependencies_licenses if e.is_wildcard]

    @property
    def licensed_exceptions(self) -> list[LicenseException]:
        return [e for e in self.allow_dependencies_licenses if not e.is_wildcard]


# =============================================================================
# Boundary Validation
# =============================================================================


@dataclass
class ValidationResult(Generic[T]):
    """
    Outcome of validating untrusted input.

    Exactly one of ``value`` and ``errors`` is meaningful: ``value`` is set
    when validation succeeded, ``errors`` is non-empty when it failed.
    """

    value: T | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, errors: list[str]) -> "ValidationResult[T]":
        return cls(errors=errors)


_CHANGES_ADAPTER = TypeAdapter(list[Change])


def _flatten_errors(error: ValidationError) -> list[str]:
    messages = []
    for detail in error.errors():
        loc = ".".join(str(part) for part in detail["loc"])
        msg = detail["msg"].removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return messages


def validate_changes(data: Any) -> ValidationResult[list[Change]]:
    """
    Validate a raw change list (as decoded from JSON).

    Never raises for bad data; returns the validated changes or the list of
    problems found.
    """
    if not isinstance(data, list):
        return ValidationResult.failure(["change list must be a JSON array"])
    try:
        return ValidationResult.success(_CHANGES_ADAPTER.validate_python(data))
    except ValidationError as e:
        return ValidationResult.failure(_flatten_errors(e))


def validate_policy(data: Any) -> ValidationResult[PolicyConfig]:
    """
    Validate a raw policy mapping (as decoded from YAML).

    An empty document yields the default policy.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return ValidationResult.failure(["policy must be a mapping"])
    try:
        return ValidationResult.success(PolicyConfig.model_validate(data))
    except ValidationError as e:
        return ValidationResult.failure(_flatten_errors(e))


# =============================================================================
# Loading Helpers
# =============================================================================


def _raise_policy_error(errors: list[str], source: str) -> None:
    if any(LICENSE_CONFLICT_MESSAGE in e for e in errors):
        raise LicenseListConflictError(source=source, errors=errors)
    raise PolicyConfigError(source=source, errors=errors)


def load_policy(path: Path | str) -> PolicyConfig:
    """
    Load a policy from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated PolicyConfig object

    Raises:
        PolicyNotFoundError: If the file doesn't exist
        LicenseListConflictError: If both license lists are set
        PolicyConfigError: If the YAML is malformed or invalid
    """
    path = Path(path)
    if not path.is_file():
        raise PolicyNotFoundError(source=str(path))
    return load_policy_from_string(path.read_text(encoding="utf-8"), source=str(path))


def load_policy_from_string(content: str, source: str = "<string>") -> PolicyConfig:
    """Load a policy from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyConfigError(source=source, errors=[f"invalid YAML: {e}"]) from e

    result = validate_policy(data)
    if not result.ok:
        _raise_policy_error(result.errors, source)
    return result.value


def load_changes(path: Path | str) -> list[Change]:
    """
    Load a change list from a JSON file.

    The file holds the array returned by the dependency-graph compare API.

    Raises:
        ChangesNotFoundError: If the file doesn't exist
        ChangesLoadError: If the JSON is malformed or invalid
    """
    path = Path(path)
    if not path.is_file():
        raise ChangesNotFoundError(source=str(path))
    return load_changes_from_string(path.read_text(encoding="utf-8"), source=str(path))


def load_changes_from_string(content: str, source: str = "<string>") -> list[Change]:
    """Load a change list from a JSON string."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ChangesLoadError(source=source, errors=[f"invalid JSON: {e}"]) from e

    result = validate_changes(data)
    if not result.ok:
        raise ChangesLoadError(source=source, errors=result.errors)
    return result.value


# =============================================================================
# Change Helpers
# =============================================================================


def group_by_manifest(changes: Iterable[Change]) -> dict[str, list[Change]]:
    """Group changes by manifest, keeping first-seen manifest order."""
    grouped: dict[str, list[Change]] = {}
    for change in changes:
        grouped.setdefault(change.manifest, []).append(change)
    return grouped


def manifests(changes: Iterable[Change]) -> set[str]:
    return {change.manifest for change in changes}
