"""
Review orchestration for depguard.

The ReviewEngine runs every policy check over one change list and combines
the results into a single ReviewResult. It coordinates between:
- Denylist matcher: Packages that may never be added
- License classifier: Forbidden, unresolved and unlicensed licenses
- Vulnerability filters: Advisories the policy cares about
- Resolved extractor: Advisories fixed by removed packages

Review Flow:
    1. Match added changes against the deny lists
    2. Classify licenses (if license_check)
    3. Filter added changes by scope, allowed advisories, then severity
       (if vulnerability_check)
    4. Collect vulnerabilities resolved by removed changes
    5. Derive pass/fail; warn_only turns a failure into exit code 0

Design Principles:
    - The checks only classify; pass/fail is decided here, once
    - Unlicensed dependencies warn but never fail
    - Input changes are never mutated
"""

import logging
import time
from dataclasses import dataclass, field

from depguard.github import LicenseLookup
from depguard.policy import (
    classify_licenses,
    extract_resolved_vulnerabilities,
    filter_allowed_advisories,
    filter_by_scope,
    filter_by_severity,
    match_denylist,
)
from depguard.policy.licenses import DEFAULT_MAX_CONCURRENCY
from depguard.schema import (
    Change,
    InvalidLicenseChanges,
    PolicyConfig,
    ResolvedVulnerability,
    manifests,
)


logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


@dataclass
class ReviewResult:
    """
    Result of reviewing one change list.

    Attributes:
        policy: The policy the review ran under
        total_changes: Number of changes reviewed
        manifests: Manifests touched by the change list, sorted
        denied_changes: Added changes matched by the deny lists
        invalid_licenses: License classification buckets
        vulnerable_changes: Added changes with advisories the policy fails on
        resolved_vulnerabilities: Advisories fixed by removed packages
        duration_ms: Total review time in milliseconds
    """

    policy: PolicyConfig
    total_changes: int = 0
    manifests: list[str] = field(default_factory=list)
    denied_changes: list[Change] = field(default_factory=list)
    invalid_licenses: InvalidLicenseChanges = field(
        default_factory=InvalidLicenseChanges
    )
    vulnerable_changes: list[Change] = field(default_factory=list)
    resolved_vulnerabilities: list[ResolvedVulnerability] = field(
        default_factory=list
    )
    duration_ms: float = 0.0

    @property
    def vulnerability_count(self) -> int:
        return sum(len(change.vulnerabilities) for change in self.vulnerable_changes)

    @property
    def success(self) -> bool:
        """Whether the change list passes the policy."""
        return not (
            self.denied_changes
            or self.vulnerable_changes
            or self.invalid_licenses.forbidden
            or self.invalid_licenses.unresolved
        )

    @property
    def has_warnings(self) -> bool:
        return bool(self.invalid_licenses.unlicensed)

    @property
    def exit_code(self) -> int:
        if self.success or self.policy.warn_only:
            return EXIT_SUCCESS
        return EXIT_FAILURE


class ReviewEngine:
    """
    Runs policy checks over dependency change lists.

    Usage:
        async with GitHubLicenseClient(token=token) as lookup:
            engine = ReviewEngine(policy, lookup)
            result = await engine.review(changes)
        sys.exit(result.exit_code)

    Attributes:
        policy: The policy configuration to enforce
        lookup: Repository license lookup used by the license classifier
        max_concurrency: Maximum number of license lookups in flight
    """

    def __init__(
        self,
        policy: PolicyConfig,
        lookup: LicenseLookup,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self.policy = policy
        self.lookup = lookup
        self.max_concurrency = max_concurrency

    async def review(self, changes: list[Change]) -> ReviewResult:
        """
        Review a change list against the policy.

        Args:
            changes: Validated dependency changes

        Returns:
            ReviewResult with every check's findings
        """
        start = time.perf_counter()
        policy = self.policy
        logger.info("Reviewing %d dependency changes", len(changes))

        denied = match_denylist(changes, policy.deny_packages, policy.deny_groups)
        logger.debug("%d changes matched the deny lists", len(denied))

        if policy.license_check:
            invalid_licenses = await classify_licenses(
                changes,
                policy,
                self.lookup,
                max_concurrency=self.max_concurrency,
            )
            logger.debug("%d changes have license issues", invalid_licenses.count)
        else:
            invalid_licenses = InvalidLicenseChanges()

        vulnerable: list[Change] = []
        if policy.vulnerability_check:
            added = [change for change in changes if not change.is_removed]
            vulnerable = filter_by_scope(policy.fail_on_scopes, added)
            vulnerable = filter_allowed_advisories(policy.allow_ghsas, vulnerable)
            vulnerable = filter_by_severity(policy.fail_on_severity, vulnerable)
            logger.debug("%d changes have vulnerabilities", len(vulnerable))

        result = ReviewResult(
            policy=policy,
            total_changes=len(changes),
            manifests=sorted(manifests(changes)),
            denied_changes=denied,
            invalid_licenses=invalid_licenses,
            vulnerable_changes=vulnerable,
            resolved_vulnerabilities=extract_resolved_vulnerabilities(changes),
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        logger.info(
            "Review %s in %.1fms", "passed" if result.success else "failed",
            result.duration_ms,
        )
        return result
