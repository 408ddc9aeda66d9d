"""
License classifier.

Sorts added dependencies into three buckets:
    - forbidden: the license is valid SPDX but the policy rejects it
    - unresolved: the license is not valid SPDX, so it cannot be judged
    - unlicensed: no license could be found, even after a repository lookup

How it works:
    1. Drop changes covered by a package-wide license exception
    2. Fill in missing (or truncated) licenses from the source repository
    3. Drop changes covered by a license-specific exception
    4. Check what is left against the allow or deny list

Lookups are the only I/O. They run concurrently with a fixed upper bound,
and a failed lookup only affects its own change.
"""

import asyncio
import logging

from depguard import spdx
from depguard.github import LicenseLookup, parse_github_url
from depguard.purl import PackageURL, parse_purl, purls_match
from depguard.schema import (
    Change,
    InvalidLicenseChanges,
    LicenseException,
    PolicyConfig,
)


logger = logging.getLogger(__name__)

# The dependency graph cuts license strings at this length. A string of
# exactly this length that does not parse was probably truncated.
TRUNCATED_LICENSE_LENGTH = 255

DEFAULT_MAX_CONCURRENCY = 8


async def classify_licenses(
    changes: list[Change],
    policy: PolicyConfig,
    lookup: LicenseLookup,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> InvalidLicenseChanges:
    """
    Classify the licenses of added dependencies.

    Removed changes are ignored. Each remaining change lands in at most one
    bucket; changes with an acceptable license land in none.

    Args:
        changes: The dependency changes to classify
        policy: Policy providing allow/deny lists and exceptions
        lookup: Repository license lookup for changes without a license
        max_concurrency: Maximum number of lookups in flight

    Returns:
        InvalidLicenseChanges with forbidden, unresolved and unlicensed lists
    """
    added = [change for change in changes if not change.is_removed]

    wildcards = [e.purl for e in policy.wildcard_exceptions]
    candidates = [
        change for change in added
        if not _matches_any(_purl_of(change), wildcards)
    ]

    resolved, unlicensed = await _resolve_licenses(
        candidates, lookup, max(1, max_concurrency)
    )

    licensed_exceptions = policy.licensed_exceptions
    remaining = [
        change for change in resolved
        if not _is_excepted(change, licensed_exceptions)
    ]

    forbidden: list[Change] = []
    unresolved: list[Change] = []
    has_list = bool(policy.allow_licenses) or bool(policy.deny_licenses)
    cache: dict[str, str | None] = {}

    for change in remaining:
        license_expr = change.license or ""
        if license_expr == spdx.NOASSERTION:
            unlicensed.append(change)
            continue
        if not has_list:
            continue

        if license_expr not in cache:
            cache[license_expr] = _evaluate(license_expr, policy)
        else:
            logger.debug("License cache hit for %r", license_expr)

        bucket = cache[license_expr]
        if bucket == "unresolved":
            unresolved.append(change)
        elif bucket == "forbidden":
            forbidden.append(change)

    return InvalidLicenseChanges(
        forbidden=forbidden,
        unresolved=unresolved,
        unlicensed=unlicensed,
    )


# =============================================================================
# License Resolution
# =============================================================================


def _needs_resolution(change: Change) -> bool:
    if change.license is None:
        return True
    return (
        len(change.license) == TRUNCATED_LICENSE_LENGTH
        and not spdx.is_valid(change.license)
    )


async def _resolve_licenses(
    changes: list[Change],
    lookup: LicenseLookup,
    max_concurrency: int,
) -> tuple[list[Change], list[Change]]:
    """
    Look up missing licenses.

    Returns (changes with a license, changes without one), both in input
    order.
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def resolve(change: Change) -> Change | None:
        if not _needs_resolution(change):
            return change

        repo = parse_github_url(change.source_repository_url, host=lookup.host)
        if repo is None:
            logger.debug("No repository to look up license for %s", change.name)
            return None

        async with semaphore:
            try:
                license_id = await lookup.lookup_repository_license(
                    repo.owner, repo.repo
                )
            except Exception as e:
                logger.warning(
                    "License lookup for %s/%s failed: %s", repo.owner, repo.repo, e
                )
                return None

        if license_id is None:
            return None
        logger.debug("Resolved license of %s to %s", change.name, license_id)
        return change.model_copy(update={"license": license_id})

    results = await asyncio.gather(*(resolve(change) for change in changes))

    licensed: list[Change] = []
    unlicensed: list[Change] = []
    for original, result in zip(changes, results):
        if result is None:
            unlicensed.append(original)
        else:
            licensed.append(result)
    return licensed, unlicensed


# =============================================================================
# Exceptions And Evaluation
# =============================================================================


def _purl_of(change: Change) -> PackageURL:
    return parse_purl(change.package_url)


def _matches_any(purl: PackageURL, patterns: list[PackageURL]) -> bool:
    return any(purls_match(purl, pattern) for pattern in patterns)


def _is_excepted(change: Change, exceptions: list[LicenseException]) -> bool:
    if not exceptions:
        return False
    purl = _purl_of(change)
    return any(
        purls_match(purl, exception.purl) and change.license == exception.license
        for exception in exceptions
    )


def _evaluate(license_expr: str, policy: PolicyConfig) -> str | None:
    """Return the bucket name for a license, or None if it is acceptable."""
    if not spdx.is_valid(license_expr):
        return "unresolved"
    if policy.allow_licenses:
        if not spdx.satisfies(license_expr, " OR ".join(policy.allow_licenses)):
            return "forbidden"
    elif policy.deny_licenses:
        if spdx.satisfies_any(license_expr, policy.deny_licenses):
            return "forbidden"
    return None
