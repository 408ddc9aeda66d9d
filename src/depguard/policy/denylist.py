"""
Denylist matcher.

Finds added dependencies that the policy bans outright, either by exact
package (optionally pinned to a version) or by namespace group.

Examples:
    pkg:npm/lodash          denies every version of lodash
    pkg:npm/lodash@4.17.20  denies only that version
    pkg:maven/org.apache/   (group) denies everything under org.apache
"""

import logging
from dataclasses import dataclass

from depguard.purl import PackageURL, parse_purl
from depguard.schema import Change


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Identity:
    """What a change is matched on: ecosystem type and lower-cased full name."""

    type: str | None
    full_name: str


def match_denylist(
    changes: list[Change],
    denied_packages: list[PackageURL],
    denied_groups: list[PackageURL],
) -> list[Change]:
    """
    Return the added changes matched by a denied package or group.

    Each matched change is returned once, in input order. Removed changes
    never match. Entries with a parse error are skipped.

    Args:
        changes: The dependency changes to check
        denied_packages: Exact package bans
        denied_groups: Namespace-prefix bans

    Returns:
        The denied changes
    """
    packages = _usable(denied_packages, "deny_packages")
    groups = _usable(denied_groups, "deny_groups")
    if not packages and not groups:
        return []

    denied: list[Change] = []
    for change in changes:
        if change.is_removed:
            continue
        identity = _identity_of(change)
        if any(_package_matches(identity, change, p) for p in packages) or any(
            _group_matches(identity, g) for g in groups
        ):
            denied.append(change)
    return denied


def _usable(entries: list[PackageURL], field_name: str) -> list[PackageURL]:
    usable = []
    for entry in entries:
        if entry.error:
            logger.error(
                "Skipping invalid %s entry %r: %s", field_name, entry.original, entry.error
            )
            continue
        usable.append(entry)
    return usable


def _identity_of(change: Change) -> _Identity:
    purl = parse_purl(change.package_url)
    if purl.error:
        return _Identity(type=None, full_name=change.name.lower())
    return _Identity(type=purl.type.lower(), full_name=purl.full_name.lower())


def _types_match(identity: _Identity, entry: PackageURL) -> bool:
    if identity.type is None or not entry.type:
        return True
    return identity.type == entry.type.lower()


def _package_matches(identity: _Identity, change: Change, entry: PackageURL) -> bool:
    if not _types_match(identity, entry):
        return False
    if identity.full_name != entry.full_name.lower():
        return False
    return entry.version is None or entry.version == change.version


def _group_matches(identity: _Identity, entry: PackageURL) -> bool:
    if not _types_match(identity, entry):
        return False
    prefix = entry.full_name.lower()
    if entry.namespace and not entry.name:
        prefix += "/"
    return identity.full_name.startswith(prefix)
