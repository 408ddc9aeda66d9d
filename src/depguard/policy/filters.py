"""
Vulnerability filters.

Pure transforms over change lists. None of them mutate their input; a change
whose vulnerabilities are narrowed is replaced by a copy.
"""

from collections.abc import Iterable

from depguard.schema import Change, Scope, Severity


def filter_by_severity(min_severity: Severity, changes: list[Change]) -> list[Change]:
    """
    Keep vulnerabilities at least as severe as ``min_severity``.

    Changes left with no vulnerabilities are dropped.
    """
    filtered = []
    for change in changes:
        kept = [
            vuln for vuln in change.vulnerabilities
            if vuln.severity.rank <= min_severity.rank
        ]
        if kept:
            filtered.append(change.model_copy(update={"vulnerabilities": kept}))
    return filtered


def filter_by_scope(scopes: Iterable[Scope], changes: list[Change]) -> list[Change]:
    """Keep changes whose scope is one of ``scopes``."""
    wanted = set(scopes)
    return [change for change in changes if change.scope in wanted]


def filter_allowed_advisories(
    allowed_ids: Iterable[str] | None,
    changes: list[Change],
) -> list[Change]:
    """
    Remove allowed advisories from each change.

    Changes are never dropped here, even when every advisory is allowed;
    pair with filter_by_severity to drop changes left with none.

    Args:
        allowed_ids: GHSA IDs to remove, or None for no filtering
        changes: The dependency changes to filter

    Returns:
        The changes, with allowed advisories removed
    """
    if allowed_ids is None:
        return list(changes)

    allowed = set(allowed_ids)
    filtered = []
    for change in changes:
        kept = [
            vuln for vuln in change.vulnerabilities
            if vuln.advisory_ghsa_id not in allowed
        ]
        if len(kept) == len(change.vulnerabilities):
            filtered.append(change)
        else:
            filtered.append(change.model_copy(update={"vulnerabilities": kept}))
    return filtered
