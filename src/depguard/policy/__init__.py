"""
Policy evaluation for depguard.

This package holds the checks run against a dependency change list. Each
check is a function over a list of changes and returns a new value; none
of them mutate their input or decide pass/fail on their own.

Key concepts:
    - License classifier: forbidden / unresolved / unlicensed buckets
    - Denylist: packages and namespace groups that may never be added
    - Filters: narrow vulnerabilities by severity, scope and allowed advisories
    - Resolved vulnerabilities: advisories fixed by removing a package
"""

from depguard.policy.denylist import match_denylist
from depguard.policy.filters import (
    filter_allowed_advisories,
    filter_by_scope,
    filter_by_severity,
)
from depguard.policy.licenses import classify_licenses
from depguard.policy.resolved import extract_resolved_vulnerabilities

__all__ = [
    "classify_licenses",
    "extract_resolved_vulnerabilities",
    "filter_allowed_advisories",
    "filter_by_scope",
    "filter_by_severity",
    "match_denylist",
]
