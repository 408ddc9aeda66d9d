"""
SPDX license-expression evaluation for depguard.

Thin, total wrapper over the ``license-expression`` grammar. Every function
here returns ``False`` for malformed input instead of raising; the license
classifier relies on that to keep going past individual bad records.

Expressions are reduced to disjunctive normal form: a list of "terms",
each term being the set of license identifiers that together satisfy one
OR-branch. For example ``MIT AND (Apache-2.0 OR ISC)`` becomes
``[{MIT, Apache-2.0}, {MIT, ISC}]``. Identifiers are compared upper-cased,
after the SPDX index has resolved aliases (``GPL-2.0`` -> ``GPL-2.0-only``).
"""

import logging
import re
from functools import lru_cache
from typing import Any

from license_expression import (
    BaseSymbol,
    LicenseWithExceptionSymbol,
    Licensing,
    get_spdx_licensing,
)


logger = logging.getLogger(__name__)

NOASSERTION = "NOASSERTION"

# Some upstream sources (ClearlyDefined) append a bare OTHER to license
# strings. It is not SPDX, so it is swapped for a reference that no policy
# list will ever contain.
OTHER_PLACEHOLDER = "LicenseRef-depguard-OTHER"
_OTHER_PATTERN = re.compile(r"(?<![\w-])OTHER(?![\w-])")

_REFERENCE_PREFIXES = ("LICENSEREF-", "DOCUMENTREF-")


@lru_cache(maxsize=1)
def _licensing() -> Licensing:
    """Load the SPDX licensing index once; it is large."""
    return get_spdx_licensing()


# =============================================================================
# Public API
# =============================================================================


def is_valid(expr: str) -> bool:
    """
    Check that an expression is well-formed SPDX.

    Every identifier must be a known SPDX license (or exception) or a
    ``LicenseRef-``/``DocumentRef-`` reference. ``NOASSERTION`` and empty
    strings are never valid.
    """
    if expr.strip().upper() == NOASSERTION:
        return False
    try:
        parsed = _parse(expr)
        if parsed is None:
            return False
        if NOASSERTION in _leaves(parsed):
            return False
        unknown = [
            key
            for key in _licensing().unknown_license_keys(parsed)
            if not key.upper().startswith(_REFERENCE_PREFIXES)
        ]
        return not unknown
    except Exception as e:
        logger.debug("Invalid SPDX expression %r: %s", expr, e)
        return False


def satisfies(candidate_expr: str, constraint_expr: str) -> bool:
    """
    Check whether a candidate expression is allowed by a constraint.

    True if at least one OR-branch of the candidate can be met using only
    licenses that appear in the constraint. Operators in the constraint do
    not narrow it further, so ``satisfies("MIT", "MIT AND ISC")`` is True
    while ``satisfies("MIT AND ISC", "MIT")`` is False.

    Args:
        candidate_expr: The license of a package
        constraint_expr: The allowed licenses, usually joined with OR

    Returns:
        True if the candidate is allowed
    """
    try:
        candidate = _parse(candidate_expr)
        constraint = _parse(constraint_expr)
        if candidate is None or constraint is None:
            return False
        allowed = _leaves(constraint)
        return any(term <= allowed for term in _terms(candidate))
    except Exception as e:
        logger.debug(
            "Cannot evaluate %r against %r: %s", candidate_expr, constraint_expr, e
        )
        return False


def satisfies_any(expr: str, licenses: list[str]) -> bool:
    """
    Check whether any OR-branch of ``expr`` is covered by ``licenses``.

    ``satisfies_any("MIT OR Apache-2.0", ["MIT"])`` is True.
    """
    try:
        parsed = _parse(expr)
        if parsed is None:
            return False
        covered = _license_set(licenses)
        return any(term <= covered for term in _terms(parsed))
    except Exception as e:
        logger.debug("Cannot evaluate %r against %s: %s", expr, licenses, e)
        return False


def satisfies_all(expr: str, licenses: list[str]) -> bool:
    """
    Check whether every OR-branch of ``expr`` is covered by ``licenses``.

    ``satisfies_all("MIT AND Apache-2.0", ["MIT"])`` is False.
    """
    try:
        parsed = _parse(expr)
        if parsed is None:
            return False
        covered = _license_set(licenses)
        return all(term <= covered for term in _terms(parsed))
    except Exception as e:
        logger.debug("Cannot evaluate %r against %s: %s", expr, licenses, e)
        return False


def replace_other(expr: str) -> str:
    """Swap standalone ``OTHER`` tokens for an always-false placeholder."""
    return _OTHER_PATTERN.sub(OTHER_PLACEHOLDER, expr)


# =============================================================================
# Expression Helpers
# =============================================================================


def _parse(expr: str) -> Any | None:
    cleaned = replace_other(expr).strip()
    if not cleaned:
        return None
    return _licensing().parse(cleaned)


def _symbol_key(symbol: BaseSymbol) -> str:
    if isinstance(symbol, LicenseWithExceptionSymbol):
        return (
            f"{symbol.license_symbol.key} WITH {symbol.exception_symbol.key}"
        ).upper()
    return symbol.key.upper()


def _terms(node: Any) -> list[frozenset[str]]:
    """Expand an expression into its DNF terms."""
    if isinstance(node, BaseSymbol):
        return [frozenset({_symbol_key(node)})]

    licensing = _licensing()
    children = [_terms(arg) for arg in node.args]

    if isinstance(node, licensing.OR):
        return [term for child in children for term in child]

    if isinstance(node, licensing.AND):
        result: list[frozenset[str]] = [frozenset()]
        for child in children:
            result = [acc | term for acc in result for term in child]
        return result

    raise ValueError(f"Unsupported license expression node: {node!r}")


def _leaves(node: Any) -> frozenset[str]:
    """Every license identifier that appears anywhere in the expression."""
    return frozenset().union(*_terms(node))


def _license_set(licenses: list[str]) -> frozenset[str]:
    """Normalize a list of license identifiers the same way as expressions."""
    keys: set[str] = set()
    for license_id in licenses:
        try:
            parsed = _parse(license_id)
        except Exception:
            keys.add(license_id.strip().upper())
            continue
        if parsed is not None:
            keys |= _leaves(parsed)
    return frozenset(keys)
