"""
JSON report generator for depguard.

Generates structured JSON output for programmatic consumption, e.g. for a
CI step that posts a pull-request comment.

Design Principles:
    - Consistent schema: Same top-level keys for every review
    - Human-readable keys: Use descriptive snake_case names
    - ISO timestamps: Standard datetime format
"""

import json
from datetime import UTC, datetime
from typing import Any

from depguard.review import ReviewResult
from depguard.schema import Change

REPORT_VERSION = "1.0"


def generate_json_report(result: ReviewResult, indent: int = 2) -> str:
    """
    Generate a JSON report for a review.

    Args:
        result: The review to report on
        indent: JSON indentation level (default: 2)

    Returns:
        JSON string with the full review report
    """
    report = build_report_dict(result)
    return json.dumps(report, indent=indent, default=_json_serializer)


def build_report_dict(result: ReviewResult) -> dict[str, Any]:
    """
    Build a report dictionary for a review.

    Args:
        result: The review to report on

    Returns:
        Dictionary with the full review report
    """
    licenses = result.invalid_licenses
    return {
        "report_version": REPORT_VERSION,
        "generated_at": datetime.now(UTC).isoformat(),
        "summary": {
            "success": result.success,
            "exit_code": result.exit_code,
            "warn_only": result.policy.warn_only,
            "duration_ms": result.duration_ms,
            "manifests": result.manifests,
            "counts": {
                "changes": result.total_changes,
                "vulnerable_changes": len(result.vulnerable_changes),
                "vulnerabilities": result.vulnerability_count,
                "forbidden_licenses": len(licenses.forbidden),
                "unresolved_licenses": len(licenses.unresolved),
                "unlicensed": len(licenses.unlicensed),
                "denied_changes": len(result.denied_changes),
                "resolved_vulnerabilities": len(result.resolved_vulnerabilities),
            },
        },
        "vulnerable_changes": [_serialize_change(c) for c in result.vulnerable_changes],
        "invalid_licenses": {
            "forbidden": [_serialize_change(c) for c in licenses.forbidden],
            "unresolved": [_serialize_change(c) for c in licenses.unresolved],
            "unlicensed": [_serialize_change(c) for c in licenses.unlicensed],
        },
        "denied_changes": [_serialize_change(c) for c in result.denied_changes],
        "resolved_vulnerabilities": [
            vuln.model_dump(mode="json") for vuln in result.resolved_vulnerabilities
        ],
    }


def _serialize_change(change: Change) -> dict[str, Any]:
    """Serialize a Change to dict."""
    return change.model_dump(mode="json")


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for non-standard types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
