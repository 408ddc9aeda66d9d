"""
Reporting module for depguard.

This module renders a ReviewResult for humans and for machines.

Output formats:
    - Console: Rich terminal tables and a verdict panel
    - JSON: Structured output for programmatic consumption

Console report includes:
    - Vulnerabilities, grouped by manifest
    - License issues (forbidden, unresolved, unlicensed)
    - Denied packages
    - Resolved vulnerabilities (verbose only)
    - Summary counts and the verdict

Example:
    from depguard.report import generate_json_report, render_console_report

    render_console_report(result)
    print(generate_json_report(result))
"""

from depguard.report.console import render_console_report
from depguard.report.json import build_report_dict, generate_json_report

__all__ = [
    "render_console_report",
    "generate_json_report",
    "build_report_dict",
]
