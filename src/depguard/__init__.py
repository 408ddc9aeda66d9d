"""
depguard - Policy checks for dependency changes.

depguard looks at the dependencies added and removed by a change (as
reported by a dependency graph) and flags the ones an organization does
not want. It provides:
- Vulnerability checks by severity, scope and allowed advisories
- License checks against an SPDX allow or deny list
- Package and namespace deny lists
- A list of vulnerabilities fixed by removed packages

Example usage:
    $ depguard review changes.json --policy policy.yaml
    $ depguard purl pkg:npm/lodash@4.17.21
    $ depguard spdx "MIT OR Apache-2.0" --allow MIT
"""

__version__ = "0.1.0"
__author__ = "depguard Contributors"

__all__ = [
    "__version__",
    "__author__",
]
