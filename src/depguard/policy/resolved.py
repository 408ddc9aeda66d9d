"""Vulnerabilities that a pull request fixes by removing a package."""

from depguard.schema import Change, ResolvedVulnerability


def extract_resolved_vulnerabilities(
    changes: list[Change],
) -> list[ResolvedVulnerability]:
    """
    Flatten the vulnerabilities of removed packages.

    Order follows the changes, then each change's vulnerabilities.
    """
    resolved = []
    for change in changes:
        if not change.is_removed:
            continue
        for vuln in change.vulnerabilities:
            resolved.append(
                ResolvedVulnerability(
                    severity=vuln.severity,
                    advisory_ghsa_id=vuln.advisory_ghsa_id,
                    advisory_summary=vuln.advisory_summary,
                    advisory_url=vuln.advisory_url,
                    package_name=change.name,
                    package_version=change.version,
                    package_url=change.package_url,
                    manifest=change.manifest,
                    ecosystem=change.ecosystem,
                )
            )
    return resolved
