"""
Prompts for AI-powered dependency analysis.

Turns the run's repository reports into a single prompt asking the model
to sort the findings into three priority tiers.
"""

from typing import List

from ..collector.models import RepositoryReport

DEFAULT_PREVIEW_LIMIT = 10

ANALYSIS_SYSTEM_PROMPT = """You are a dependency management assistant for a software team. You review outdated npm packages and open security alerts across several repositories and tell the team what to do first.

REQUIREMENTS:
1. ACCURACY: Only discuss packages and advisories present in the data. Never invent CVE identifiers, versions, or changelog details.
2. PRIORITIZATION: Security advisories always outrank routine version bumps.
3. ACTIONABILITY: For every critical or important item, state the concrete action (upgrade target, repository).
4. BREVITY: Keep the response clear and concise. Use a friendly but professional tone.

FORMATTING:
- Plain text only; you may use ** for emphasis
- One section per priority tier, in order: CRITICAL, IMPORTANT, LOW PRIORITY
- Do not use emojis"""


def _format_report(report: RepositoryReport, preview_limit: int) -> List[str]:
    """Render one repository's findings as prompt lines."""
    lines = [f"\nREPOSITORY: {report.target.full_name}"]

    if not report.manifest_found:
        lines.append("  (package.json could not be read; dependency versions unknown)")
    else:
        lines.append(f"  Dependencies declared: {report.total_dependencies}")

    if report.advisories:
        lines.append(f"  OPEN SECURITY ADVISORIES ({report.advisory_count}):")
        for advisory in report.advisories_by_severity:
            cve = f" ({advisory.cve_id})" if advisory.cve_id else ""
            lines.append(f"    - [{advisory.severity.value.upper()}] {advisory.package}{cve}: {advisory.summary}")
            patched = advisory.first_patched_version or "no patched version yet"
            lines.append(f"      Vulnerable: {advisory.vulnerable_range or 'unknown'}; fixed in: {patched}")
    else:
        lines.append("  OPEN SECURITY ADVISORIES: none")

    if report.outdated:
        lines.append(f"  OUTDATED PACKAGES ({report.outdated_count}):")
        for record in report.outdated[:preview_limit]:
            lines.append(f"    - {record.name}: {record.current} -> {record.latest}")
        if report.outdated_count > preview_limit:
            lines.append(f"    ... and {report.outdated_count - preview_limit} more")
    else:
        lines.append("  OUTDATED PACKAGES: none")

    return lines


def build_analysis_prompt(
    reports: List[RepositoryReport],
    preview_limit: int = DEFAULT_PREVIEW_LIMIT
) -> str:
    """
    Build the user prompt for dependency analysis.

    Args:
        reports: Findings for every checked repository.
        preview_limit: Maximum outdated packages listed per repository.

    Returns:
        Formatted prompt string.
    """
    total_outdated = sum(r.outdated_count for r in reports)
    total_advisories = sum(r.advisory_count for r in reports)

    prompt_parts = [
        "Analyze these dependency findings and categorize them by priority.",
        f"\nRepositories checked: {len(reports)}",
        f"Outdated packages: {total_outdated}",
        f"Open security advisories: {total_advisories}",
        "\n" + "=" * 80,
    ]

    for report in reports:
        prompt_parts.extend(_format_report(report, preview_limit))

    prompt_parts.append("\n" + "=" * 80)
    prompt_parts.append("Please provide:")
    prompt_parts.append("1. CRITICAL updates (security vulnerabilities, especially critical/high advisories, that need immediate attention)")
    prompt_parts.append("2. IMPORTANT updates (breaking changes, deprecated packages, major version jumps, significant improvements)")
    prompt_parts.append("3. LOW PRIORITY updates (minor and patch releases that can wait)")
    prompt_parts.append("For CRITICAL and IMPORTANT items, explain WHY they matter and what action should be taken.")

    return "\n".join(prompt_parts)
