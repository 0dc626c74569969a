"""Output rendering."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import click

from solidity_analyzer import __version__
from solidity_analyzer.aggregation import AnalysisResult
from solidity_analyzer.engine import RuleFailure
from solidity_analyzer.rules.base import Finding, Severity

SEVERITY_COLORS = {
    Severity.CRITICAL: "magenta",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
    Severity.INFO: "white",
}

_SECTIONS = (
    ("Security Issues", "security_issues", "red"),
    ("Gas Optimizations", "gas_issues", "yellow"),
    ("Best Practices", "style_issues", "blue"),
)


def render_human(results: Sequence[AnalysisResult]) -> str:
    """Render a compact colorized report, one block per file."""
    blocks: list[str] = []
    for result in results:
        blocks.append(_render_result(result))
    total = sum(result.stats.total_issues for result in results)
    blocks.append(
        click.style(
            f"Analyzed {len(results)} file(s), {total} issue(s) found.",
            bold=True,
        )
    )
    return "\n\n".join(blocks)


def render_json(
    results: Sequence[AnalysisResult],
    *,
    failures: Sequence[RuleFailure] = (),
    parse_failures: Sequence[dict[str, Any]] = (),
) -> str:
    """Render stable JSON output for CI and automation."""
    payload = build_json_payload(results, failures=failures, parse_failures=parse_failures)
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    results: Sequence[AnalysisResult],
    *,
    failures: Sequence[RuleFailure] = (),
    parse_failures: Sequence[dict[str, Any]] = (),
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    return {
        "files": [result.to_dict() for result in results],
        "rule_failures": [failure.to_dict() for failure in failures],
        "parse_failures": list(parse_failures),
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "version": __version__,
        },
    }


def _render_result(result: AnalysisResult) -> str:
    lines = [click.style(f"Analysis results for {result.file}:", bold=True)]
    if not result.issues:
        lines.append(click.style("  No issues found.", fg="green"))
        return "\n".join(lines)

    for title, attribute, color in _SECTIONS:
        issues: tuple[Finding, ...] = getattr(result, attribute)
        if not issues:
            continue
        lines.append(click.style(f"{title} ({len(issues)}):", fg=color, bold=True))
        for issue in _sorted_by_severity(issues):
            lines.extend(_render_issue(issue))

    counts = ", ".join(
        f"{name}={count}" for name, count in result.stats.issues_by_severity.items() if count
    )
    lines.append(f"Summary: {result.stats.total_issues} issue(s) ({counts})")
    if result.stats.gas_savings_total:
        lines.append(
            f"Estimated gas savings: ~{result.stats.gas_savings_total:,} gas "
            f"across {result.stats.gas_issues_with_estimates} issue(s)"
        )
    return "\n".join(lines)


def _render_issue(issue: Finding) -> list[str]:
    location = f"line {issue.line}" if issue.line is not None else "line unknown"
    severity = click.style(issue.severity.value.upper(), fg=SEVERITY_COLORS[issue.severity])
    lines = [f"- [{issue.rule_id}] {severity} {issue.title} ({location})"]
    lines.append(f"  {issue.message}")
    for suggestion in issue.suggestions[:1]:
        lines.append(f"  follow-up: {suggestion}")
    if issue.auto_fixable:
        lines.append("  auto-fixable")
    return lines


def _sorted_by_severity(issues: Sequence[Finding]) -> list[Finding]:
    return sorted(issues, key=lambda item: -item.severity.rank)
