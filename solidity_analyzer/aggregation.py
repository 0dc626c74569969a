"""Merge per-category findings into one result with severity statistics."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from solidity_analyzer.rules.base import Finding, Severity


@dataclass(frozen=True, slots=True)
class AnalysisStats:
    """Severity histogram and per-category totals."""

    issues_by_severity: dict[str, int]
    total_issues: int
    security_issue_count: int
    gas_issue_count: int
    style_issue_count: int
    gas_savings_total: int = 0
    gas_issues_with_estimates: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues_by_severity": dict(self.issues_by_severity),
            "total_issues": self.total_issues,
            "security_issue_count": self.security_issue_count,
            "gas_issue_count": self.gas_issue_count,
            "style_issue_count": self.style_issue_count,
            "gas_savings_total": self.gas_savings_total,
            "gas_issues_with_estimates": self.gas_issues_with_estimates,
        }


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """All findings for one file, grouped by category."""

    file: str
    security_issues: tuple[Finding, ...]
    gas_issues: tuple[Finding, ...]
    style_issues: tuple[Finding, ...]
    issues: tuple[Finding, ...]
    stats: AnalysisStats

    @property
    def has_auto_fixable(self) -> bool:
        return any(issue.auto_fixable for issue in self.issues)

    @property
    def max_severity(self) -> Severity | None:
        if not self.issues:
            return None
        return max((issue.severity for issue in self.issues), key=lambda item: item.rank)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "security_issues": [issue.to_dict() for issue in self.security_issues],
            "gas_issues": [issue.to_dict() for issue in self.gas_issues],
            "style_issues": [issue.to_dict() for issue in self.style_issues],
            "stats": self.stats.to_dict(),
        }


def aggregate(
    security: Sequence[Finding],
    gas: Sequence[Finding],
    style: Sequence[Finding],
    *,
    file: str = "",
) -> AnalysisResult:
    """Concatenate the category lists and compute their statistics.

    Only gas findings with a positive estimate count towards the gas totals.
    """
    combined = (*security, *gas, *style)
    estimates = [issue.estimated_gas_savings for issue in gas if issue.estimated_gas_savings]
    return AnalysisResult(
        file=file,
        security_issues=tuple(security),
        gas_issues=tuple(gas),
        style_issues=tuple(style),
        issues=combined,
        stats=AnalysisStats(
            issues_by_severity=count_by_severity(combined),
            total_issues=len(combined),
            security_issue_count=len(security),
            gas_issue_count=len(gas),
            style_issue_count=len(style),
            gas_savings_total=sum(estimates),
            gas_issues_with_estimates=len(estimates),
        ),
    )


def count_by_severity(findings: Sequence[Finding]) -> dict[str, int]:
    counts = {severity.value: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity.value] += 1
    return counts
