"""Base rule protocol, severity scale, and finding model."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from solidity_analyzer.traversal import column_of, line_of
from solidity_analyzer.tree import Node, node_text

CATEGORIES = ("security", "gas", "style")


class Severity(StrEnum):
    """Ordered severity scale, ``critical`` highest."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def at_least(self, other: Severity) -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: Any) -> Severity:
        if isinstance(value, Severity):
            return value
        normalized = str(value).strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"Unknown severity '{value}'. Expected one of: {choices}") from None


_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


@dataclass(frozen=True, slots=True)
class Finding:
    """A single rule violation."""

    rule_id: str
    title: str
    message: str
    severity: Severity
    file: str
    line: int | None = None
    column: int | None = None
    code: str | None = None
    suggestions: tuple[str, ...] = field(default_factory=tuple)
    auto_fixable: bool = False
    estimated_gas_savings: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "severity", Severity.parse(self.severity))
        object.__setattr__(self, "suggestions", tuple(self.suggestions))
        if self.line is not None and self.line < 1:
            raise ValueError(f"Finding line must be >= 1, got {self.line}")
        if self.column is not None and self.column < 1:
            raise ValueError(f"Finding column must be >= 1, got {self.column}")
        if self.estimated_gas_savings is not None and self.estimated_gas_savings < 0:
            raise ValueError(
                f"Finding gas estimate must be >= 0, got {self.estimated_gas_savings}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "code": self.code,
            "suggestions": list(self.suggestions),
            "auto_fixable": self.auto_fixable,
            "estimated_gas_savings": self.estimated_gas_savings,
        }


class Rule(Protocol):
    """Protocol for stateless detection rules."""

    rule_id: str
    name: str
    description: str
    severity: Severity
    category: str

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        """Inspect one node and return findings (possibly none)."""


class RuleBase:
    """Shared metadata and finding construction for built-in rules."""

    rule_id: str = ""
    name: str = ""
    description: str = ""
    severity: Severity = Severity.INFO
    category: str = "style"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        raise NotImplementedError

    def finding(
        self,
        node: Node,
        source: str,
        file_id: str,
        *,
        message: str,
        suggestions: Iterable[str] = (),
        severity: Severity | None = None,
        title: str | None = None,
        auto_fixable: bool = False,
        anchor: Node | None = None,
        estimated_gas_savings: int | None = None,
    ) -> Finding:
        """Build a finding located at ``anchor`` (default ``node``)."""
        located = anchor if anchor is not None else node
        return Finding(
            rule_id=self.rule_id,
            title=title or self.name,
            message=message,
            severity=severity or self.severity,
            file=file_id,
            line=line_of(located),
            column=column_of(located),
            code=node_text(node, source),
            suggestions=tuple(suggestions),
            auto_fixable=auto_fixable,
            estimated_gas_savings=estimated_gas_savings,
        )
