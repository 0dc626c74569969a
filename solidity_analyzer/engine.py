"""Rule engine: rule selection, tree traversal, and severity filtering."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from solidity_analyzer.rules import RuleRegistry, default_registry
from solidity_analyzer.rules.base import Finding, Rule, Severity
from solidity_analyzer.traversal import find_nodes, line_of
from solidity_analyzer.tree import Node

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    """Selection options threaded through one analysis call.

    ``include_rules`` is applied before ``exclude_rules``; ids that name no
    rule simply match nothing.
    """

    include_rules: tuple[str, ...] = ()
    exclude_rules: tuple[str, ...] = ()
    min_severity: Severity | None = None
    verbose: bool = False
    security: bool = True
    gas: bool = True
    style: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "include_rules", _rule_ids(self.include_rules))
        object.__setattr__(self, "exclude_rules", _rule_ids(self.exclude_rules))
        if self.min_severity is not None:
            object.__setattr__(self, "min_severity", Severity.parse(self.min_severity))

    @property
    def categories(self) -> tuple[str, ...]:
        enabled = (("security", self.security), ("gas", self.gas), ("style", self.style))
        return tuple(name for name, on in enabled if on)


@dataclass(frozen=True, slots=True)
class RuleFailure:
    """A ``detect`` call that raised or returned malformed output."""

    rule_id: str
    node_type: str
    line: int | None
    error: str

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_id": self.rule_id,
            "node_type": self.node_type,
            "line": self.line,
            "error": self.error,
        }


@dataclass(slots=True)
class EngineReport:
    """Findings plus any rule failures recovered during one run."""

    findings: list[Finding] = field(default_factory=list)
    failures: list[RuleFailure] = field(default_factory=list)


def select_rules(registry: Iterable[Rule], options: AnalysisOptions) -> list[Rule]:
    """Resolve the active rule set: include-list first, then exclude-list."""
    selected = list(registry)
    if options.include_rules:
        included = set(options.include_rules)
        selected = [rule for rule in selected if rule.rule_id in included]
    if options.exclude_rules:
        excluded = set(options.exclude_rules)
        selected = [rule for rule in selected if rule.rule_id not in excluded]
    return selected


def filter_by_severity(
    findings: Sequence[Finding], min_severity: Severity | str | None
) -> list[Finding]:
    """Drop findings strictly below ``min_severity``."""
    if min_severity is None:
        return list(findings)
    threshold = Severity.parse(min_severity)
    return [finding for finding in findings if finding.severity.at_least(threshold)]


class RuleEngine:
    """Applies a registry of rules to every node of a tree."""

    def __init__(self, registry: RuleRegistry | None = None) -> None:
        self._registry = registry if registry is not None else default_registry()

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    def with_rule(self, rule: Rule) -> RuleEngine:
        """Return an engine whose registry has ``rule`` appended."""
        return RuleEngine(self._registry.with_rule(rule))

    def analyze(
        self,
        tree: Node,
        source: str,
        file_id: str,
        options: AnalysisOptions | None = None,
    ) -> list[Finding]:
        """Return findings ordered by rule, then by pre-order node position."""
        return self.run(tree, source, file_id, options).findings

    def run(
        self,
        tree: Node,
        source: str,
        file_id: str,
        options: AnalysisOptions | None = None,
    ) -> EngineReport:
        """Like ``analyze`` but also reports recovered rule failures."""
        active_options = options or AnalysisOptions()
        rules = select_rules(self._registry, active_options)
        report = EngineReport()
        if not rules:
            return report

        # One walk, replayed for every rule, keeps node order identical across rules.
        nodes = find_nodes(tree)
        for rule in rules:
            start = time.perf_counter()
            produced = 0
            for node in nodes:
                node_findings = _apply_rule(rule, node, source, file_id, report.failures)
                produced += len(node_findings)
                report.findings.extend(node_findings)
            if active_options.verbose:
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger.debug(
                    "rule %s produced %d finding(s) over %d node(s) in %.1fms",
                    rule.rule_id,
                    produced,
                    len(nodes),
                    elapsed_ms,
                )

        report.findings = filter_by_severity(report.findings, active_options.min_severity)
        return report


def _apply_rule(
    rule: Rule,
    node: Node,
    source: str,
    file_id: str,
    failures: list[RuleFailure],
) -> list[Finding]:
    try:
        produced = rule.detect(node, source, file_id)
        if not isinstance(produced, list) or not all(
            isinstance(item, Finding) for item in produced
        ):
            raise TypeError(
                f"detect() must return a list of Finding, got {type(produced).__name__}"
            )
    except Exception as exc:  # one faulty rule must not abort the file
        failure = RuleFailure(
            rule_id=rule.rule_id,
            node_type=node.type,
            line=line_of(node),
            error=f"{exc.__class__.__name__}: {exc}",
        )
        failures.append(failure)
        logger.warning(
            "rule %s failed on %s (line %s) in %s: %s",
            rule.rule_id,
            node.type,
            failure.line if failure.line is not None else "unknown",
            file_id,
            failure.error,
        )
        return []
    return produced


def _rule_ids(value: str | Iterable[str]) -> tuple[str, ...]:
    """Normalise a rule-id selection; a bare string is one id, not its characters."""
    if isinstance(value, str):
        return (value,)
    return tuple(value)
