"""Per-file analysis pipeline: tree in, aggregated result out."""

from __future__ import annotations

from dataclasses import dataclass, field

from solidity_analyzer.aggregation import AnalysisResult, aggregate
from solidity_analyzer.engine import AnalysisOptions, RuleEngine, RuleFailure
from solidity_analyzer.rules import RuleRegistry, default_registry
from solidity_analyzer.rules.base import Finding
from solidity_analyzer.tree import Node, ParsedUnit, ParseError


class ParseFailure(Exception):
    """Raised when a file's parse produced diagnostics; no rule has run."""

    def __init__(self, file_id: str, errors: list[ParseError]) -> None:
        self.file_id = file_id
        self.errors = list(errors)
        first = self.errors[0] if self.errors else None
        detail = f"{first.line}:{first.column}: {first.message}" if first else "no tree"
        super().__init__(f"{file_id}: parse failed ({detail})")


@dataclass(slots=True)
class AnalysisRun:
    """Aggregated result plus the rule failures recovered while producing it."""

    result: AnalysisResult
    failures: list[RuleFailure] = field(default_factory=list)


def analyze_tree(
    tree: Node,
    source: str,
    file_id: str,
    options: AnalysisOptions | None = None,
    registry: RuleRegistry | None = None,
) -> AnalysisRun:
    """Run each enabled rule category over ``tree`` and aggregate the findings."""
    active_options = options or AnalysisOptions()
    active_registry = registry if registry is not None else default_registry()
    enabled = set(active_options.categories)

    by_category: dict[str, list[Finding]] = {"security": [], "gas": [], "style": []}
    failures: list[RuleFailure] = []
    for category in by_category:
        if category not in enabled:
            continue
        engine = RuleEngine(active_registry.for_categories([category]))
        report = engine.run(tree, source, file_id, active_options)
        by_category[category] = report.findings
        failures.extend(report.failures)

    result = aggregate(
        by_category["security"],
        by_category["gas"],
        by_category["style"],
        file=file_id,
    )
    return AnalysisRun(result=result, failures=failures)


def analyze_unit(
    unit: ParsedUnit,
    source: str,
    file_id: str,
    options: AnalysisOptions | None = None,
    registry: RuleRegistry | None = None,
) -> AnalysisRun:
    """Analyze parser output, refusing units that carry parse errors."""
    if unit.errors or unit.tree is None:
        raise ParseFailure(file_id, unit.errors)
    return analyze_tree(unit.tree, source, file_id, options=options, registry=registry)
