"""Prefix increment rule."""

from __future__ import annotations

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node

GAS_PER_OPERATION = 5


class PreIncrementRule(RuleBase):
    """Flags postfix ``i++``/``i--`` where the prefix form is cheaper."""

    rule_id = "GAS-003"
    name = "Pre-increment Usage"
    description = "Using ++i instead of i++ saves gas"
    severity = Severity.LOW
    category = "gas"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "UnaryOperation" or node.attr("isPrefix") is not False:
            return []
        operator = node.text("operator")
        if operator not in {"++", "--"}:
            return []
        return [
            self.finding(
                node,
                source,
                file_id,
                message=f"Use {operator}i instead of i{operator} to save gas",
                suggestions=(
                    f"Replace i{operator} with {operator}i",
                    f"~{GAS_PER_OPERATION} gas per operation",
                ),
                auto_fixable=True,
                estimated_gas_savings=GAS_PER_OPERATION,
            )
        ]
