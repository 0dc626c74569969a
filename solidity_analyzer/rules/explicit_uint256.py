"""Explicit uint256 type rule."""

from __future__ import annotations

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node

GAS_PER_DECLARATION = 3


class ExplicitUint256Rule(RuleBase):
    """Flags explicit ``uint256`` type names."""

    rule_id = "GAS-001"
    name = "Explicit uint256 is redundant"
    description = "Using `uint256` is redundant as it's the default type for `uint`"
    severity = Severity.LOW
    category = "gas"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "ElementaryTypeName" or node.text("name") != "uint256":
            return []
        return [
            self.finding(
                node,
                source,
                file_id,
                message="Use `uint` instead of `uint256`",
                suggestions=(
                    "Use `uint` instead of `uint256`",
                    "uint is an alias for uint256",
                ),
                auto_fixable=True,
                estimated_gas_savings=GAS_PER_DECLARATION,
            )
        ]
