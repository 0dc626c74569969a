"""Missing function visibility rule."""

from __future__ import annotations

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node


class MissingVisibilityRule(RuleBase):
    """Flags functions without an explicit visibility specifier."""

    rule_id = "BP001"
    name = "Missing function visibility"
    description = "Function visibility is not explicitly declared"
    severity = Severity.MEDIUM
    category = "style"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "FunctionDefinition" or node.flag("isConstructor"):
            return []
        visibility = node.text("visibility")
        if visibility not in {None, "", "default"}:
            return []

        function_name = node.text("name") or "<unnamed>"
        return [
            self.finding(
                node,
                source,
                file_id,
                message=f"Function '{function_name}' does not declare its visibility",
                suggestions=(
                    f"Add explicit visibility to function '{function_name}'",
                    "Choose from: public, private, internal, or external",
                    "Example: function example() public { ... }",
                ),
                auto_fixable=True,
            )
        ]
