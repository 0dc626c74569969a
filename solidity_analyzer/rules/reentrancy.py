"""Reentrancy ordering rule."""

from __future__ import annotations

from solidity_analyzer.reentrancy import (
    find_external_calls,
    find_state_writes,
    has_reentrancy_hazard,
)
from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node


class ReentrancyRule(RuleBase):
    """Detects functions that modify state after making external calls."""

    rule_id = "SEC-001"
    name = "Reentrancy Vulnerability"
    description = (
        "Detects functions that modify state after making external calls, "
        "which could lead to reentrancy attacks"
    )
    severity = Severity.HIGH
    category = "security"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "FunctionDefinition":
            return []

        external_calls = find_external_calls(node)
        if not external_calls:
            return []
        state_writes = find_state_writes(node)
        if not state_writes:
            return []

        if not has_reentrancy_hazard(external_calls, state_writes):
            return []

        function_name = node.text("name") or "<unnamed>"
        return [
            self.finding(
                node,
                source,
                file_id,
                message=(
                    f"Function '{function_name}' modifies state after an external call; "
                    "a re-entrant caller can observe or exploit the stale state."
                ),
                suggestions=(
                    "Apply checks-effects-interactions: update state before the external call",
                    "Consider a reentrancy guard such as OpenZeppelin's nonReentrant",
                ),
            )
        ]
