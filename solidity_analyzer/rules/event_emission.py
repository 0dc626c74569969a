"""Missing event emission rule."""

from __future__ import annotations

from solidity_analyzer.reentrancy import find_state_writes
from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.traversal import contains
from solidity_analyzer.tree import Node

READ_ONLY_MUTABILITY = frozenset({"view", "pure", "constant"})


class EventEmissionRule(RuleBase):
    """Flags state-changing functions that emit no event."""

    rule_id = "BP005"
    name = "State changes without event emission"
    description = "Functions that change state should emit events for better observability"
    severity = Severity.MEDIUM
    category = "style"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "FunctionDefinition" or node.flag("isConstructor"):
            return []
        if node.text("stateMutability") in READ_ONLY_MUTABILITY:
            return []
        body = node.child("body")
        if body is None or contains(body, "EmitStatement"):
            return []
        if not find_state_writes(node):
            return []

        name = node.text("name") or "<unnamed>"
        event_name = name[:1].upper() + name[1:]
        return [
            self.finding(
                node,
                source,
                file_id,
                message=f"Function '{name}' changes state but doesn't emit an event",
                suggestions=(
                    "Consider adding events for state changes to make them observable off-chain",
                    f"Example: emit {event_name}(parameters);",
                ),
            )
        ]
