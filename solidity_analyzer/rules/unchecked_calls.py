"""Unchecked low-level call rule."""

from __future__ import annotations

from solidity_analyzer.reentrancy import callee_of
from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node

UNCHECKED_MEMBERS = frozenset({"call", "send", "delegatecall", "staticcall"})


class UncheckedCallsRule(RuleBase):
    """Detects low-level calls whose return value is discarded."""

    rule_id = "SEC-002"
    name = "Unchecked External Call"
    description = (
        "Detects external calls whose return values are not checked, "
        "which could lead to silent failures"
    )
    severity = Severity.MEDIUM
    category = "security"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        # A call used as a bare statement discards its success flag.
        if node.type != "ExpressionStatement":
            return []
        call = node.child("expression")
        if call is None or call.type != "FunctionCall":
            return []
        callee = callee_of(call)
        if callee is None or callee.type != "MemberAccess":
            return []
        member = callee.text("memberName")
        if member not in UNCHECKED_MEMBERS:
            return []

        return [
            self.finding(
                call,
                source,
                file_id,
                message=f"Return value of '{member}' is not checked",
                suggestions=(
                    "Check the return value with 'require(success, \"Message\")' "
                    "or store it in a variable and verify it",
                ),
            )
        ]
