"""Dangerous built-in usage rule."""

from __future__ import annotations

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node

SELF_DESTRUCT_NAMES = frozenset({"selfdestruct", "suicide"})


class DangerousFunctionsRule(RuleBase):
    """Detects selfdestruct, delegatecall, and inline assembly."""

    rule_id = "SEC-003"
    name = "Dangerous Function Use"
    description = (
        "Detects use of potentially dangerous functions like selfdestruct, "
        "delegatecall, or assembly"
    )
    severity = Severity.HIGH
    category = "security"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type == "InlineAssemblyStatement":
            return [
                self.finding(
                    node,
                    source,
                    file_id,
                    title="Inline assembly",
                    message="Use of inline assembly bypasses Solidity safety checks",
                    severity=Severity.MEDIUM,
                    suggestions=(
                        "Try to use high-level Solidity constructs instead of assembly "
                        "when possible",
                    ),
                )
            ]

        if node.type != "FunctionCall":
            return []
        callee = node.child("expression")
        if callee is None:
            return []

        if callee.type == "Identifier" and callee.text("name") in SELF_DESTRUCT_NAMES:
            return [
                self.finding(
                    node,
                    source,
                    file_id,
                    title="Use of selfdestruct",
                    message="Use of selfdestruct can permanently destroy contracts",
                    suggestions=(
                        "Consider using a more controlled deactivation mechanism "
                        "instead of selfdestruct",
                    ),
                )
            ]

        if callee.type == "NameValueExpression":
            callee = callee.child("expression")
        if (
            callee is not None
            and callee.type == "MemberAccess"
            and callee.text("memberName") == "delegatecall"
        ):
            return [
                self.finding(
                    node,
                    source,
                    file_id,
                    title="Use of delegatecall",
                    message="Use of delegatecall can lead to context manipulation vulnerabilities",
                    suggestions=(
                        "Ensure the target of delegatecall is trusted and can't be "
                        "manipulated by attackers",
                    ),
                )
            ]
        return []
