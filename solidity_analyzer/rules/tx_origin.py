"""tx.origin authorization rule."""

from __future__ import annotations

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node


class TxOriginRule(RuleBase):
    """Detects authorization through tx.origin."""

    rule_id = "SEC-004"
    name = "Authorization through tx.origin"
    description = "Detects reads of tx.origin, which phishing contracts can exploit"
    severity = Severity.MEDIUM
    category = "security"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "MemberAccess" or node.text("memberName") != "origin":
            return []
        receiver = node.child("expression")
        if receiver is None or receiver.type != "Identifier" or receiver.text("name") != "tx":
            return []
        return [
            self.finding(
                node,
                source,
                file_id,
                message="tx.origin is used; any contract the owner calls can act on their behalf",
                suggestions=("Use msg.sender for authorization checks",),
            )
        ]
