"""Magic number rule."""

from __future__ import annotations

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.traversal import iter_nodes
from solidity_analyzer.tree import Node

ACCEPTABLE_NUMBERS = frozenset({0, 1, 2, 10, 100})
_SCOPES = frozenset({"FunctionDefinition", "ModifierDefinition"})


class MagicNumbersRule(RuleBase):
    """Flags unnamed numeric literals inside function and modifier bodies."""

    rule_id = "BP003"
    name = "Magic numbers"
    description = "Contract uses magic numbers instead of named constants"
    severity = Severity.LOW
    category = "style"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type not in _SCOPES:
            return []

        findings: list[Finding] = []
        for literal in iter_nodes(node.child("body"), "NumberLiteral"):
            # Time and ether units already name the quantity.
            if literal.attr("subdenomination"):
                continue
            value = literal_value(literal.text("number"))
            if value is None or value < 10 or value in ACCEPTABLE_NUMBERS:
                continue
            findings.append(
                self.finding(
                    literal,
                    source,
                    file_id,
                    message=f"Magic number {literal.text('number')} should be a named constant",
                    suggestions=(
                        f"Replace magic number {value} with a named constant",
                        f"Example: uint256 constant EXAMPLE_VALUE = {value};",
                        "Constants improve code readability and maintainability",
                    ),
                    auto_fixable=True,
                )
            )
        return findings


def literal_value(text: str | None) -> int | None:
    """Integer value of a Solidity number literal, ``None`` if not integral."""
    if not text:
        return None
    cleaned = text.replace("_", "").lower()
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    try:
        as_float = float(cleaned)
    except ValueError:
        return None
    if not as_float.is_integer():
        return None
    return int(as_float)
