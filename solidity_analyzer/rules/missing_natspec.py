"""Missing NatSpec documentation rule."""

from __future__ import annotations

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.traversal import line_of
from solidity_analyzer.tree import Node


class MissingNatspecRule(RuleBase):
    """Flags functions that carry no NatSpec comment."""

    rule_id = "BP002"
    name = "Missing natspec documentation"
    description = "Function or contract is missing NatSpec documentation"
    severity = Severity.LOW
    category = "style"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "FunctionDefinition" or not source:
            return []
        line = line_of(node)
        if line is None or has_natspec(source.splitlines(), line):
            return []

        function_name = node.text("name") or "constructor"
        return [
            self.finding(
                node,
                source,
                file_id,
                message=f"Function '{function_name}' has no NatSpec documentation",
                suggestions=(
                    f"Add NatSpec documentation to function '{function_name}'",
                    "/**",
                    " * @notice Description of what this function does",
                    " * @param paramName Description of parameter",
                    " * @return Description of return value",
                    " */",
                ),
                auto_fixable=True,
            )
        ]


def has_natspec(lines: list[str], line: int) -> bool:
    """Whether the comment block right above ``line`` (1-based) is NatSpec."""
    index = min(line - 2, len(lines) - 1)
    while index >= 0 and not lines[index].strip():
        index -= 1
    if index < 0:
        return False

    previous = lines[index].strip()
    if previous.startswith("///"):
        return True
    if not previous.endswith("*/"):
        return False
    while index >= 0:
        text = lines[index]
        if "/**" in text:
            return True
        if "/*" in text:
            return False
        index -= 1
    return False
