"""Function naming convention rule."""

from __future__ import annotations

import re

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node

MIXED_CASE_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_UNDERSCORE_VISIBILITIES = frozenset({"private", "internal"})


class FunctionNamingRule(RuleBase):
    """Flags function names that do not follow mixedCase."""

    rule_id = "BP004"
    name = "Inconsistent function naming"
    description = "Function naming does not follow Solidity style guidelines"
    severity = Severity.INFO
    category = "style"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "FunctionDefinition":
            return []
        if node.flag("isConstructor") or node.flag("isFallback") or node.flag("isReceiveEther"):
            return []
        name = node.text("name")
        if not name or name in {"constructor", "fallback", "receive"}:
            return []

        candidate = name
        if name.startswith("_") and node.text("visibility") in _UNDERSCORE_VISIBILITIES:
            candidate = name[1:]
        if MIXED_CASE_RE.match(candidate):
            return []

        return [
            self.finding(
                node,
                source,
                file_id,
                message=f"Function '{name}' does not follow mixedCase naming",
                suggestions=(
                    f"Rename function '{name}' to follow camelCase convention",
                    "Function names should start with a lowercase letter",
                    "Avoid underscores in function names",
                    f"Example: '{to_camel_case(name)}'",
                ),
                auto_fixable=True,
            )
        ]


def to_camel_case(name: str) -> str:
    stripped = name.lstrip("_")
    converted = re.sub(r"_+([a-zA-Z0-9])", lambda match: match.group(1).upper(), stripped)
    converted = converted.rstrip("_")
    if not converted:
        return name
    return converted[0].lower() + converted[1:]
