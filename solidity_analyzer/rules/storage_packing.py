"""Storage slot packing rule."""

from __future__ import annotations

import re

from solidity_analyzer.rules.base import Finding, RuleBase, Severity
from solidity_analyzer.tree import Node

SLOT_BYTES = 32
GAS_PER_SLOT = 2000

_INT_RE = re.compile(r"^u?int(\d+)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")


class StoragePackingRule(RuleBase):
    """Flags contracts whose state-variable order wastes storage slots."""

    rule_id = "GAS-002"
    name = "Storage Variable Packing"
    description = "Variables can be packed in fewer storage slots for gas optimization"
    severity = Severity.MEDIUM
    category = "gas"

    def detect(self, node: Node, source: str, file_id: str) -> list[Finding]:
        if node.type != "ContractDefinition":
            return []

        sizes = [
            size
            for declaration in node.child_list("subNodes")
            if declaration.type == "StateVariableDeclaration"
            for size in _storage_sizes(declaration)
        ]
        if len(sizes) < 2:
            return []

        declared = count_slots(sizes)
        optimal = optimal_slots(sizes)
        if declared <= optimal:
            return []

        contract_name = node.text("name") or "<unnamed>"
        saved = declared - optimal
        return [
            self.finding(
                node,
                source,
                file_id,
                message=(
                    f"State variables of '{contract_name}' use {declared} storage slots; "
                    f"reordering them needs {optimal} ({saved} fewer)"
                ),
                suggestions=(
                    "Group smaller variables together to pack them into single storage slots",
                    f"~{GAS_PER_SLOT * saved} gas saved on first write",
                ),
                estimated_gas_savings=GAS_PER_SLOT * saved,
            )
        ]


def type_size(type_name: Node | None) -> int:
    """Storage footprint in bytes; ``SLOT_BYTES`` for anything occupying full slots."""
    if type_name is None or type_name.type != "ElementaryTypeName":
        return SLOT_BYTES
    name = type_name.text("name") or ""
    if name in {"bool", "byte"}:
        return 1
    if name == "address":
        return 20
    match = _INT_RE.match(name)
    if match:
        return max(1, min(SLOT_BYTES, int(match.group(1)) // 8))
    match = _FIXED_BYTES_RE.match(name)
    if match:
        return max(1, min(SLOT_BYTES, int(match.group(1))))
    return SLOT_BYTES


def count_slots(sizes: list[int]) -> int:
    """Slots used when variables are laid out in the given order."""
    slots = 0
    used = SLOT_BYTES
    for size in sizes:
        if size >= SLOT_BYTES or used + size > SLOT_BYTES:
            slots += 1
            used = 0
        used += size
    return slots


def optimal_slots(sizes: list[int]) -> int:
    """Slots used by a first-fit-decreasing arrangement."""
    bins: list[int] = []
    for size in sorted(sizes, reverse=True):
        for index, used in enumerate(bins):
            if used + size <= SLOT_BYTES:
                bins[index] = used + size
                break
        else:
            bins.append(size)
    return len(bins)


def _storage_sizes(declaration: Node) -> list[int]:
    sizes: list[int] = []
    for variable in declaration.child_list("variables"):
        if variable.flag("isDeclaredConst") or variable.flag("isImmutable"):
            continue
        sizes.append(type_size(variable.child("typeName")))
    return sizes
