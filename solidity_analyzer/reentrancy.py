"""Ordering-based reentrancy detection within a single function body.

Order is purely textual: nodes are sorted by (line, column). Branches, loops
and modifier-injected code are not modelled, so a write in an ``else`` branch
after a call in the ``if`` branch still counts as "after".
"""

from __future__ import annotations

from collections.abc import Sequence

from solidity_analyzer.traversal import iter_nodes
from solidity_analyzer.tree import Node

EXTERNAL_CALL_MEMBERS = frozenset({"call", "send", "transfer", "delegatecall"})
ASSIGNMENT_OPERATORS = frozenset(
    {"=", "+=", "-=", "*=", "/=", "%=", "|=", "&=", "^=", "<<=", ">>="}
)
MUTATING_UNARY_OPERATORS = frozenset({"++", "--", "delete"})

_CALL = 0
_WRITE = 1


def callee_of(call: Node) -> Node | None:
    """Return the called expression, unwrapping ``{value: ...}`` call options."""
    callee = call.child("expression")
    while callee is not None and callee.type == "NameValueExpression":
        callee = callee.child("expression")
    return callee


def is_external_call(node: Node) -> bool:
    """Whether ``node`` is a low-level call leaving the contract's trust boundary."""
    if node.type != "FunctionCall":
        return False
    callee = callee_of(node)
    return (
        callee is not None
        and callee.type == "MemberAccess"
        and callee.text("memberName") in EXTERNAL_CALL_MEMBERS
    )


def local_names(function: Node) -> set[str]:
    """Names bound locally in a function: parameters, returns, and declared locals.

    ``storage`` pointers are excluded, since writing through them reaches state.
    """
    names: set[str] = set()
    declarations: list[Node] = []
    declarations.extend(_parameter_nodes(function.links.get("parameters")))
    declarations.extend(_parameter_nodes(function.links.get("returnParameters")))
    body = function.child("body")
    for statement in iter_nodes(body, "VariableDeclarationStatement"):
        declarations.extend(statement.child_list("variables"))

    for declaration in declarations:
        name = declaration.text("name")
        if not name:
            continue
        if declaration.text("storageLocation") == "storage":
            continue
        names.add(name)
    return names


def write_target(node: Node) -> Node | None:
    """Return the expression written by an assignment-like node, if any."""
    if node.type == "BinaryOperation" and node.text("operator") in ASSIGNMENT_OPERATORS:
        return node.child("left")
    if node.type == "UnaryOperation" and node.text("operator") in MUTATING_UNARY_OPERATORS:
        return node.child("subExpression")
    return None


def base_identifiers(target: Node | None) -> list[str]:
    """Resolve the root identifier(s) of an lvalue such as ``a[b].c``."""
    if target is None:
        return []
    if target.type == "Identifier":
        name = target.text("name")
        return [name] if name else []
    if target.type in {"IndexAccess", "IndexRangeAccess"}:
        return base_identifiers(target.child("base"))
    if target.type == "MemberAccess":
        return base_identifiers(target.child("expression"))
    if target.type == "TupleExpression":
        names: list[str] = []
        for component in target.child_list("components"):
            names.extend(base_identifiers(component))
        return names
    return []


def find_external_calls(function: Node) -> list[Node]:
    """Collect external-call nodes in the function body, in pre-order."""
    return list(iter_nodes(function.child("body"), "FunctionCall", is_external_call))


def find_state_writes(function: Node) -> list[Node]:
    """Collect writes whose target is not a local binding, in pre-order."""
    locals_ = local_names(function)
    writes: list[Node] = []
    for node in iter_nodes(function.child("body")):
        target = write_target(node)
        if target is None:
            continue
        names = base_identifiers(target)
        if any(name not in locals_ for name in names):
            writes.append(node)
    return writes


def has_reentrancy_hazard(
    external_calls: Sequence[Node],
    state_writes: Sequence[Node],
) -> bool:
    """Decide whether some state write follows an external call."""
    if not external_calls or not state_writes:
        return False

    tagged = [(node, _CALL) for node in external_calls]
    tagged.extend((node, _WRITE) for node in state_writes)
    located = [
        (node.loc.start.line, node.loc.start.column, kind)
        for node, kind in tagged
        if node.loc is not None
    ]
    located.sort(key=lambda item: (item[0], item[1], item[2]))

    for index, (_, _, kind) in enumerate(located):
        if kind != _CALL:
            continue
        for _, _, next_kind in located[index + 1 :]:
            if next_kind == _CALL:
                break
            return True
    return False


def _parameter_nodes(value: object) -> list[Node]:
    if isinstance(value, Node):
        if value.type == "ParameterList":
            return list(value.child_list("parameters"))
        return [value]
    if isinstance(value, tuple):
        return [item for item in value if isinstance(item, Node)]
    return []
