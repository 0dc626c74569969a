"""Syntax tree model for parsed Solidity units."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

_RESERVED_KEYS = {"type", "loc", "range"}


@dataclass(frozen=True, slots=True)
class Position:
    """A line/column pair as emitted by the parser (1-based line, 0-based column)."""

    line: int
    column: int


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """Start/end positions of a node."""

    start: Position
    end: Position


Link = Union["Node", tuple["Node | None", ...], None]


@dataclass(frozen=True, slots=True, eq=False)
class Node:
    """A tagged tree element.

    Scalar attributes live in ``fields``; nested constructs live in ``links``
    keyed by the name the parser gave them, in declared order.
    """

    type: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    links: Mapping[str, Link] = field(default_factory=dict)
    loc: SourceSpan | None = None
    range: tuple[int, int] | None = None

    def attr(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def text(self, name: str) -> str | None:
        value = self.fields.get(name)
        return value if isinstance(value, str) else None

    def flag(self, name: str) -> bool:
        return self.fields.get(name) is True

    def child(self, name: str) -> Node | None:
        value = self.links.get(name)
        return value if isinstance(value, Node) else None

    def child_list(self, name: str) -> tuple[Node, ...]:
        value = self.links.get(name)
        if isinstance(value, Node):
            return (value,)
        if isinstance(value, tuple):
            return tuple(item for item in value if item is not None)
        return ()

    @property
    def children(self) -> tuple[Node, ...]:
        """Direct children in declared order, absent entries skipped."""
        return tuple(_iter_links(self.links))

    @property
    def start(self) -> Position | None:
        return self.loc.start if self.loc is not None else None

    def __repr__(self) -> str:
        where = f"@{self.loc.start.line}:{self.loc.start.column}" if self.loc else ""
        return f"Node({self.type}{where})"


@dataclass(frozen=True, slots=True)
class ParseError:
    """A diagnostic reported by the parser collaborator."""

    line: int
    column: int
    message: str


@dataclass(slots=True)
class ParsedUnit:
    """Parser output for one file: a tree, or diagnostics, never both."""

    tree: Node | None
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.tree is not None and not self.errors


def node_from_dict(data: Mapping[str, Any]) -> Node:
    """Convert a JSON AST object into a ``Node`` tree."""
    node_type = data.get("type")
    if not isinstance(node_type, str):
        raise ValueError(f"AST object is missing a string 'type': {_preview(data)}")

    fields: dict[str, Any] = {}
    links: dict[str, Link] = {}
    for key, value in data.items():
        if key in _RESERVED_KEYS:
            continue
        if _is_node_dict(value):
            links[key] = node_from_dict(value)
        elif isinstance(value, list) and any(_is_node_dict(item) for item in value):
            links[key] = tuple(
                node_from_dict(item) if _is_node_dict(item) else None for item in value
            )
        elif value is None:
            links[key] = None
        else:
            fields[key] = value

    return Node(
        type=node_type,
        fields=fields,
        links=links,
        loc=_parse_loc(data.get("loc")),
        range=_parse_range(data.get("range")),
    )


def parsed_unit_from_json(payload: Any) -> ParsedUnit:
    """Build a ``ParsedUnit`` from a bare AST or an ``{"ast", "errors"}`` envelope."""
    if not isinstance(payload, dict):
        raise ValueError("AST payload must be a JSON object")

    if "type" in payload:
        return ParsedUnit(tree=node_from_dict(payload))

    errors = [_parse_error(item) for item in payload.get("errors") or []]
    raw_ast = payload.get("ast")
    if errors:
        return ParsedUnit(tree=None, errors=errors)
    if not isinstance(raw_ast, dict):
        raise ValueError("AST envelope must contain an 'ast' object or 'errors'")
    return ParsedUnit(tree=node_from_dict(raw_ast))


def load_parsed_unit(path: Path) -> ParsedUnit:
    """Read a parser JSON dump from disk."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid AST JSON in {path}: {exc}") from exc
    return parsed_unit_from_json(payload)


def node_text(node: Node, source: str) -> str | None:
    """Return the verbatim source of a node, if it can be located."""
    if not source:
        return None
    if node.range is not None:
        start, end = node.range
        if 0 <= start <= end < len(source):
            return source[start : end + 1]
    if node.loc is not None:
        lines = source.splitlines()
        first = node.loc.start.line
        last = max(first, node.loc.end.line)
        if 1 <= first <= len(lines):
            return "\n".join(lines[first - 1 : last])
    return None


def _iter_links(links: Mapping[str, Link]) -> Iterator[Node]:
    for value in links.values():
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if item is not None:
                    yield item


def _is_node_dict(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("type"), str)


def _parse_loc(value: Any) -> SourceSpan | None:
    if not isinstance(value, dict):
        return None
    start = _parse_position(value.get("start"))
    if start is None:
        return None
    end = _parse_position(value.get("end")) or start
    return SourceSpan(start=start, end=end)


def _parse_position(value: Any) -> Position | None:
    if not isinstance(value, dict):
        return None
    line = value.get("line")
    column = value.get("column", 0)
    if not _is_int(line) or not _is_int(column) or line < 1 or column < 0:
        return None
    return Position(line=line, column=column)


def _parse_range(value: Any) -> tuple[int, int] | None:
    if not isinstance(value, list) or len(value) != 2:
        return None
    start, end = value
    if not _is_int(start) or not _is_int(end) or start < 0 or end < start:
        return None
    return (start, end)


def _parse_error(value: Any) -> ParseError:
    if not isinstance(value, dict):
        raise ValueError("Parse errors must be JSON objects")
    line = value.get("line", 0)
    column = value.get("column", 0)
    return ParseError(
        line=line if _is_int(line) else 0,
        column=column if _is_int(column) else 0,
        message=str(value.get("message", "parse error")),
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _preview(data: Mapping[str, Any], max_len: int = 60) -> str:
    text = repr(dict(data))
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
