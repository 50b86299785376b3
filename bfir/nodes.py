from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple


# === IR Nodes ===


class Node:
    pass


@dataclass(frozen=True)
class PointerMove(Node):
    delta: int


@dataclass(frozen=True)
class CellAdd(Node):
    delta: int


@dataclass(frozen=True)
class MoveThenAdd(Node):
    """Move the pointer, then add to the cell it lands on."""

    pointer_delta: int
    value_delta: int


@dataclass(frozen=True)
class SetCell(Node):
    value: int


@dataclass(frozen=True)
class Output(Node):
    pass


@dataclass(frozen=True)
class Input(Node):
    pass


@dataclass(frozen=True)
class Loop(Node):
    body: Tuple[Node, ...]


@dataclass(frozen=True)
class Program(Node):
    body: Tuple[Node, ...]


def contains_input(nodes: Tuple[Node, ...]) -> bool:
    pending = list(nodes)
    while pending:
        node = pending.pop()
        if isinstance(node, Input):
            return True
        if isinstance(node, (Loop, Program)):
            pending.extend(node.body)
    return False


def count_nodes(nodes: Tuple[Node, ...]) -> int:
    total = 0
    pending = list(nodes)
    while pending:
        node = pending.pop()
        total += 1
        if isinstance(node, (Loop, Program)):
            pending.extend(node.body)
    return total


def nesting_depth(nodes: Tuple[Node, ...]) -> int:
    deepest = 0
    pending = [(node, 1) for node in nodes if isinstance(node, Loop)]
    while pending:
        node, depth = pending.pop()
        deepest = max(deepest, depth)
        pending.extend((child, depth + 1) for child in node.body if isinstance(child, Loop))
    return deepest


def _leaf_to_dict(node: Node) -> dict:
    if isinstance(node, PointerMove):
        return {"kind": "pointer_move", "delta": node.delta}
    if isinstance(node, CellAdd):
        return {"kind": "cell_add", "delta": node.delta}
    if isinstance(node, MoveThenAdd):
        return {
            "kind": "move_then_add",
            "pointer_delta": node.pointer_delta,
            "value_delta": node.value_delta,
        }
    if isinstance(node, SetCell):
        return {"kind": "set_cell", "value": node.value}
    if isinstance(node, Output):
        return {"kind": "output"}
    if isinstance(node, Input):
        return {"kind": "input"}
    if isinstance(node, Loop):
        return {"kind": "loop", "body": []}
    if isinstance(node, Program):
        return {"kind": "program", "body": []}
    raise TypeError(f"Unknown node type: {type(node).__name__}")


def node_to_dict(node: Node) -> dict:
    root: List[dict] = []
    # Children are pushed in reverse so each body list fills in source order.
    pending: List[Tuple[Node, List[dict]]] = [(node, root)]
    while pending:
        current, target = pending.pop()
        entry = _leaf_to_dict(current)
        target.append(entry)
        if isinstance(current, (Loop, Program)):
            pending.extend((child, entry["body"]) for child in reversed(current.body))
    return root[0]


def format_tree(program: Program, indent: str = "  ") -> str:
    lines: List[str] = ["Program"]
    pending: List[Tuple[Node, int]] = [(node, 1) for node in reversed(program.body)]
    while pending:
        node, depth = pending.pop()
        prefix = indent * depth
        if isinstance(node, Loop):
            lines.append(f"{prefix}Loop")
            pending.extend((child, depth + 1) for child in reversed(node.body))
        elif isinstance(node, PointerMove):
            lines.append(f"{prefix}PointerMove({node.delta:+d})")
        elif isinstance(node, CellAdd):
            lines.append(f"{prefix}CellAdd({node.delta:+d})")
        elif isinstance(node, MoveThenAdd):
            lines.append(f"{prefix}MoveThenAdd({node.pointer_delta:+d}, {node.value_delta:+d})")
        elif isinstance(node, SetCell):
            lines.append(f"{prefix}SetCell({node.value})")
        else:
            lines.append(f"{prefix}{type(node).__name__}")
    return "\n".join(lines)


__all__ = [
    "Node",
    "PointerMove",
    "CellAdd",
    "MoveThenAdd",
    "SetCell",
    "Output",
    "Input",
    "Loop",
    "Program",
    "contains_input",
    "count_nodes",
    "nesting_depth",
    "node_to_dict",
    "format_tree",
]
