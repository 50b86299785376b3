from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple

from .errors import NestingTooDeep, UnmatchedLoopClose, UnmatchedLoopOpen
from .nodes import CellAdd, Input, Loop, MoveThenAdd, Node, Output, PointerMove, Program, SetCell

logger = logging.getLogger(__name__)

INSTRUCTIONS = frozenset("><+-.,[]")
MOVE_RIGHT, MOVE_LEFT = ">", "<"
INCREMENT, DECREMENT = "+", "-"
LOOP_OPEN, LOOP_CLOSE = "[", "]"

DEFAULT_MAX_DEPTH = 10_000


# === Filter ===


def filter_tokens(text: Iterable[str]) -> List[str]:
    return [ch for ch in text if ch in INSTRUCTIONS]


# === Run-Length Scanner ===


def run_length(tokens: Sequence[str], start: int, add: str, sub: str) -> Tuple[int, int]:
    """Sum the run of ``add``/``sub`` tokens beginning at ``start``.

    Returns ``(net, consumed)``. ``consumed`` stops at the first token that is
    neither symbol, or at the end of ``tokens`` when the run reaches it.
    """
    net = 0
    index = start
    length = len(tokens)
    while index < length:
        token = tokens[index]
        if token == add:
            net += 1
        elif token == sub:
            net -= 1
        else:
            break
        index += 1
    return net, index - start


# === Peephole rules ===


def fuse_move_add(block: List[Node], delta: int) -> bool:
    """Replace a trailing ``PointerMove`` in ``block`` with a ``MoveThenAdd``."""
    if block and isinstance(block[-1], PointerMove):
        block[-1] = MoveThenAdd(block[-1].delta, delta)
        return True
    return False


def is_clear_idiom(tokens: Sequence[str], index: int) -> bool:
    if index + 2 >= len(tokens):
        return False
    return tokens[index + 1] == DECREMENT and tokens[index + 2] == LOOP_CLOSE


# === Parser ===


class Parser:
    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.max_depth = max_depth

    def parse(self, text: str) -> Program:
        tokens = filter_tokens(text)
        nodes, consumed = self.parse_block(tokens)
        logger.debug("Parsed %d tokens into %d top-level nodes", consumed, len(nodes))
        return Program(tuple(nodes))

    def parse_block(
        self,
        tokens: Sequence[str],
        start: int = 0,
        nested: bool = False,
    ) -> Tuple[List[Node], int]:
        """Build the node sequence for the block beginning at ``start``.

        With ``nested`` the block is a loop body: parsing stops after its
        closing ``]`` and the returned count includes that token. Nested
        loops are tracked on an explicit stack rather than by recursion.
        """
        block: List[Node] = []
        # Enclosing blocks, each paired with the position of the '[' that left it.
        stack: List[Tuple[List[Node], int]] = []
        depth_offset = 1 if nested else 0
        index = start
        length = len(tokens)

        while index < length:
            token = tokens[index]
            if token in (MOVE_RIGHT, MOVE_LEFT):
                net, consumed = run_length(tokens, index, MOVE_RIGHT, MOVE_LEFT)
                block.append(PointerMove(net))
                index += consumed
                continue
            if token in (INCREMENT, DECREMENT):
                net, consumed = run_length(tokens, index, INCREMENT, DECREMENT)
                if not fuse_move_add(block, net):
                    block.append(CellAdd(net))
                index += consumed
                continue

            if token == ".":
                block.append(Output())
            elif token == ",":
                block.append(Input())
            elif token == LOOP_OPEN:
                if is_clear_idiom(tokens, index):
                    block.append(SetCell(0))
                    index += 3
                    continue
                if len(stack) + depth_offset >= self.max_depth:
                    raise NestingTooDeep(index, self.max_depth)
                stack.append((block, index))
                block = []
            elif token == LOOP_CLOSE:
                if stack:
                    body = tuple(block)
                    block, _ = stack.pop()
                    block.append(Loop(body))
                elif nested:
                    return block, index + 1 - start
                else:
                    raise UnmatchedLoopClose(index)
            index += 1

        if stack:
            raise UnmatchedLoopOpen(stack[-1][1])
        if nested:
            raise UnmatchedLoopOpen(max(start - 1, 0))
        return block, index - start


def parse_program(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Program:
    return Parser(max_depth=max_depth).parse(text)


__all__ = [
    "INSTRUCTIONS",
    "Parser",
    "filter_tokens",
    "fuse_move_add",
    "is_clear_idiom",
    "parse_program",
    "run_length",
]
