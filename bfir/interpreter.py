from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import InputUnsupported, PointerOutOfRange
from .nodes import CellAdd, Input, Loop, MoveThenAdd, Node, Output, PointerMove, Program, SetCell, contains_input
from .parser import DEFAULT_MAX_DEPTH, parse_program

logger = logging.getLogger(__name__)

CELL_MODULUS = 256
DEFAULT_TAPE_LENGTH = 30000


class StepLimitExceeded(RuntimeError):
    """Raised when execution exceeds the configured step budget."""


def wrapping_add(value: int, delta: int) -> int:
    return (value + delta) % CELL_MODULUS


@dataclass
class ExecutionContext:
    tape: List[int]
    pointer: int = 0
    output: List[str] = field(default_factory=list)
    steps: int = 0

    @classmethod
    def fresh(cls, tape_length: int = DEFAULT_TAPE_LENGTH) -> "ExecutionContext":
        return cls(tape=[0] * tape_length)

    @property
    def current(self) -> int:
        return self.tape[self.pointer]

    def text(self) -> str:
        return "".join(self.output)


@dataclass
class _Frame:
    body: Tuple[Node, ...]
    index: int = 0
    repeat: bool = False


@dataclass
class Interpreter:
    tape_length: int = DEFAULT_TAPE_LENGTH
    max_steps: Optional[int] = None

    def __post_init__(self) -> None:
        if self.tape_length < 1:
            raise ValueError("tape_length must be at least 1")

    def new_context(self) -> ExecutionContext:
        return ExecutionContext.fresh(self.tape_length)

    def run(self, program: Program) -> str:
        context = self.new_context()
        self.execute(program, context)
        return context.text()

    def execute(self, program: Program, context: ExecutionContext) -> ExecutionContext:
        """Walk ``program`` against ``context`` until it halts.

        Loop bodies are pushed as frames; a frame created for a loop is
        rewound while the current cell stays nonzero at the end of its body.
        """
        if contains_input(program.body):
            raise InputUnsupported()

        frames: List[_Frame] = [_Frame(program.body)]
        while frames:
            frame = frames[-1]
            if frame.index >= len(frame.body):
                if frame.repeat and context.current != 0:
                    self._count_step(context)
                    frame.index = 0
                else:
                    frames.pop()
                continue

            node = frame.body[frame.index]
            frame.index += 1
            self._count_step(context)
            if isinstance(node, Loop):
                if context.current != 0:
                    frames.append(_Frame(node.body, repeat=True))
            else:
                self._execute_node(node, context)

        logger.debug("Program halted after %d steps with %d output chars", context.steps, len(context.output))
        return context

    def _count_step(self, context: ExecutionContext) -> None:
        if self.max_steps is not None and context.steps >= self.max_steps:
            raise StepLimitExceeded("Brainfuck program exceeded allowed step count")
        context.steps += 1

    def _execute_node(self, node: Node, context: ExecutionContext) -> None:
        if isinstance(node, PointerMove):
            self._move(context, node.delta)
        elif isinstance(node, CellAdd):
            context.tape[context.pointer] = wrapping_add(context.current, node.delta)
        elif isinstance(node, MoveThenAdd):
            self._move(context, node.pointer_delta)
            context.tape[context.pointer] = wrapping_add(context.current, node.value_delta)
        elif isinstance(node, SetCell):
            context.tape[context.pointer] = node.value % CELL_MODULUS
        elif isinstance(node, Output):
            context.output.append(chr(context.current))
        elif isinstance(node, Input):
            raise InputUnsupported()
        else:
            raise TypeError(f"Cannot execute node type {type(node).__name__}")

    def _move(self, context: ExecutionContext, delta: int) -> None:
        target = context.pointer + delta
        if not 0 <= target < len(context.tape):
            raise PointerOutOfRange(target, len(context.tape))
        context.pointer = target


def run_source(
    text: str,
    tape_length: int = DEFAULT_TAPE_LENGTH,
    max_steps: Optional[int] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str:
    program = parse_program(text, max_depth=max_depth)
    return Interpreter(tape_length=tape_length, max_steps=max_steps).run(program)


__all__ = [
    "ExecutionContext",
    "Interpreter",
    "StepLimitExceeded",
    "run_source",
    "wrapping_add",
]
