"""Source emitters for the IR.

Each target mirrors :class:`bfir.interpreter.Interpreter`: a zeroed tape of
``tape_length`` cells, wrapping 8-bit arithmetic, bounds-checked pointer
moves, and output collected until the program halts. Programs containing an
``Input`` node are rejected, as the interpreter rejects them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Tuple, Type

from .errors import InputUnsupported
from .interpreter import DEFAULT_TAPE_LENGTH
from .nodes import (
    CellAdd,
    Loop,
    MoveThenAdd,
    Node,
    Output,
    PointerMove,
    Program,
    SetCell,
    contains_input,
    nesting_depth,
)

logger = logging.getLogger(__name__)


class Emitter:
    """Base class for code emitters with indentation tracking."""

    def __init__(self, indent_str: str = "    ") -> None:
        self.indent: int = 0
        self.lines: List[str] = []
        self._indent_str = indent_str

    def line(self, text: str = "") -> None:
        if text:
            self.lines.append(self._indent_str * self.indent + text)
        else:
            self.lines.append("")

    def output(self) -> str:
        return "\n".join(self.lines) + "\n"


class TargetEmitter(Emitter, ABC):
    name = ""

    def __init__(self, tape_length: int = DEFAULT_TAPE_LENGTH) -> None:
        super().__init__()
        self.tape_length = tape_length

    def emit(self, program: Program) -> str:
        self.prologue(program)
        self.emit_body(program)
        self.epilogue()
        return self.output()

    def statement(self, node: Node) -> None:
        if isinstance(node, PointerMove):
            self.move(node.delta)
        elif isinstance(node, CellAdd):
            self.add(node.delta)
        elif isinstance(node, MoveThenAdd):
            self.move(node.pointer_delta)
            self.add(node.value_delta)
        elif isinstance(node, SetCell):
            self.assign(node.value % 256)
        elif isinstance(node, Output):
            self.write()
        else:
            raise TypeError(f"No {self.name} mapping for node type {type(node).__name__}")

    # --- Target hooks ---

    @abstractmethod
    def prologue(self, program: Program) -> None: ...

    @abstractmethod
    def epilogue(self) -> None: ...

    @abstractmethod
    def emit_body(self, program: Program) -> None: ...

    @abstractmethod
    def move(self, delta: int) -> None: ...

    @abstractmethod
    def add(self, delta: int) -> None: ...

    @abstractmethod
    def assign(self, value: int) -> None: ...

    @abstractmethod
    def write(self) -> None: ...


class PythonEmitter(TargetEmitter):
    """Emit a Python script with one top-level function per loop.

    CPython caps statically nested blocks at 20, so loops are never nested
    in the output; a loop body calls the functions of its inner loops.
    """

    name = "python"
    default_recursion_limit = 1000

    def __init__(self, tape_length: int = DEFAULT_TAPE_LENGTH) -> None:
        super().__init__(tape_length=tape_length)
        self._loop_names: Dict[int, str] = {}

    def prologue(self, program: Program) -> None:
        self.line("import sys")
        self.line()
        self.line(f"TAPE_LENGTH = {self.tape_length}")
        depth = nesting_depth(program.body)
        # Each nested loop adds one frame at run time.
        if depth + 100 > self.default_recursion_limit:
            self.line(f"sys.setrecursionlimit({depth + 100 + self.default_recursion_limit})")
        self.line()
        self.line()
        self.line("def move(ptr, delta):")
        self.indent += 1
        self.line("ptr += delta")
        self.line("if not 0 <= ptr < TAPE_LENGTH:")
        self.line('    raise IndexError(f"Pointer moved to {ptr}, outside tape of {TAPE_LENGTH} cells")')
        self.line("return ptr")
        self.indent -= 1

    def emit_body(self, program: Program) -> None:
        loops = self._number_loops(program.body)
        for loop in loops:
            self.line()
            self.line()
            self.line(f"def {self._loop_names[id(loop)]}(tape, ptr, out):")
            self.indent += 1
            self.line("while tape[ptr] != 0:")
            self.indent += 1
            if not loop.body:
                self.line("pass")
            self._emit_statements(loop.body)
            self.indent -= 1
            self.line("return ptr")
            self.indent -= 1

        self.line()
        self.line()
        self.line("def main():")
        self.indent += 1
        self.line("tape = [0] * TAPE_LENGTH")
        self.line("ptr = 0")
        self.line("out = []")
        self._emit_statements(program.body)

    def _number_loops(self, nodes: Tuple[Node, ...]) -> List[Loop]:
        loops: List[Loop] = []
        pending: List[Tuple[Node, ...]] = [nodes]
        while pending:
            for node in pending.pop(0):
                if isinstance(node, Loop):
                    self._loop_names[id(node)] = f"loop_{len(loops)}"
                    loops.append(node)
                    pending.append(node.body)
        return loops

    def _emit_statements(self, nodes: Tuple[Node, ...]) -> None:
        for node in nodes:
            if isinstance(node, Loop):
                self.line(f"ptr = {self._loop_names[id(node)]}(tape, ptr, out)")
            else:
                self.statement(node)

    def epilogue(self) -> None:
        self.line('sys.stdout.write("".join(out))')
        self.indent -= 1
        self.line()
        self.line()
        self.line('if __name__ == "__main__":')
        self.line("    main()")

    def move(self, delta: int) -> None:
        self.line(f"ptr = move(ptr, {delta})")

    def add(self, delta: int) -> None:
        operator = "+" if delta >= 0 else "-"
        self.line(f"tape[ptr] = (tape[ptr] {operator} {abs(delta)}) % 256")

    def assign(self, value: int) -> None:
        self.line(f"tape[ptr] = {value}")

    def write(self) -> None:
        self.line("out.append(chr(tape[ptr]))")


class RustEmitter(TargetEmitter):
    name = "rust"

    def prologue(self, program: Program) -> None:
        self.line(f"const TAPE_LENGTH: isize = {self.tape_length};")
        self.line()
        self.line("fn step(ptr: isize, delta: isize) -> isize {")
        self.indent += 1
        self.line("let next = ptr + delta;")
        self.line("if next < 0 || next >= TAPE_LENGTH {")
        self.line('    panic!("Pointer moved to {}, outside tape of {} cells", next, TAPE_LENGTH);')
        self.line("}")
        self.line("next")
        self.indent -= 1
        self.line("}")
        self.line()
        self.line("#[allow(unused_mut)]")
        self.line("fn main() {")
        self.indent += 1
        self.line("let mut memory: Vec<u8> = vec![0; TAPE_LENGTH as usize];")
        self.line("let mut ptr: isize = 0;")
        self.line("let mut out = String::new();")

    def emit_body(self, program: Program) -> None:
        pending: List[Iterator[Node]] = [iter(program.body)]
        base_indent = self.indent
        while pending:
            node: Optional[Node] = next(pending[-1], None)
            if node is None:
                pending.pop()
                if pending:
                    self.indent -= 1
                    self.line("}")
                continue
            if isinstance(node, Loop):
                self.line("while memory[ptr as usize] != 0 {")
                self.indent += 1
                pending.append(iter(node.body))
            else:
                self.statement(node)
        self.indent = base_indent

    def epilogue(self) -> None:
        self.line('print!("{}", out);')
        self.indent -= 1
        self.line("}")

    def move(self, delta: int) -> None:
        self.line(f"ptr = step(ptr, {delta});")

    def add(self, delta: int) -> None:
        method = "wrapping_add" if delta >= 0 else "wrapping_sub"
        self.line(f"memory[ptr as usize] = memory[ptr as usize].{method}({abs(delta) % 256}u8);")

    def assign(self, value: int) -> None:
        self.line(f"memory[ptr as usize] = {value}u8;")

    def write(self) -> None:
        self.line("out.push(memory[ptr as usize] as char);")


TARGETS: Dict[str, Type[TargetEmitter]] = {
    PythonEmitter.name: PythonEmitter,
    RustEmitter.name: RustEmitter,
}


def generate(program: Program, target: str = "python", tape_length: int = DEFAULT_TAPE_LENGTH) -> str:
    try:
        emitter_cls = TARGETS[target]
    except KeyError as exc:
        raise ValueError(f"Unknown target '{target}', expected one of {sorted(TARGETS)}") from exc
    if contains_input(program.body):
        raise InputUnsupported()
    source = emitter_cls(tape_length=tape_length).emit(program)
    logger.debug("Emitted %d lines of %s source", source.count("\n"), target)
    return source


__all__ = [
    "Emitter",
    "PythonEmitter",
    "RustEmitter",
    "TARGETS",
    "TargetEmitter",
    "generate",
]
