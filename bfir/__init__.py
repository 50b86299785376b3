from .codegen import generate
from .errors import (
    BrainfuckError,
    InputUnsupported,
    NestingTooDeep,
    ParseError,
    PointerOutOfRange,
    UnmatchedLoopClose,
    UnmatchedLoopOpen,
)
from .interpreter import ExecutionContext, Interpreter, StepLimitExceeded, run_source
from .nodes import CellAdd, Input, Loop, MoveThenAdd, Output, PointerMove, Program, SetCell
from .parser import Parser, parse_program

__all__ = [
    "BrainfuckError",
    "CellAdd",
    "ExecutionContext",
    "Input",
    "InputUnsupported",
    "Interpreter",
    "Loop",
    "MoveThenAdd",
    "NestingTooDeep",
    "Output",
    "ParseError",
    "Parser",
    "PointerMove",
    "PointerOutOfRange",
    "Program",
    "SetCell",
    "StepLimitExceeded",
    "UnmatchedLoopClose",
    "UnmatchedLoopOpen",
    "generate",
    "parse_program",
    "run_source",
]
