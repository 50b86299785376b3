from __future__ import annotations


class BrainfuckError(Exception):
    pass


class ParseError(BrainfuckError):
    pass


class UnmatchedLoopOpen(ParseError):
    def __init__(self, position: int) -> None:
        super().__init__(f"Unmatched '[' at token {position}")
        self.position = position


class UnmatchedLoopClose(ParseError):
    def __init__(self, position: int) -> None:
        super().__init__(f"Unmatched ']' at token {position}")
        self.position = position


class NestingTooDeep(ParseError):
    def __init__(self, position: int, limit: int) -> None:
        super().__init__(f"Loop nesting exceeds {limit} levels at token {position}")
        self.position = position
        self.limit = limit


class PointerOutOfRange(BrainfuckError, IndexError):
    def __init__(self, pointer: int, tape_length: int) -> None:
        super().__init__(f"Pointer moved to {pointer}, outside tape of {tape_length} cells")
        self.pointer = pointer
        self.tape_length = tape_length


class InputUnsupported(BrainfuckError, NotImplementedError):
    """Raised for programs using ',' since reading input is not implemented."""

    def __init__(self) -> None:
        super().__init__("Input instruction ',' is not supported")


__all__ = [
    "BrainfuckError",
    "ParseError",
    "UnmatchedLoopOpen",
    "UnmatchedLoopClose",
    "NestingTooDeep",
    "PointerOutOfRange",
    "InputUnsupported",
]
