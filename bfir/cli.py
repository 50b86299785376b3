from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .codegen import TARGETS, generate
from .errors import BrainfuckError
from .interpreter import DEFAULT_TAPE_LENGTH, Interpreter, StepLimitExceeded
from .nodes import format_tree
from .parser import Parser

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def _write_output(path: str, data: str) -> None:
    output_path = Path(path)
    output_path.write_text(data, encoding="utf-8")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Brainfuck optimizing interpreter and code generator")
    parser.add_argument("source", help="Path to Brainfuck source file")
    parser.add_argument(
        "--run",
        action="store_true",
        help="Interpret the program instead of emitting source",
    )
    parser.add_argument(
        "-t",
        "--target",
        choices=sorted(TARGETS),
        default="python",
        help="Language of the emitted source (default: python)",
    )
    parser.add_argument(
        "-o",
        "--emit",
        help="Destination file for emitted source (default: print to stdout)",
    )
    parser.add_argument(
        "--dump-ir",
        action="store_true",
        help="Print the optimized node tree and exit",
    )
    parser.add_argument(
        "--tape-length",
        type=_positive_int,
        default=DEFAULT_TAPE_LENGTH,
        help=f"Number of tape cells (default: {DEFAULT_TAPE_LENGTH})",
    )
    parser.add_argument(
        "--max-steps",
        type=_positive_int,
        default=None,
        help="Abort interpretation after this many steps",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline details to stderr")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        source_text = _read_source(args.source)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    try:
        program = Parser().parse(source_text)
    except BrainfuckError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        return 1

    if args.dump_ir:
        sys.stdout.write(format_tree(program) + "\n")
        return 0

    if args.run:
        interpreter = Interpreter(tape_length=args.tape_length, max_steps=args.max_steps)
        try:
            output = interpreter.run(program)
        except (BrainfuckError, StepLimitExceeded) as exc:
            print(f"Runtime error: {exc}", file=sys.stderr)
            return 1
        sys.stdout.write(output)
        sys.stdout.flush()
        return 0

    try:
        code = generate(program, target=args.target, tape_length=args.tape_length)
    except BrainfuckError as exc:
        print(f"Code generation error: {exc}", file=sys.stderr)
        return 1

    if args.emit:
        _write_output(args.emit, code)
        logger.info("Wrote %s source to %s", args.target, args.emit)
    else:
        sys.stdout.write(code)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
