from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field, validator

from bfir.codegen import TARGETS, generate
from bfir.errors import InputUnsupported, ParseError, PointerOutOfRange
from bfir.interpreter import DEFAULT_TAPE_LENGTH, Interpreter, StepLimitExceeded
from bfir.nodes import Program, count_nodes, node_to_dict
from bfir.parser import DEFAULT_MAX_DEPTH, Parser

MAX_TAPE_LENGTH = 1_000_000
DEFAULT_MAX_STEPS = 5_000_000
# Nested JSON responses recurse in the encoders, so trees are rendered only this deep.
TREE_MAX_DEPTH = 64


class ParseRequest(BaseModel):
    code: str = ""


class ParseResponse(BaseModel):
    nodes: List[dict]
    node_count: int


class RunRequest(BaseModel):
    code: str = ""
    tape_length: int = Field(default=DEFAULT_TAPE_LENGTH, ge=1, le=MAX_TAPE_LENGTH)
    max_steps: Optional[int] = Field(default=DEFAULT_MAX_STEPS, ge=1)


class RunResponse(BaseModel):
    output: str
    steps: int


class GenerateRequest(BaseModel):
    code: str = ""
    target: str = "python"
    tape_length: int = Field(default=DEFAULT_TAPE_LENGTH, ge=1, le=MAX_TAPE_LENGTH)

    @validator("target")
    def validate_target(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in TARGETS:
            raise ValueError(f"target must be one of: {', '.join(sorted(TARGETS))}")
        return normalized


class GenerateResponse(BaseModel):
    target: str
    source: str


def _parse_or_422(code: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Program:
    try:
        return Parser(max_depth=max_depth).parse(code)
    except ParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


def create_app(tree_max_depth: int = TREE_MAX_DEPTH) -> FastAPI:
    app = FastAPI(title="bfir API", version="0.1.0")

    @app.post("/api/parse", response_model=ParseResponse)
    def parse_code(payload: ParseRequest) -> ParseResponse:
        program = _parse_or_422(payload.code, max_depth=tree_max_depth)
        return ParseResponse(
            nodes=[node_to_dict(node) for node in program.body],
            node_count=count_nodes(program.body),
        )

    @app.post("/api/run", response_model=RunResponse)
    def run_code(payload: RunRequest) -> RunResponse:
        program = _parse_or_422(payload.code)
        interpreter = Interpreter(tape_length=payload.tape_length, max_steps=payload.max_steps)
        context = interpreter.new_context()
        try:
            interpreter.execute(program, context)
        except InputUnsupported as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc
        except (StepLimitExceeded, PointerOutOfRange) as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc
        return RunResponse(output=context.text(), steps=context.steps)

    @app.post("/api/generate", response_model=GenerateResponse)
    def generate_code(payload: GenerateRequest) -> GenerateResponse:
        program = _parse_or_422(payload.code)
        try:
            source = generate(program, target=payload.target, tape_length=payload.tape_length)
        except InputUnsupported as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc
        return GenerateResponse(target=payload.target, source=source)

    return app


__all__ = ["create_app"]
