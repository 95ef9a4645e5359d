"""
Robolab Kernel — Compiler

Pure function: block forest → CompileResult(program, warnings)
No side effects. No IO. Deterministic.

Given the same block forest, produces an equal Program every time.
Each block maps to at most one instruction; nested bodies are compiled
before the compound instruction that holds them.

The compiler never raises for block content. Unknown kinds, malformed
nodes, and out-of-range fields are recovered locally and reported as
CompileWarnings so the editor can surface them.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from robolab.kernel.blocks import canonical_block, coerce_fields, validate_block
from robolab.kernel.types import (
    COMPOUND_KINDS,
    BlockNode,
    CompileResult,
    CompileWarning,
    EngineConfig,
    IfGoalReached,
    Instruction,
    Move,
    Program,
    Repeat,
    RepeatBounded,
    Say,
    TurnLeft,
    TurnRight,
    Wait,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compile_program(blocks: Sequence[BlockNode], *, config: EngineConfig | None = None) -> CompileResult:
    """
    Compile an ordered forest of block nodes into a Program.

    The config supplies the mode (grid turns must be multiples of 90)
    and the loop iteration ceiling used for forever loops.
    """
    compiler = _Compiler(config or EngineConfig())
    program = compiler.compile_sequence(blocks, path="")
    return CompileResult(program=program, warnings=compiler.warnings)


def compile_source(data: Any, *, config: EngineConfig | None = None) -> CompileResult:
    """
    Compile the serialized form of a block forest.

    Accepts a list of node dicts or {"blocks": [...]}. Nodes that are not
    dicts or lack a "kind" are skipped with a MALFORMED_BLOCK warning.
    """
    warnings: list[CompileWarning] = []

    if isinstance(data, dict) and "blocks" in data:
        data = data["blocks"]
    if not isinstance(data, list):
        warnings.append(CompileWarning(code="MALFORMED_PROGRAM", message="Program must be a list of blocks"))
        return CompileResult(program=(), warnings=warnings)

    blocks = _parse_nodes(data, "", warnings)
    result = compile_program(blocks, config=config)
    result.warnings = warnings + result.warnings
    return result


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_nodes(items: list[Any], prefix: str, warnings: list[CompileWarning]) -> tuple[BlockNode, ...]:
    nodes: list[BlockNode] = []
    for i, item in enumerate(items):
        path = _join(prefix, i)
        if not isinstance(item, dict) or not isinstance(item.get("kind"), str):
            warnings.append(
                CompileWarning(
                    code="MALFORMED_BLOCK",
                    message="Block must be an object with a string 'kind'",
                    path=path,
                )
            )
            # Placeholder keeps sibling paths aligned with the raw forest
            nodes.append(BlockNode(kind=_MALFORMED))
            continue

        fields = item.get("fields")
        if fields is not None and not isinstance(fields, dict):
            warnings.append(CompileWarning(code="MALFORMED_BLOCK", message="'fields' must be an object", path=path))
            fields = None

        raw_body = item.get("body")
        body: tuple[BlockNode, ...] | None = None
        if raw_body is not None:
            if isinstance(raw_body, list):
                body = _parse_nodes(raw_body, f"{path}/body", warnings)
            else:
                warnings.append(CompileWarning(code="MALFORMED_BLOCK", message="'body' must be a list", path=path))

        nodes.append(BlockNode(kind=item["kind"], fields=dict(fields or {}), body=body))
    return tuple(nodes)


_MALFORMED = "__malformed__"


def _join(prefix: str, index: int) -> str:
    return f"{prefix}/{index}" if prefix else str(index)


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


class _Compiler:
    def __init__(self, config: EngineConfig):
        self.config = config
        self.warnings: list[CompileWarning] = []

    def compile_sequence(self, blocks: Sequence[BlockNode], path: str) -> Program:
        program: list[Instruction] = []
        for i, block in enumerate(blocks):
            program.extend(self.compile_block(block, _join(path, i)))
        return tuple(program)

    def compile_block(self, raw: BlockNode, path: str) -> list[Instruction]:
        if raw.kind == _MALFORMED:
            return []

        node = canonical_block(raw)
        if node is None:
            self._warn("UNKNOWN_BLOCK", f"Unknown block kind '{raw.kind}' skipped", path, kind=raw.kind)
            return []

        for error in validate_block(node):
            self._warn("UNEXPECTED_BODY", error, path)
        if node.body is not None and node.kind not in COMPOUND_KINDS:
            node = BlockNode(kind=node.kind, fields=node.fields, body=None)

        fields, field_warnings = coerce_fields(
            node, loop_ceiling=self.config.loop_iteration_ceiling, path=path, source_kind=raw.kind
        )
        self.warnings.extend(field_warnings)

        # Bodies compile first (post-order)
        body: Program = ()
        if node.body is not None:
            body = self.compile_sequence(node.body, f"{path}/body")

        kind = node.kind
        if kind == "start-event":
            # Hat block: an entry marker, not an instruction
            return list(body)
        if kind == "move":
            return [Move(distance=fields["distance"])]
        if kind == "turn":
            degrees = self._turn_degrees(fields["degrees"], path)
            if fields["direction"] == "left":
                return [TurnLeft(degrees=degrees)]
            return [TurnRight(degrees=degrees)]
        if kind == "wait":
            return [Wait(seconds=fields["seconds"])]
        if kind == "say":
            return [Say(text=fields["text"])]
        if kind == "repeat-n":
            return [Repeat(count=fields["count"], body=body)]
        if kind == "repeat-forever":
            ceiling = self.config.loop_iteration_ceiling
            self._warn(
                "FOREVER_LOOP_BOUNDED",
                f"Forever loop stops after {ceiling} iterations",
                path,
                max_iterations=ceiling,
            )
            return [RepeatBounded(body=body, max_iterations=ceiling)]
        if kind == "if-goal-reached":
            return [IfGoalReached(body=body)]
        if kind == "if-condition":
            return self._compile_condition(fields["condition"], body, path)

        # Registry and dispatch out of sync; treat like an unknown block
        self._warn("UNKNOWN_BLOCK", f"No compiler for block kind '{kind}'", path, kind=kind)
        return []

    def _compile_condition(self, condition: str, body: Program, path: str) -> list[Instruction]:
        if condition == "goal-reached":
            return [IfGoalReached(body=body)]
        if condition == "true":
            return list(body)
        self._warn("CONDITION_ALWAYS_FALSE", "Condition is always false; body never runs", path)
        return []

    def _turn_degrees(self, degrees: int, path: str) -> int:
        if self.config.mode != "grid" or degrees % 90 == 0:
            return degrees
        snapped = max(90, int(round(degrees / 90)) * 90)
        self._warn(
            "INVALID_FIELD_VALUE",
            f"turn.degrees: grid turns must be multiples of 90; {degrees} snapped to {snapped}",
            path,
            field="degrees",
            value=degrees,
            coerced=snapped,
        )
        return snapped

    def _warn(self, code: str, message: str, path: str, **details: Any) -> None:
        self.warnings.append(CompileWarning(code=code, message=message, path=path, details=details or None))
