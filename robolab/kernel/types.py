"""
Robolab Kernel — Shared Types

Data classes used across blocks, compiler, interpreter, and coordinator.
These are the contracts that bind the kernel together.

Three families:
- Block nodes: what the editor hands us (immutable once compiled)
- Instructions: the compiled Program representation (tagged variants)
- Agent / session state: what the interpreter mutates and the coordinator reports
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Block registry
# ---------------------------------------------------------------------------

BLOCK_KINDS: set[str] = {
    "move",
    "turn",
    "wait",
    "say",
    "repeat-n",
    "repeat-forever",
    "if-condition",
    "if-goal-reached",
    "start-event",
}

# Only these kinds may carry a nested body. A start-event hat may hold the
# sequence that follows it.
COMPOUND_KINDS: set[str] = {
    "repeat-n",
    "repeat-forever",
    "if-condition",
    "if-goal-reached",
    "start-event",
}

MODES: set[str] = {"grid", "canvas"}

# Grid headings, clockwise from north
NORTH = 0
EAST = 90
SOUTH = 180
WEST = 270
CARDINAL_HEADINGS: tuple[int, ...] = (NORTH, EAST, SOUTH, WEST)

# (d_col, d_row) per cardinal heading; row 0 is the bottom row
HEADING_VECTORS: dict[int, tuple[int, int]] = {
    NORTH: (0, 1),
    EAST: (1, 0),
    SOUTH: (0, -1),
    WEST: (-1, 0),
}


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    """
    Timing, bounds, and safety constants for one engine instance.

    Durations are in milliseconds. Zero durations make every suspension
    point a bare yield to the event loop (used by tests).
    """

    mode: str = "grid"
    unit_step_pixels: float = 3.0
    animation_step_duration_ms: float = 280
    turn_animation_duration_ms: float = 168
    move_animation_duration_ms: float = 300
    say_display_duration_ms: float = 1200
    frame_interval_ms: float = 16
    wait_time_scale: float = 1.0  # multiplies Wait(seconds)
    loop_iteration_ceiling: int = 100
    grid_columns: int = 10
    grid_rows: int = 10
    canvas_width: float = 480
    canvas_height: float = 400
    canvas_margin: float = 20

    @classmethod
    def instant(cls, **overrides: Any) -> EngineConfig:
        """Config with all animation delays zeroed out."""
        values: dict[str, Any] = {
            "animation_step_duration_ms": 0,
            "turn_animation_duration_ms": 0,
            "move_animation_duration_ms": 0,
            "say_display_duration_ms": 0,
            "frame_interval_ms": 0,
            "wait_time_scale": 0,
        }
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_settings(cls, settings: Any) -> EngineConfig:
        """Build a config from a `robolab.config.Settings` instance."""
        return cls(
            mode=settings.MODE,
            unit_step_pixels=settings.UNIT_STEP_PIXELS,
            animation_step_duration_ms=settings.ANIMATION_STEP_DURATION_MS,
            turn_animation_duration_ms=settings.TURN_ANIMATION_DURATION_MS,
            move_animation_duration_ms=settings.MOVE_ANIMATION_DURATION_MS,
            say_display_duration_ms=settings.SAY_DISPLAY_DURATION_MS,
            frame_interval_ms=settings.FRAME_INTERVAL_MS,
            wait_time_scale=settings.WAIT_TIME_SCALE,
            loop_iteration_ceiling=settings.LOOP_ITERATION_CEILING,
            grid_columns=settings.GRID_COLUMNS,
            grid_rows=settings.GRID_ROWS,
            canvas_width=settings.CANVAS_WIDTH,
            canvas_height=settings.CANVAS_HEIGHT,
            canvas_margin=settings.CANVAS_MARGIN,
        )


# ---------------------------------------------------------------------------
# Block nodes (compiler input)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockNode:
    """
    One visual block instance.

    `body` is None for simple blocks and a tuple of child nodes for
    compound blocks. Body order is execution order.
    """

    kind: str
    fields: dict[str, Any] = field(default_factory=dict)
    body: tuple[BlockNode, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"kind": self.kind, "fields": dict(self.fields)}
        if self.body is not None:
            d["body"] = [child.to_dict() for child in self.body]
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> BlockNode:
        body = d.get("body")
        return cls(
            kind=d["kind"],
            fields=dict(d.get("fields") or {}),
            body=tuple(cls.from_dict(child) for child in body) if body is not None else None,
        )


# ---------------------------------------------------------------------------
# Instructions (Program representation)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Move:
    distance: float
    op = "move"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "distance": self.distance}


@dataclass(frozen=True)
class TurnRight:
    degrees: float
    op = "turn_right"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "degrees": self.degrees}


@dataclass(frozen=True)
class TurnLeft:
    degrees: float
    op = "turn_left"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "degrees": self.degrees}


@dataclass(frozen=True)
class Wait:
    seconds: float
    op = "wait"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "seconds": self.seconds}


@dataclass(frozen=True)
class Say:
    text: str
    op = "say"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "text": self.text}


@dataclass(frozen=True)
class Repeat:
    count: int
    body: tuple[Instruction, ...]
    op = "repeat"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "count": self.count, "body": program_to_list(self.body)}


@dataclass(frozen=True)
class RepeatBounded:
    """A user-authored forever loop, truncated at `max_iterations`."""

    body: tuple[Instruction, ...]
    max_iterations: int
    op = "repeat_bounded"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "max_iterations": self.max_iterations, "body": program_to_list(self.body)}


@dataclass(frozen=True)
class IfGoalReached:
    body: tuple[Instruction, ...]
    op = "if_goal_reached"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "body": program_to_list(self.body)}


Instruction = Move | TurnRight | TurnLeft | Wait | Say | Repeat | RepeatBounded | IfGoalReached

# A Program is an ordered, immutable sequence of instructions
Program = tuple[Instruction, ...]


def program_to_list(program: Program) -> list[dict[str, Any]]:
    """Serialize a Program to plain JSON-compatible dicts."""
    return [instruction.to_dict() for instruction in program]


def program_from_list(items: list[dict[str, Any]]) -> Program:
    """Inverse of program_to_list."""
    return tuple(instruction_from_dict(item) for item in items)


def instruction_from_dict(d: dict[str, Any]) -> Instruction:
    op = d.get("op")
    if op == "move":
        return Move(distance=d["distance"])
    if op == "turn_right":
        return TurnRight(degrees=d["degrees"])
    if op == "turn_left":
        return TurnLeft(degrees=d["degrees"])
    if op == "wait":
        return Wait(seconds=d["seconds"])
    if op == "say":
        return Say(text=d["text"])
    if op == "repeat":
        return Repeat(count=d["count"], body=program_from_list(d["body"]))
    if op == "repeat_bounded":
        return RepeatBounded(body=program_from_list(d["body"]), max_iterations=d["max_iterations"])
    if op == "if_goal_reached":
        return IfGoalReached(body=program_from_list(d["body"]))
    raise ValueError(f"Unknown instruction op: {op!r}")


# ---------------------------------------------------------------------------
# Compile diagnostics
# ---------------------------------------------------------------------------


@dataclass
class CompileWarning:
    """A non-fatal issue encountered during compilation."""

    code: str
    message: str
    path: str = ""  # index path into the block forest, e.g. "2/body/0"
    details: dict[str, Any] | None = None


@dataclass
class CompileResult:
    """
    Result of compiling a block forest.
    The compiler never throws for block content; it always returns one of these.
    """

    program: Program
    warnings: list[CompileWarning] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Playfield and agents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GoalRegion:
    """
    Axis-aligned goal rectangle, bounds inclusive.
    A grid goal cell is a 1x1 region: GoalRegion.cell(7, 6).
    """

    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @classmethod
    def cell(cls, col: int, row: int) -> GoalRegion:
        return cls(col, row, col, row)

    def contains(self, position: tuple[float, float]) -> bool:
        x, y = position
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    def to_dict(self) -> dict[str, Any]:
        return {"x_min": self.x_min, "y_min": self.y_min, "x_max": self.x_max, "y_max": self.y_max}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GoalRegion:
        if "col" in d and "row" in d:
            return cls.cell(d["col"], d["row"])
        return cls(d["x_min"], d["y_min"], d["x_max"], d["y_max"])


@dataclass
class AgentState:
    """
    Mutable per-actor state.

    Grid mode: position = (col, row), heading in CARDINAL_HEADINGS.
    Canvas mode: position = (x, y) pixels, heading is any angle in degrees.

    Mutated only by the interpreter running this agent's program.
    """

    agent_id: str
    position: tuple[float, float]
    heading: float = NORTH
    transient_message: str | None = None
    goal_reached: bool = False
    start_position: tuple[float, float] | None = None
    start_heading: float | None = None

    def __post_init__(self) -> None:
        if self.start_position is None:
            self.start_position = self.position
        if self.start_heading is None:
            self.start_heading = self.heading

    def reset(self) -> None:
        """Restore the starting position/heading and clear run-time flags."""
        self.position = self.start_position  # type: ignore[assignment]
        self.heading = self.start_heading  # type: ignore[assignment]
        self.transient_message = None
        self.goal_reached = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "position": list(self.position),
            "heading": self.heading,
            "transient_message": self.transient_message,
            "goal_reached": self.goal_reached,
        }


# ---------------------------------------------------------------------------
# Session results
# ---------------------------------------------------------------------------


@dataclass
class SessionResult:
    """Aggregate outcome of one execution session."""

    reached_count: int
    total_agents: int
    all_reached: bool
    reached: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # agent_id -> error
    elapsed_seconds: float = 0.0
    cancelled: bool = False
    warnings: dict[str, list[CompileWarning]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reached_count": self.reached_count,
            "total_agents": self.total_agents,
            "all_reached": self.all_reached,
            "reached": list(self.reached),
            "failed": dict(self.failed),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "cancelled": self.cancelled,
            "warnings": {
                agent_id: [{"code": w.code, "message": w.message, "path": w.path} for w in ws]
                for agent_id, ws in self.warnings.items()
            },
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_finite_number(value: Any) -> bool:
    """True for int/float (not bool) values that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)
