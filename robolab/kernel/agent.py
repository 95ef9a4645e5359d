"""
Robolab Kernel — Agent Transforms

Pure position/heading arithmetic for both playfield variants:

  grid    — discrete (col, row) cells, row 0 at the bottom,
            heading one of 0/90/180/270 (north/east/south/west)
  canvas  — free pixel (x, y) with y growing downward,
            heading any angle in degrees, 0 pointing up

Every function returns new values; the interpreter applies them to the
AgentState it owns.
"""

from __future__ import annotations

import math

from robolab.kernel.types import (
    CARDINAL_HEADINGS,
    HEADING_VECTORS,
    AgentState,
    EngineConfig,
    GoalRegion,
)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


def grid_step(position: tuple[float, float], heading: float, config: EngineConfig) -> tuple[int, int]:
    """One unit step along a cardinal heading, clamped to the grid."""
    if heading not in HEADING_VECTORS:
        raise ValueError(f"Grid heading must be one of {CARDINAL_HEADINGS}, got {heading!r}")
    d_col, d_row = HEADING_VECTORS[int(heading)]
    col, row = position
    return (
        int(clamp(col + d_col, 0, config.grid_columns - 1)),
        int(clamp(row + d_row, 0, config.grid_rows - 1)),
    )


def grid_turn(heading: float, degrees: float) -> int:
    """
    Rotate a cardinal heading by a signed multiple of 90 degrees.
    Positive is clockwise (right).
    """
    if not math.isfinite(degrees) or degrees % 90 != 0:
        raise ValueError(f"Grid turns must be multiples of 90 degrees, got {degrees!r}")
    result = int(heading + degrees) % 360
    if result not in CARDINAL_HEADINGS:
        raise ValueError(f"Grid heading must be one of {CARDINAL_HEADINGS}, got {result!r}")
    return result


def clamp_to_grid(position: tuple[float, float], config: EngineConfig) -> tuple[int, int]:
    col, row = position
    return (
        int(clamp(col, 0, config.grid_columns - 1)),
        int(clamp(row, 0, config.grid_rows - 1)),
    )


# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------


def clamp_to_canvas(position: tuple[float, float], config: EngineConfig) -> tuple[float, float]:
    """Clamp to the canvas, inset by the sprite margin on every side."""
    x, y = position
    m = config.canvas_margin
    return (
        clamp(x, m, config.canvas_width - m),
        clamp(y, m, config.canvas_height - m),
    )


def canvas_target(position: tuple[float, float], heading: float, distance: float, config: EngineConfig) -> tuple[float, float]:
    """
    Where a move of `distance` units ends, clamped once to the canvas.
    Heading 0 points up the screen, so the direction vector is rotated by -90.
    """
    radians = math.radians(heading - 90)
    x, y = position
    length = distance * config.unit_step_pixels
    return clamp_to_canvas((x + math.cos(radians) * length, y + math.sin(radians) * length), config)


def canvas_center(config: EngineConfig) -> tuple[float, float]:
    return (config.canvas_width / 2, config.canvas_height / 2)


# ---------------------------------------------------------------------------
# Goal
# ---------------------------------------------------------------------------


def latch_goal(agent: AgentState, goal: GoalRegion | None) -> bool:
    """
    Set goal_reached once the agent stands in the goal. Never clears it.
    Returns the (possibly updated) flag.
    """
    if goal is not None and not agent.goal_reached and goal.contains(agent.position):
        agent.goal_reached = True
    return agent.goal_reached


# ---------------------------------------------------------------------------
# Playfield
# ---------------------------------------------------------------------------


def clamp_position(position: tuple[float, float], config: EngineConfig) -> tuple[float, float]:
    """Clamp a position onto the playfield of the configured mode."""
    if config.mode == "canvas":
        return clamp_to_canvas(position, config)
    return clamp_to_grid(position, config)
