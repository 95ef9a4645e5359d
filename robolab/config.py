"""
Robolab configuration — all environment variables in one place.

Read from environment at import time. Every value has a default that
matches the stage timings the activities were tuned with.
"""

from __future__ import annotations

import os


def _float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from e


def _int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from e


class Settings:
    """Engine settings from environment variables."""

    # Playfield
    MODE: str = os.environ.get("ROBOLAB_MODE", "grid")
    GRID_COLUMNS: int = _int("ROBOLAB_GRID_COLUMNS", 10)
    GRID_ROWS: int = _int("ROBOLAB_GRID_ROWS", 10)
    CANVAS_WIDTH: float = _float("ROBOLAB_CANVAS_WIDTH", 480)
    CANVAS_HEIGHT: float = _float("ROBOLAB_CANVAS_HEIGHT", 400)
    CANVAS_MARGIN: float = _float("ROBOLAB_CANVAS_MARGIN", 20)
    UNIT_STEP_PIXELS: float = _float("ROBOLAB_UNIT_STEP_PIXELS", 3)

    # Animation timings (ms)
    ANIMATION_STEP_DURATION_MS: float = _float("ROBOLAB_ANIMATION_STEP_DURATION_MS", 280)
    TURN_ANIMATION_DURATION_MS: float = _float("ROBOLAB_TURN_ANIMATION_DURATION_MS", 168)  # 0.6 x step
    MOVE_ANIMATION_DURATION_MS: float = _float("ROBOLAB_MOVE_ANIMATION_DURATION_MS", 300)
    SAY_DISPLAY_DURATION_MS: float = _float("ROBOLAB_SAY_DISPLAY_DURATION_MS", 1200)
    FRAME_INTERVAL_MS: float = _float("ROBOLAB_FRAME_INTERVAL_MS", 16)
    WAIT_TIME_SCALE: float = _float("ROBOLAB_WAIT_TIME_SCALE", 1.0)

    # Safety
    LOOP_ITERATION_CEILING: int = _int("ROBOLAB_LOOP_ITERATION_CEILING", 100)

    # Logging
    LOG_LEVEL: str = os.environ.get("ROBOLAB_LOG_LEVEL", "WARNING").upper()


# Singleton instance
settings = Settings()

if settings.MODE not in ("grid", "canvas"):
    raise RuntimeError(f"ROBOLAB_MODE must be 'grid' or 'canvas', got {settings.MODE!r}")
if settings.LOOP_ITERATION_CEILING < 1:
    raise RuntimeError("ROBOLAB_LOOP_ITERATION_CEILING must be at least 1")
