"""Tests for easing, agent transforms, presets, and engine configuration."""

from __future__ import annotations

import pytest

from robolab import config as robolab_config
from robolab.kernel.agent import canvas_target, clamp_position, clamp_to_grid, grid_step, grid_turn, latch_goal
from robolab.kernel.animation import animate, ease_out_cubic, interpolate
from robolab.kernel.presets import PRESETS, get_preset
from robolab.kernel.types import EAST, NORTH, SOUTH, WEST, AgentState, EngineConfig, GoalRegion

# ---------------------------------------------------------------------------
# Easing
# ---------------------------------------------------------------------------


def test_ease_out_endpoints() -> None:
    assert ease_out_cubic(0) == 0
    assert ease_out_cubic(1) == 1


def test_ease_out_is_front_loaded() -> None:
    assert ease_out_cubic(0.5) == pytest.approx(0.875)


def test_ease_out_clamps_progress() -> None:
    assert ease_out_cubic(-1) == 0
    assert ease_out_cubic(2) == 1


def test_interpolate_hits_end_exactly() -> None:
    assert interpolate(200.0, 170.0, 1.0) == 170.0


@pytest.mark.asyncio
async def test_zero_duration_is_single_final_frame() -> None:
    seen: list[float] = []
    frames = await animate(0, 16, seen.append)
    assert frames == 1
    assert seen == [1.0]


@pytest.mark.asyncio
async def test_animation_ends_at_one() -> None:
    seen: list[float] = []

    async def on_frame(progress: float) -> None:
        seen.append(progress)

    frames = await animate(20, 2, on_frame)
    assert frames == len(seen)
    assert seen[-1] == 1.0
    assert seen == sorted(seen)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


def test_grid_step_vectors() -> None:
    config = EngineConfig()
    assert grid_step((5, 5), NORTH, config) == (5, 6)
    assert grid_step((5, 5), EAST, config) == (6, 5)
    assert grid_step((5, 5), SOUTH, config) == (5, 4)
    assert grid_step((5, 5), WEST, config) == (4, 5)


def test_grid_step_rejects_free_heading() -> None:
    with pytest.raises(ValueError):
        grid_step((0, 0), 45, EngineConfig())


def test_grid_turn_wraps() -> None:
    assert grid_turn(WEST, 90) == NORTH
    assert grid_turn(NORTH, -180) == SOUTH


def test_clamp_to_grid() -> None:
    assert clamp_to_grid((-3, 12), EngineConfig()) == (0, 9)


def test_clamp_position_follows_mode() -> None:
    assert clamp_position((15, -4), EngineConfig()) == (9, 0)
    assert clamp_position((-50, 1000), EngineConfig(mode="canvas")) == (20, 380)
    assert clamp_position((240.5, 200.25), EngineConfig(mode="canvas")) == (240.5, 200.25)


def test_canvas_target_diagonal() -> None:
    x, y = canvas_target((240, 200), 45, 10, EngineConfig(mode="canvas"))
    assert x > 240
    assert y < 200


def test_latch_goal_never_clears() -> None:
    agent = AgentState("a", (7, 6))
    goal = GoalRegion.cell(7, 6)
    assert latch_goal(agent, goal) is True
    agent.position = (0, 0)
    assert latch_goal(agent, goal) is True


def test_latch_goal_without_goal() -> None:
    assert latch_goal(AgentState("a", (0, 0)), None) is False


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------


def test_robot_manual_layout() -> None:
    preset = get_preset("robot-manual")
    states = preset.initial_states()

    assert preset.mode == "grid"
    assert preset.goal == GoalRegion.cell(7, 6)
    assert list(states) == ["merah", "pink", "hijau", "kuning"]
    assert states["merah"].position == (0, 8)
    assert states["kuning"].heading == SOUTH


def test_canvas_sprite_starts_at_centre() -> None:
    preset = get_preset("canvas")
    states = preset.initial_states(EngineConfig(canvas_width=600, canvas_height=300))
    assert states["sprite"].position == (300, 150)
    assert preset.goal is None


def test_preset_config_applies_mode() -> None:
    base = EngineConfig.instant()
    config = PRESETS["canvas"].config(base)
    assert config.mode == "canvas"
    assert config.animation_step_duration_ms == 0


def test_unknown_preset() -> None:
    with pytest.raises(ValueError, match="Unknown preset"):
        get_preset("maze")


def test_initial_states_are_fresh() -> None:
    preset = get_preset("robot-manual")
    first = preset.initial_states()
    first["merah"].position = (5, 5)
    assert preset.initial_states()["merah"].position == (0, 8)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_engine_config_from_settings() -> None:
    settings = robolab_config.settings
    config = EngineConfig.from_settings(settings)
    assert config.mode == settings.MODE
    assert config.loop_iteration_ceiling == settings.LOOP_ITERATION_CEILING
    assert config.wait_time_scale == settings.WAIT_TIME_SCALE


def test_instant_config_zeroes_delays() -> None:
    config = EngineConfig.instant(grid_columns=4)
    assert config.animation_step_duration_ms == 0
    assert config.say_display_duration_ms == 0
    assert config.wait_time_scale == 0
    assert config.grid_columns == 4
    assert config.loop_iteration_ceiling == 100


def test_env_number_parsing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROBOLAB_TEST_VALUE", "42")
    assert robolab_config._int("ROBOLAB_TEST_VALUE", 1) == 42
    assert robolab_config._float("ROBOLAB_TEST_VALUE", 1.0) == 42.0

    monkeypatch.setenv("ROBOLAB_TEST_VALUE", "")
    assert robolab_config._int("ROBOLAB_TEST_VALUE", 7) == 7


def test_env_bad_number(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROBOLAB_TEST_VALUE", "fast")
    with pytest.raises(RuntimeError, match="ROBOLAB_TEST_VALUE"):
        robolab_config._float("ROBOLAB_TEST_VALUE", 1.0)
