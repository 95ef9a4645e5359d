"""
Robolab Interpreter -- Grid Mode

One agent, one Program, discrete cells. Row 0 is the bottom row; heading
0/90/180/270 is north/east/south/west.

Covers:
  - Move decomposes into unit steps, one snapshot per step
  - Clamping at the playfield edge still emits a snapshot
  - A start position off the board is clamped onto it
  - Turns stay on the four cardinal headings
  - Closed square returns to the start
  - Wait and Say snapshot discipline
  - Goal latch and IfGoalReached
  - Malformed instructions raise
"""

import pytest

from robolab.kernel.interpreter import Interpreter
from robolab.kernel.types import (
    EAST,
    NORTH,
    SOUTH,
    WEST,
    AgentState,
    EngineConfig,
    GoalRegion,
    IfGoalReached,
    Move,
    Repeat,
    Say,
    TurnLeft,
    TurnRight,
    Wait,
)


# ============================================================================
# Movement
# ============================================================================


class TestMove:
    @pytest.mark.asyncio
    async def test_move_east_three_steps(self, config, recorder):
        """(0,0) facing east + Move(3) → (3,0), heading unchanged, 3 snapshots."""
        agent = AgentState("a", (0, 0), EAST)
        await Interpreter(config, sink=recorder).run((Move(3),), agent)

        assert agent.position == (3, 0)
        assert agent.heading == EAST
        assert recorder.positions("a") == [(1, 0), (2, 0), (3, 0)]

    @pytest.mark.asyncio
    async def test_move_north_increases_row(self, config):
        agent = AgentState("a", (4, 4), NORTH)
        await Interpreter(config).run((Move(2),), agent)
        assert agent.position == (4, 6)

    @pytest.mark.asyncio
    async def test_move_south_and_west(self, config):
        agent = AgentState("a", (5, 5), SOUTH)
        await Interpreter(config).run((Move(2), TurnRight(90), Move(3)), agent)
        assert agent.heading == WEST
        assert agent.position == (2, 3)

    @pytest.mark.asyncio
    async def test_edge_clamp_still_emits_one_snapshot(self, config, recorder):
        """Move(1) into the wall leaves the position unchanged but emits exactly once."""
        agent = AgentState("a", (0, 0), WEST)
        await Interpreter(config, sink=recorder).run((Move(1),), agent)

        assert agent.position == (0, 0)
        assert len(recorder.snapshots) == 1
        assert recorder.snapshots[0].position == (0, 0)

    @pytest.mark.asyncio
    async def test_clamp_on_far_edge(self, config, recorder):
        agent = AgentState("a", (8, 9), EAST)
        await Interpreter(config, sink=recorder).run((Move(5),), agent)
        assert agent.position == (9, 9)
        assert len(recorder.snapshots) == 5

    @pytest.mark.asyncio
    async def test_custom_grid_size(self, recorder):
        config = EngineConfig.instant(grid_columns=3, grid_rows=3)
        agent = AgentState("a", (0, 0), NORTH)
        await Interpreter(config, sink=recorder).run((Move(10),), agent)
        assert agent.position == (0, 2)

    @pytest.mark.asyncio
    async def test_start_outside_grid_clamped(self, config, recorder):
        """A start at (15, -4) is pulled onto the board before the first snapshot."""
        agent = AgentState("a", (15, -4), NORTH)
        await Interpreter(config, sink=recorder).run((TurnRight(90),), agent)

        assert agent.position == (9, 0)
        assert recorder.positions("a") == [(9, 0)]

    @pytest.mark.asyncio
    async def test_start_outside_grid_then_move(self, config):
        agent = AgentState("a", (-3, 12), SOUTH)
        await Interpreter(config).run((Move(2),), agent)
        assert agent.position == (0, 7)


# ============================================================================
# Turning
# ============================================================================


class TestTurn:
    @pytest.mark.asyncio
    async def test_turn_right_cycles_clockwise(self, config, recorder):
        agent = AgentState("a", (0, 0), NORTH)
        await Interpreter(config, sink=recorder).run((TurnRight(90),) * 4, agent)
        assert [s.heading for s in recorder.snapshots] == [EAST, SOUTH, WEST, NORTH]

    @pytest.mark.asyncio
    async def test_turn_left_wraps_below_zero(self, config):
        agent = AgentState("a", (0, 0), NORTH)
        await Interpreter(config).run((TurnLeft(90),), agent)
        assert agent.heading == WEST

    @pytest.mark.asyncio
    async def test_turn_360_is_identity(self, config):
        agent = AgentState("a", (0, 0), EAST)
        await Interpreter(config).run((TurnRight(360),), agent)
        assert agent.heading == EAST

    @pytest.mark.asyncio
    async def test_non_cardinal_turn_raises(self, config):
        agent = AgentState("a", (0, 0), NORTH)
        with pytest.raises(ValueError):
            await Interpreter(config).run((TurnRight(45),), agent)
        assert agent.heading == NORTH


# ============================================================================
# Closed paths
# ============================================================================


class TestClosedSquare:
    @pytest.mark.asyncio
    async def test_square_returns_to_start(self, config):
        """Repeat(4, [Move(5), TurnRight(90)]) from (0,0,N) ends at (0,0,N)."""
        agent = AgentState("a", (0, 0), NORTH)
        await Interpreter(config).run((Repeat(4, (Move(5), TurnRight(90))),), agent)
        assert agent.position == (0, 0)
        assert agent.heading == NORTH

    @pytest.mark.asyncio
    async def test_square_visits_corners(self, config, recorder):
        agent = AgentState("a", (0, 0), NORTH)
        await Interpreter(config, sink=recorder).run((Repeat(4, (Move(5), TurnRight(90))),), agent)
        positions = recorder.positions("a")
        for corner in [(0, 5), (5, 5), (5, 0), (0, 0)]:
            assert corner in positions
        # 4 x (5 steps + 1 turn)
        assert len(recorder.snapshots) == 24


# ============================================================================
# Wait / Say
# ============================================================================


class TestWaitAndSay:
    @pytest.mark.asyncio
    async def test_wait_emits_one_snapshot_without_change(self, config, recorder):
        agent = AgentState("a", (2, 2), EAST)
        await Interpreter(config, sink=recorder).run((Wait(1),), agent)
        assert len(recorder.snapshots) == 1
        assert recorder.snapshots[0].position == (2, 2)
        assert recorder.snapshots[0].heading == EAST

    @pytest.mark.asyncio
    async def test_say_sets_then_clears_message(self, config, recorder):
        agent = AgentState("a", (0, 0))
        await Interpreter(config, sink=recorder).run((Say("Halo"),), agent)
        assert [s.transient_message for s in recorder.snapshots] == ["Halo", None]
        assert agent.transient_message is None

    @pytest.mark.asyncio
    async def test_negative_wait_raises(self, config):
        with pytest.raises(ValueError):
            await Interpreter(config).run((Wait(-1),), AgentState("a", (0, 0)))


# ============================================================================
# Goal
# ============================================================================


class TestGoal:
    @pytest.mark.asyncio
    async def test_goal_latches_when_entered(self, config, recorder):
        agent = AgentState("a", (0, 0), EAST)
        await Interpreter(config, goal=GoalRegion.cell(2, 0), sink=recorder).run((Move(2),), agent)
        assert agent.goal_reached is True
        assert [s.goal_reached for s in recorder.snapshots] == [False, True]

    @pytest.mark.asyncio
    async def test_goal_stays_latched_after_leaving(self, config):
        agent = AgentState("a", (0, 0), EAST)
        await Interpreter(config, goal=GoalRegion.cell(1, 0)).run((Move(3),), agent)
        assert agent.position == (3, 0)
        assert agent.goal_reached is True

    @pytest.mark.asyncio
    async def test_if_goal_reached_skipped_when_false(self, config, recorder):
        agent = AgentState("a", (0, 0), EAST)
        program = (IfGoalReached((Say("Sampai"),)),)
        await Interpreter(config, goal=GoalRegion.cell(5, 5), sink=recorder).run(program, agent)
        assert recorder.snapshots == []

    @pytest.mark.asyncio
    async def test_if_goal_reached_runs_body_once(self, config, recorder):
        """Body runs once even when it walks the agent away from the goal."""
        agent = AgentState("a", (0, 0), EAST)
        program = (Move(1), IfGoalReached((Move(2), Say("pergi"))),)
        await Interpreter(config, goal=GoalRegion.cell(1, 0), sink=recorder).run(program, agent)

        assert agent.position == (3, 0)
        assert [s.transient_message for s in recorder.snapshots].count("pergi") == 1

    @pytest.mark.asyncio
    async def test_if_goal_reached_evaluated_fresh_each_time(self, config, recorder):
        agent = AgentState("a", (0, 0), EAST)
        program = (Repeat(3, (IfGoalReached((Say("F"),)), Move(1))),)
        await Interpreter(config, goal=GoalRegion.cell(1, 0), sink=recorder).run(program, agent)
        # Not at goal on iteration 1; latched on iterations 2 and 3
        assert [s.transient_message for s in recorder.snapshots].count("F") == 2


# ============================================================================
# Malformed programs
# ============================================================================


class TestMalformed:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("distance", [float("nan"), float("inf"), 0, -2, 1.5])
    async def test_bad_move_distance_raises(self, config, distance):
        with pytest.raises(ValueError):
            await Interpreter(config).run((Move(distance),), AgentState("a", (0, 0)))

    @pytest.mark.asyncio
    async def test_unknown_instruction_raises(self, config):
        with pytest.raises(TypeError):
            await Interpreter(config).run(("jump",), AgentState("a", (0, 0)))

    @pytest.mark.asyncio
    async def test_partial_progress_kept_before_failure(self, config):
        agent = AgentState("a", (0, 0), EAST)
        with pytest.raises(ValueError):
            await Interpreter(config).run((Move(2), Move(float("nan"))), agent)
        assert agent.position == (2, 0)
