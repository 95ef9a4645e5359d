"""
Robolab Kernel — Interpreter

Walks a Program against one AgentState:

    await Interpreter(config, goal, sink).run(program, agent) -> agent

Every state change is pushed to the effect sink as an AgentSnapshot.
Instructions that take time suspend on asyncio.sleep, so many agents
can run concurrently on one event loop without blocking each other.

Cancellation is cooperative. The `is_running` callback is checked after
each unit step completes (never mid-step); once it returns False the
interpreter stops and returns the agent as-is, without rollback.

Malformed instructions (non-finite distances, non-cardinal grid turns,
unknown instruction types) raise. The coordinator isolates the failure
to that agent.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from robolab.kernel import agent as transforms
from robolab.kernel.animation import animate, interpolate
from robolab.kernel.guard import LoopGuard
from robolab.kernel.types import (
    AgentState,
    EngineConfig,
    GoalRegion,
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
    is_finite_number,
)
from robolab.models.events import AgentSnapshot

logger = logging.getLogger(__name__)

EffectSink = Callable[[AgentSnapshot], Awaitable[None] | None]


class ExecutionHalted(Exception):
    """Raised internally when the running flag is cleared."""


class Interpreter:
    """Structural interpreter for a single agent's Program."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        goal: GoalRegion | None = None,
        sink: EffectSink | None = None,
        is_running: Callable[[], bool] | None = None,
        guard: LoopGuard | None = None,
    ):
        self.config = config or EngineConfig()
        self.goal = goal
        self.sink = sink
        self.is_running = is_running or (lambda: True)
        self.guard = guard or LoopGuard(self.config.loop_iteration_ceiling)

    async def run(self, program: Program, agent: AgentState) -> AgentState:
        """
        Execute `program` against `agent`, mutating it in place.
        Returns the same AgentState once the program ends or is halted.
        A starting position outside the playfield is clamped onto it first.
        """
        agent.position = transforms.clamp_position(agent.position, self.config)
        try:
            self._checkpoint()
            await self._run_block(program, agent)
        except ExecutionHalted:
            logger.debug("interpreter: agent %s halted at %s", agent.agent_id, agent.position)
        return agent

    # -- dispatch --

    async def _run_block(self, program: Program, agent: AgentState) -> None:
        for instruction in program:
            await self._execute(instruction, agent)

    async def _execute(self, instruction: Instruction, agent: AgentState) -> None:
        if isinstance(instruction, Move):
            await self._move(instruction, agent)
        elif isinstance(instruction, TurnRight):
            await self._turn(instruction.degrees, agent)
        elif isinstance(instruction, TurnLeft):
            await self._turn(-instruction.degrees, agent)
        elif isinstance(instruction, Wait):
            await self._wait(instruction, agent)
        elif isinstance(instruction, Say):
            await self._say(instruction, agent)
        elif isinstance(instruction, Repeat):
            n = self.guard.iterations(instruction.count, agent_id=agent.agent_id)
            for _ in range(n):
                await self._run_block(instruction.body, agent)
        elif isinstance(instruction, RepeatBounded):
            n = self.guard.iterations(instruction.max_iterations, agent_id=agent.agent_id, forever=True)
            for _ in range(n):
                await self._run_block(instruction.body, agent)
        elif isinstance(instruction, IfGoalReached):
            if agent.goal_reached:
                logger.debug("interpreter: agent %s at goal, running conditional body", agent.agent_id)
                await self._run_block(instruction.body, agent)
        else:
            raise TypeError(f"Unknown instruction: {instruction!r}")

    # -- instructions --

    async def _move(self, instruction: Move, agent: AgentState) -> None:
        distance = instruction.distance
        if not is_finite_number(distance) or distance <= 0:
            raise ValueError(f"Move distance must be a positive finite number, got {distance!r}")

        logger.debug("interpreter: agent %s moving %s steps", agent.agent_id, distance)

        if self.config.mode == "canvas":
            await self._glide(agent, distance)
            self._checkpoint()
            return

        if distance != int(distance):
            raise ValueError(f"Grid moves must be whole steps, got {distance!r}")
        for _ in range(int(distance)):
            agent.position = transforms.grid_step(agent.position, agent.heading, self.config)
            transforms.latch_goal(agent, self.goal)
            await self._emit(agent)
            await self._sleep_ms(self.config.animation_step_duration_ms)
            self._checkpoint()

    async def _glide(self, agent: AgentState, distance: float) -> None:
        start_x, start_y = agent.position
        end_x, end_y = transforms.canvas_target(agent.position, agent.heading, distance, self.config)

        async def frame(progress: float) -> None:
            agent.position = (
                interpolate(start_x, end_x, progress),
                interpolate(start_y, end_y, progress),
            )
            transforms.latch_goal(agent, self.goal)
            await self._emit(agent)

        await animate(self.config.move_animation_duration_ms, self.config.frame_interval_ms, frame)

    async def _turn(self, degrees: float, agent: AgentState) -> None:
        if not is_finite_number(degrees):
            raise ValueError(f"Turn angle must be a finite number, got {degrees!r}")

        logger.debug("interpreter: agent %s turning %+g degrees", agent.agent_id, degrees)

        if self.config.mode == "canvas":
            start = agent.heading
            end = start + degrees

            async def frame(progress: float) -> None:
                agent.heading = interpolate(start, end, progress)
                await self._emit(agent)

            await animate(self.config.turn_animation_duration_ms, self.config.frame_interval_ms, frame)
        else:
            agent.heading = transforms.grid_turn(agent.heading, degrees)
            await self._emit(agent)
            await self._sleep_ms(self.config.turn_animation_duration_ms)
        self._checkpoint()

    async def _wait(self, instruction: Wait, agent: AgentState) -> None:
        seconds = instruction.seconds
        if not is_finite_number(seconds) or seconds < 0:
            raise ValueError(f"Wait must be a non-negative finite number of seconds, got {seconds!r}")

        logger.debug("interpreter: agent %s waiting %s seconds", agent.agent_id, seconds)
        await self._sleep_ms(seconds * 1000 * self.config.wait_time_scale)
        await self._emit(agent)
        self._checkpoint()

    async def _say(self, instruction: Say, agent: AgentState) -> None:
        logger.debug("interpreter: agent %s says %r", agent.agent_id, instruction.text)
        agent.transient_message = instruction.text
        await self._emit(agent)
        await self._sleep_ms(self.config.say_display_duration_ms)
        agent.transient_message = None
        await self._emit(agent)
        self._checkpoint()

    # -- plumbing --

    async def _emit(self, agent: AgentState) -> None:
        if self.sink is None:
            return
        result = self.sink(AgentSnapshot.from_agent(agent))
        if inspect.isawaitable(result):
            await result

    async def _sleep_ms(self, ms: float) -> None:
        # A zero sleep still yields, so concurrent agents interleave
        await asyncio.sleep(max(ms, 0) / 1000)

    def _checkpoint(self) -> None:
        if not self.is_running():
            raise ExecutionHalted()

