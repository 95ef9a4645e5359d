"""
Robolab Kernel — Execution Coordinator

Runs one Interpreter per agent concurrently on the current event loop,
waits for every agent to settle, then evaluates the goal.

    coordinator = ExecutionCoordinator(config, goal, sink=..., on_complete=...)
    result = await coordinator.run_session(programs, initial_states)

Lifecycle of a session:
  1. reset every agent to its starting position/heading
  2. launch one task per agent (all animate simultaneously)
  3. join: wait for every task, however long the slowest takes
  4. score final positions against the goal → SessionResult
  5. if every agent reached the goal, fire the completion event once

A failing agent is isolated: its exception is logged and the agent is
counted as not reached. Siblings keep running.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from robolab.kernel.compiler import compile_program, compile_source
from robolab.kernel.interpreter import EffectSink, Interpreter
from robolab.kernel.types import (
    AgentState,
    BlockNode,
    CompileWarning,
    EngineConfig,
    GoalRegion,
    Program,
    SessionResult,
)
from robolab.models.events import CompletionEvent

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[CompletionEvent], Awaitable[None] | None]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SessionAlreadyRunning(Exception):
    """A session is in flight; cancel it or wait for it before starting another."""


class AgentExecutionFailure(Exception):
    """An agent's program raised while being interpreted."""

    def __init__(self, agent_id: str, cause: BaseException):
        super().__init__(f"Agent {agent_id} failed: {cause!r}")
        self.agent_id = agent_id
        self.cause = cause


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@dataclass
class ExecutionSession:
    """Transient state for one run. Created at start, discarded at end."""

    agents: dict[str, AgentState]
    programs: dict[str, Program]
    running: bool = True
    result: SessionResult | None = None
    started_at: float = field(default_factory=time.monotonic)
    completion_fired: bool = False


class ExecutionCoordinator:
    """Runs N agents' programs concurrently and reports the aggregate result."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        goal: GoalRegion | None = None,
        sink: EffectSink | None = None,
        on_complete: CompletionHandler | None = None,
    ):
        self.config = config or EngineConfig()
        self.goal = goal
        self.sink = sink
        self.on_complete = on_complete
        self._session: ExecutionSession | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    # -- state --

    @property
    def is_running(self) -> bool:
        return self._session is not None and self._session.running

    @property
    def session(self) -> ExecutionSession | None:
        """The in-flight or most recently finished session."""
        return self._session

    def cancel(self) -> None:
        """
        Clear the running flag. Agents stop at their next suspension boundary;
        the in-flight run_session call still returns a (partial) result.
        """
        if self._session is not None and self._session.running:
            logger.info("coordinator: cancelling session")
            self._session.running = False

    async def wait_idle(self) -> None:
        """Block until no session is in flight."""
        await self._idle.wait()

    # -- run --

    async def run_session(
        self,
        agent_programs: Mapping[str, Program],
        initial_states: Mapping[str, AgentState],
    ) -> SessionResult:
        """
        Run every agent's program concurrently and return the aggregate result.

        Agents present in `initial_states` but missing a program run the empty
        program (they stay where they start). Programs without a matching
        state are ignored with a warning.
        """
        if not self._idle.is_set():
            raise SessionAlreadyRunning("A session is already running")

        self._idle.clear()
        try:
            return await self._run(agent_programs, initial_states)
        finally:
            self._idle.set()

    async def run_programs(
        self,
        block_forests: Mapping[str, Sequence[BlockNode] | list[dict[str, Any]] | dict[str, Any]],
        initial_states: Mapping[str, AgentState],
    ) -> SessionResult:
        """
        Compile each agent's blocks, then run the session.
        Accepts parsed BlockNode sequences or their serialized form (a list
        of node dicts or {"blocks": [...]}).
        Compile warnings are attached to the result per agent.
        """
        programs: dict[str, Program] = {}
        warnings: dict[str, list[CompileWarning]] = {}
        for agent_id, blocks in block_forests.items():
            if isinstance(blocks, list | tuple) and all(isinstance(b, BlockNode) for b in blocks):
                compiled = compile_program(blocks, config=self.config)  # type: ignore[arg-type]
            else:
                compiled = compile_source(blocks, config=self.config)
            programs[agent_id] = compiled.program
            if compiled.warnings:
                warnings[agent_id] = compiled.warnings

        result = await self.run_session(programs, initial_states)
        result.warnings = warnings
        return result

    async def _run(
        self,
        agent_programs: Mapping[str, Program],
        initial_states: Mapping[str, AgentState],
    ) -> SessionResult:
        for agent_id in agent_programs:
            if agent_id not in initial_states:
                logger.warning("coordinator: program for unknown agent %s ignored", agent_id)

        agents = dict(initial_states)
        for agent in agents.values():
            agent.reset()

        session = ExecutionSession(
            agents=agents,
            programs={agent_id: agent_programs.get(agent_id, ()) for agent_id in agents},
        )
        self._session = session
        logger.info("coordinator: session started with %d agents", len(agents))

        agent_ids = list(agents)
        tasks = [
            asyncio.create_task(self._run_agent(session, agent_id), name=f"agent:{agent_id}")
            for agent_id in agent_ids
        ]
        # Join barrier: every agent settles before the goal is evaluated
        try:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            # gather has already cancelled the agent tasks
            session.running = False
            logger.info("coordinator: session task cancelled")
            raise

        failed: dict[str, str] = {}
        for agent_id, outcome in zip(agent_ids, outcomes):
            if isinstance(outcome, BaseException):
                failed[agent_id] = str(outcome.cause if isinstance(outcome, AgentExecutionFailure) else outcome)

        cancelled = not session.running
        session.running = False
        result = self._evaluate(session, failed, cancelled)
        session.result = result

        logger.info(
            "coordinator: session finished, %d/%d reached goal in %.2fs%s",
            result.reached_count,
            result.total_agents,
            result.elapsed_seconds,
            " (cancelled)" if cancelled else "",
        )

        if result.all_reached:
            await self._fire_completion(session, result)
        return result

    async def _run_agent(self, session: ExecutionSession, agent_id: str) -> AgentState:
        interpreter = Interpreter(
            config=self.config,
            goal=self.goal,
            sink=self.sink,
            is_running=lambda: session.running,
        )
        agent = session.agents[agent_id]
        try:
            return await interpreter.run(session.programs[agent_id], agent)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("coordinator: agent %s failed", agent_id)
            raise AgentExecutionFailure(agent_id, e) from e

    def _evaluate(self, session: ExecutionSession, failed: dict[str, str], cancelled: bool) -> SessionResult:
        reached: list[str] = []
        for agent_id, agent in session.agents.items():
            if agent_id in failed:
                continue
            if self.goal is not None and self.goal.contains(agent.position):
                agent.goal_reached = True
                reached.append(agent_id)

        total = len(session.agents)
        return SessionResult(
            reached_count=len(reached),
            total_agents=total,
            all_reached=total > 0 and len(reached) == total,
            reached=reached,
            failed=failed,
            elapsed_seconds=time.monotonic() - session.started_at,
            cancelled=cancelled,
        )

    async def _fire_completion(self, session: ExecutionSession, result: SessionResult) -> None:
        if session.completion_fired:
            return
        session.completion_fired = True

        event = CompletionEvent(
            reached_count=result.reached_count,
            total_agents=result.total_agents,
            elapsed_seconds=result.elapsed_seconds,
        )
        logger.info("coordinator: all agents reached the goal")
        if self.on_complete is None:
            return
        try:
            outcome = self.on_complete(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("coordinator: completion handler failed")
