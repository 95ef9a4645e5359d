"""
Robolab Kernel — the visual-program execution engine.

Five components:
  compiler     — block forest → Program  (pure, deterministic)
  interpreter  — Program × AgentState → snapshots  (async, one agent)
  coordinator  — N agents concurrently, join, goal evaluation
  guard        — loop iteration ceiling
  presets      — starting layouts for the stage activities
"""

from robolab.kernel.compiler import compile_program, compile_source
from robolab.kernel.coordinator import (
    AgentExecutionFailure,
    ExecutionCoordinator,
    ExecutionSession,
    SessionAlreadyRunning,
)
from robolab.kernel.guard import LoopGuard
from robolab.kernel.interpreter import Interpreter
from robolab.kernel.presets import get_preset
from robolab.kernel.types import (
    AgentState,
    BlockNode,
    EngineConfig,
    GoalRegion,
    SessionResult,
)

__all__ = [
    "compile_program",
    "compile_source",
    "Interpreter",
    "ExecutionCoordinator",
    "ExecutionSession",
    "SessionAlreadyRunning",
    "AgentExecutionFailure",
    "LoopGuard",
    "get_preset",
    "AgentState",
    "BlockNode",
    "EngineConfig",
    "GoalRegion",
    "SessionResult",
]
