"""
Kernel test configuration.

All kernel tests run with an instant EngineConfig (zero animation delays)
so sessions finish in a handful of event-loop turns.
"""

from __future__ import annotations

import pytest

from robolab.kernel.types import EngineConfig
from robolab.models.events import AgentSnapshot


class SnapshotRecorder:
    """Effect sink that keeps every snapshot it receives."""

    def __init__(self) -> None:
        self.snapshots: list[AgentSnapshot] = []

    def __call__(self, snapshot: AgentSnapshot) -> None:
        self.snapshots.append(snapshot)

    def for_agent(self, agent_id: str) -> list[AgentSnapshot]:
        return [s for s in self.snapshots if s.agent_id == agent_id]

    def positions(self, agent_id: str) -> list[tuple[float, float]]:
        return [s.position for s in self.for_agent(agent_id)]


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig.instant()


@pytest.fixture
def canvas_config() -> EngineConfig:
    return EngineConfig.instant(mode="canvas")


@pytest.fixture
def recorder() -> SnapshotRecorder:
    return SnapshotRecorder()
