"""Pydantic models for effect-sink snapshots and session completion events."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from robolab.kernel.types import AgentState


class AgentSnapshot(BaseModel):
    """One agent's state after a state-changing step. Sent to the renderer."""

    agent_id: str
    position: tuple[float, float]
    heading: float
    transient_message: str | None = None
    goal_reached: bool = False

    model_config = {"extra": "forbid", "frozen": True}

    @classmethod
    def from_agent(cls, agent: AgentState) -> AgentSnapshot:
        return cls(
            agent_id=agent.agent_id,
            position=agent.position,
            heading=agent.heading,
            transient_message=agent.transient_message,
            goal_reached=agent.goal_reached,
        )


class CompletionEvent(BaseModel):
    """Fired once per session when every agent reached the goal."""

    reached_count: int = Field(ge=0)
    total_agents: int = Field(ge=0)
    elapsed_seconds: float = Field(ge=0)

    model_config = {"extra": "forbid"}
