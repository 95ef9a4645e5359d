"""
Robolab Kernel — Activity Presets

Starting layouts for the two stage activities:

  robot-manual  — 10x10 grid, four robots, finish cell H7
  canvas        — one sprite at the centre of a 480x400 canvas

Grid cells are (col, row) with row 0 at the bottom, so H7 is (7, 6).
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from robolab.kernel.agent import canvas_center
from robolab.kernel.types import EAST, NORTH, SOUTH, AgentState, EngineConfig, GoalRegion


@dataclass(frozen=True)
class AgentDef:
    agent_id: str
    name: str
    color: str
    start: tuple[int, int] | None  # None = centre of the canvas
    heading: int


@dataclass(frozen=True)
class Preset:
    name: str
    mode: str
    goal: GoalRegion | None
    agents: tuple[AgentDef, ...]

    def config(self, base: EngineConfig | None = None) -> EngineConfig:
        """The base config with this preset's mode applied."""
        base = base or EngineConfig()
        if base.mode == self.mode:
            return base
        return replace(base, mode=self.mode)

    def initial_states(self, config: EngineConfig | None = None) -> dict[str, AgentState]:
        """Fresh AgentStates at their starting positions."""
        states: dict[str, AgentState] = {}
        for d in self.agents:
            position = d.start if d.start is not None else canvas_center(self.config(config))
            states[d.agent_id] = AgentState(agent_id=d.agent_id, position=position, heading=d.heading)
        return states


ROBOT_MANUAL = Preset(
    name="robot-manual",
    mode="grid",
    goal=GoalRegion.cell(7, 6),
    agents=(
        AgentDef("merah", "Si Merah", "#ef4444", (0, 8), EAST),  # A9
        AgentDef("pink", "Si Pink", "#ec4899", (1, 0), NORTH),  # B1
        AgentDef("hijau", "Si Hijau", "#22c55e", (7, 0), NORTH),  # H1
        AgentDef("kuning", "Si Kuning", "#eab308", (9, 9), SOUTH),  # J10
    ),
)

CANVAS = Preset(
    name="canvas",
    mode="canvas",
    goal=None,
    agents=(AgentDef("sprite", "Kucing", "#FF9500", None, NORTH),),
)

PRESETS: dict[str, Preset] = {p.name: p for p in (ROBOT_MANUAL, CANVAS)}


def get_preset(name: str) -> Preset:
    preset = PRESETS.get(name)
    if preset is None:
        raise ValueError(f"Unknown preset: {name!r}. Valid presets: {list(PRESETS)}")
    return preset
