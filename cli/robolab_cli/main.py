"""Main entry point for Robolab CLI."""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from robolab.config import settings
from robolab.kernel import ExecutionCoordinator, compile_source, get_preset
from robolab.kernel.types import EngineConfig, GoalRegion, program_to_list
from robolab.models.events import AgentSnapshot, CompletionEvent
from robolab_cli import __version__


def print_help():
    """Print help message."""
    print(f"""
Robolab CLI v{__version__}

Usage:
  robolab [options] <command> <program.json>

Commands:
  run FILE          Run the program on the stage and print the result
  compile FILE      Print the compiled program and any warnings

Options:
  --preset NAME     Stage layout: robot-manual (default) or canvas
  --instant         Skip animation delays
  --trace           Print every agent snapshot
  --verbose         Log engine activity to stderr
  -h, --help        Show this help
  -v, --version     Show version

Program file:
  A list of blocks is run by every agent in the preset.
  {{"agents": {{"merah": [...], "pink": [...]}}}} gives each agent its own blocks.
  {{"blocks": [...]}} is the same as a bare list.
  A top-level "goal", e.g. {{"col": 7, "row": 6}}, replaces the preset's finish.

Environment:
  ROBOLAB_*         Engine timings and bounds (see robolab/config.py)

Examples:
  robolab run square.json --instant
  robolab compile square.json
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (run, compile)
        path: str | None
        preset: str
        instant: bool
        trace: bool
        verbose: bool
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "path": None,
        "preset": "robot-manual",
        "instant": False,
        "trace": False,
        "verbose": False,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg in ("run", "compile") and result["command"] is None:
            result["command"] = arg
        elif arg == "--preset":
            if i + 1 < len(args):
                result["preset"] = args[i + 1]
                i += 1
            else:
                print("Error: --preset requires a name")
                sys.exit(1)
        elif arg == "--instant":
            result["instant"] = True
        elif arg == "--trace":
            result["trace"] = True
        elif arg == "--verbose":
            result["verbose"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'robolab --help' for usage.")
            sys.exit(1)
        elif result["command"] is not None and result["path"] is None:
            result["path"] = arg
        else:
            print(f"Unknown command: {arg}")
            print("Run 'robolab --help' for usage.")
            sys.exit(1)

        i += 1

    return result


def load_program_file(path: str, agent_ids: list[str]) -> dict[str, Any]:
    """
    Read a program file and return {agent_id: serialized blocks}.
    A bare block list is shared by every agent.
    """
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict) and "agents" in data:
        agents = data["agents"]
        if not isinstance(agents, dict):
            raise ValueError("'agents' must map agent ids to block lists")
        unknown = sorted(set(agents) - set(agent_ids))
        if unknown:
            raise ValueError(f"Unknown agents {unknown}; this preset has {agent_ids}")
        return {agent_id: agents.get(agent_id, []) for agent_id in agent_ids}
    return {agent_id: data for agent_id in agent_ids}


def load_goal(path: str, default: GoalRegion | None) -> GoalRegion | None:
    """
    Read an optional "goal" from a program file.
    Accepts {"col", "row"} for one grid cell or {"x_min", "y_min", "x_max", "y_max"}.
    """
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict) or "goal" not in data:
        return default
    goal = data["goal"]
    if not isinstance(goal, dict):
        raise ValueError("'goal' must be an object")
    try:
        return GoalRegion.from_dict(goal)
    except KeyError as e:
        raise ValueError(f"'goal' is missing {e}") from e


def format_snapshot(snapshot: AgentSnapshot) -> str:
    x, y = snapshot.position
    line = f"  {snapshot.agent_id:<8} ({x:g}, {y:g}) ∠{snapshot.heading:g}°"
    if snapshot.transient_message:
        line += f'  "{snapshot.transient_message}"'
    if snapshot.goal_reached:
        line += "  [finish]"
    return line


def build_config(preset_name: str, instant: bool) -> EngineConfig:
    preset = get_preset(preset_name)
    config = EngineConfig.instant() if instant else EngineConfig.from_settings(settings)
    if instant:
        # Keep the bounds and ceiling from the environment
        config = replace(
            config,
            loop_iteration_ceiling=settings.LOOP_ITERATION_CEILING,
            grid_columns=settings.GRID_COLUMNS,
            grid_rows=settings.GRID_ROWS,
            canvas_width=settings.CANVAS_WIDTH,
            canvas_height=settings.CANVAS_HEIGHT,
            canvas_margin=settings.CANVAS_MARGIN,
            unit_step_pixels=settings.UNIT_STEP_PIXELS,
        )
    return preset.config(config)


async def run_file(args: dict) -> int:
    """Run a program file on the chosen preset. Returns the exit code."""
    preset = get_preset(args["preset"])
    config = build_config(args["preset"], args["instant"])
    states = preset.initial_states(config)
    forests = load_program_file(args["path"], list(states))
    goal = load_goal(args["path"], preset.goal)

    def on_snapshot(snapshot: AgentSnapshot) -> None:
        if args["trace"]:
            print(format_snapshot(snapshot))

    def on_complete(event: CompletionEvent) -> None:
        print(f"All {event.total_agents} agents reached the finish in {event.elapsed_seconds:.1f}s")

    coordinator = ExecutionCoordinator(config, goal, sink=on_snapshot, on_complete=on_complete)
    result = await coordinator.run_programs(forests, states)

    output = result.to_dict()
    output["goal"] = goal.to_dict() if goal is not None else None
    output["agents"] = {agent_id: state.to_dict() for agent_id, state in states.items()}
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 1 if result.failed else 0


def compile_file(args: dict) -> int:
    """Compile a program file and print programs + warnings. Returns the exit code."""
    preset = get_preset(args["preset"])
    config = build_config(args["preset"], instant=True)
    forests = load_program_file(args["path"], [d.agent_id for d in preset.agents])

    output: dict[str, Any] = {}
    for agent_id, blocks in forests.items():
        compiled = compile_source(blocks, config=config)
        output[agent_id] = {
            "program": program_to_list(compiled.program),
            "warnings": [{"code": w.code, "message": w.message, "path": w.path} for w in compiled.warnings],
        }
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    # Handle help and version first
    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"robolab {__version__}")
        return

    if args["command"] is None or args["path"] is None:
        print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args["verbose"] else settings.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args["command"] == "compile":
            sys.exit(compile_file(args))
        sys.exit(asyncio.run(run_file(args)))
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
