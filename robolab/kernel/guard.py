"""
Robolab Kernel — Safety Guard

Every loop construct runs at most `ceiling` iterations. Visual "forever"
loops are truncated, not infinite; this keeps every program finite in
wall-clock time once the per-step animation delays compound.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_LOOP_CEILING = 100


class LoopGuard:
    """Bounds loop iteration counts to a fixed ceiling."""

    def __init__(self, ceiling: int = DEFAULT_LOOP_CEILING):
        if ceiling < 1:
            raise ValueError(f"Loop ceiling must be at least 1, got {ceiling}")
        self.ceiling = ceiling
        self.truncations = 0

    def iterations(self, requested: int, *, agent_id: str = "", forever: bool = False) -> int:
        """
        Return how many times a loop may run.

        Counts above the ceiling are truncated and logged; a forever loop
        always runs exactly `min(requested, ceiling)` times.
        """
        if isinstance(requested, bool) or not isinstance(requested, int):
            raise TypeError(f"Loop count must be an integer, got {requested!r}")
        if requested < 0:
            raise ValueError(f"Loop count must not be negative, got {requested}")

        if requested > self.ceiling:
            self.truncations += 1
            logger.info(
                "guard: %s loop for agent %s truncated from %d to %d iterations",
                "forever" if forever else "repeat",
                agent_id or "?",
                requested,
                self.ceiling,
            )
            return self.ceiling
        return requested
