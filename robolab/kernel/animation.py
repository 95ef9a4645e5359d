"""
Eased interpolation for canvas-mode animation.

Values are sampled once per frame on the running event loop's clock and
pushed to a callback. A zero duration emits the end value in one frame.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable


def ease_out_cubic(t: float) -> float:
    """1 - (1 - t)^3, clamped to t in [0, 1]."""
    t = max(0.0, min(1.0, t))
    return 1 - (1 - t) ** 3


def interpolate(start: float, end: float, t: float) -> float:
    return start + (end - start) * ease_out_cubic(t)


async def animate(
    duration_ms: float,
    frame_interval_ms: float,
    on_frame: Callable[[float], Awaitable[None] | None],
) -> int:
    """
    Drive `on_frame(progress)` from 0 to 1 over `duration_ms`.

    `progress` is the raw (linear) fraction of elapsed time; callers apply
    the easing so several values can share one clock. The final call always
    receives exactly 1.0. Returns the number of frames emitted.
    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    frames = 0

    while True:
        if duration_ms <= 0:
            progress = 1.0
        else:
            elapsed_ms = (loop.time() - started) * 1000
            progress = min(elapsed_ms / duration_ms, 1.0)

        result = on_frame(progress)
        if result is not None:
            await result
        frames += 1

        if progress >= 1.0:
            return frames
        await asyncio.sleep(frame_interval_ms / 1000)
