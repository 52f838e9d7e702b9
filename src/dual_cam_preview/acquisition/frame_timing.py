"""Loop frame-rate bookkeeping for the acquisition loop."""

import time
from dataclasses import dataclass, replace

# Elapsed times below one millisecond are clamped to this floor so a very fast
# iteration reports 1000 fps instead of dividing by zero.
MIN_ELAPSED_MS = 1.0


def now_ms() -> float:
    return time.perf_counter() * 1000.0


def instantaneous_fps(elapsed_ms: float) -> float:
    return 1000.0 / max(float(elapsed_ms), MIN_ELAPSED_MS)


@dataclass(frozen=True)
class FpsAccumulator:
    """
    Timing state carried from one iteration to the next.

    Never mutated: count_frame() and record() return the updated copy.

    Attributes:
        frame_count (int): Iterations that finished their parallel read.
        sum_fps (float): Sum of every recorded instantaneous frame rate.
        last_fps (float): Most recent instantaneous frame rate.
    """
    frame_count: int = 0
    sum_fps: float = 0.0
    last_fps: float = 0.0

    @property
    def avg_fps(self) -> float:
        if self.frame_count == 0:
            return 0.0
        return self.sum_fps / self.frame_count

    def count_frame(self) -> "FpsAccumulator":
        return replace(self, frame_count=self.frame_count + 1)

    def record(self, elapsed_ms: float) -> "FpsAccumulator":
        fps = instantaneous_fps(elapsed_ms)
        return replace(self, sum_fps=self.sum_fps + fps, last_fps=fps)
