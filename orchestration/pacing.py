"""
Inter-step pacing
A deliberate wait between successful steps so progress is watchable. It has no
effect on ordering or data flow.
"""
import time
from typing import Callable

# pace(step_index, total_steps) -> seconds to wait after that step
PacingPolicy = Callable[[int, int], float]

DEFAULT_PACING_SECONDS = 5.0


def fixed_pacing(seconds: float = DEFAULT_PACING_SECONDS) -> PacingPolicy:
    if seconds < 0:
        raise ValueError("Pacing delay cannot be negative")

    def pace(step_index: int, total: int) -> float:
        return seconds

    return pace


def no_pacing(step_index: int, total: int) -> float:
    return 0.0


def sleep_for(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)
