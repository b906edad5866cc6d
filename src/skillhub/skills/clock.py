"""Wall-clock helpers shared by the engine."""

import time


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)
