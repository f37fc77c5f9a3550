# loadtest/services/pacing.py
from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loadtest.core.errors import PacingConfigError

Sleeper = Callable[[float], None]


def check_bounds(min_s: float, max_s: float) -> None:
    if min_s < 0 or max_s < 0:
        raise PacingConfigError(f"pacing bounds must not be negative (min={min_s}, max={max_s})")
    if min_s > max_s:
        raise PacingConfigError(f"pacing min ({min_s}) is bigger than max ({max_s})")


def sleep_random(
    min_s: float = 0.0,
    max_s: float = 0.0,
    *,
    rng: Optional[random.Random] = None,
    sleep: Sleeper = time.sleep,
) -> float:
    """
    Think-time between steps. Sleeps a uniform duration in ``[min_s, max_s]``
    and returns it. Under locust ``time.sleep`` is gevent-patched, so only the
    calling user is suspended.
    """
    check_bounds(min_s, max_s)
    if min_s == 0 and max_s == 0:
        return 0.0

    delay = (rng or random).uniform(min_s, max_s)
    sleep(delay)
    return delay


@dataclass(frozen=True)
class Pacing:
    min_s: float = 0.0
    max_s: float = 0.0

    def __post_init__(self) -> None:
        check_bounds(self.min_s, self.max_s)

    def delay(self, *, rng: Optional[random.Random] = None, sleep: Sleeper = time.sleep) -> float:
        return sleep_random(self.min_s, self.max_s, rng=rng, sleep=sleep)


NO_PACING = Pacing()
