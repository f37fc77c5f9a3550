# loadtest/profiles.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loadtest.core.config import Settings
from loadtest.services.pacing import Pacing
from loadtest.services.scenario import (
    ScenarioStep,
    create_book_step,
    list_books_step,
    list_random_resource_step,
    patch_random_book_step,
)


@dataclass(frozen=True)
class Stage:
    duration_s: float
    target: int


@dataclass(frozen=True)
class Profile:
    name: str
    stages: Tuple[Stage, ...]
    max_fail_ratio: float
    build_steps: Callable[[Settings], List[ScenarioStep]]

    def total_duration_s(self) -> float:
        return sum(s.duration_s for s in self.stages)

    def threshold_breached(self, fail_ratio: float) -> bool:
        # same semantics as a k6 "rate<x" threshold
        return fail_ratio >= self.max_fail_ratio

    def steps(self, settings: Settings) -> List[ScenarioStep]:
        return self.build_steps(settings)


def stage_at(stages: Sequence[Stage], run_time: float) -> Optional[Tuple[int, float]]:
    """
    ``(user_count, spawn_rate)`` for the stage covering ``run_time``, or None
    once every stage has elapsed. The spawn rate spreads the change in users
    over the stage so the runtime ramps linearly towards the target.
    """
    elapsed = 0.0
    previous = 0
    for stage in stages:
        elapsed += stage.duration_s
        if run_time < elapsed:
            delta = abs(stage.target - previous)
            return stage.target, max(1.0, float(math.ceil(delta / stage.duration_s)))
        previous = stage.target
    return None


# -------------------------
# Step sequences
# -------------------------
def _steady_steps(settings: Settings) -> List[ScenarioStep]:
    return [
        list_books_step(Pacing(0, 2), settings.list_limit),
        create_book_step(Pacing(2, 3), settings.payload, settings.book_title),
        patch_random_book_step(Pacing(3, 5), settings.payload, settings.book_title),
        list_random_resource_step(Pacing(2, 4), settings.list_limit),
    ]


def _ramp_steps(settings: Settings) -> List[ScenarioStep]:
    return [
        list_books_step(Pacing(0, 1), settings.list_limit),
        create_book_step(Pacing(0, 2), settings.payload, settings.book_title),
        patch_random_book_step(Pacing(3, 6), settings.payload, settings.book_title),
        list_random_resource_step(Pacing(0, 0.5), settings.list_limit),
    ]


def _spike_steps(settings: Settings) -> List[ScenarioStep]:
    return [
        list_random_resource_step(Pacing(0, 0.5), settings.list_limit),
        list_books_step(Pacing(0, 1), settings.list_limit),
        create_book_step(Pacing(0, 2), settings.payload, settings.book_title),
    ]


PROFILES: Dict[str, Profile] = {
    "steady": Profile(
        name="steady",
        stages=(Stage(10, 1000), Stage(600, 1000), Stage(10, 0)),
        max_fail_ratio=0.01,
        build_steps=_steady_steps,
    ),
    "ramp": Profile(
        name="ramp",
        stages=(Stage(10, 1000), Stage(10, 1000), Stage(20, 13000), Stage(600, 13000), Stage(10, 0)),
        max_fail_ratio=0.01,
        build_steps=_ramp_steps,
    ),
    "spike": Profile(
        name="spike",
        stages=(Stage(5, 1000), Stage(5, 1000), Stage(20, 20000), Stage(120, 20000), Stage(5, 0)),
        max_fail_ratio=0.15,
        build_steps=_spike_steps,
    ),
}


def get_profile(name: str) -> Profile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"unknown profile {name!r}; expected one of {sorted(PROFILES)}") from None
