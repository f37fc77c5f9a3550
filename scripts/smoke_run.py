#!/usr/bin/env python3
"""
Single-user smoke run against a live books API, without locust.

Logs in once, then runs the profile's step sequence N times in a row and
prints pass/fail counts. Useful to check a fresh server before a real run.

    python scripts/smoke_run.py --iterations 5 --profile spike --no-pacing
"""
from __future__ import annotations

import argparse
import random
import sys
import time
from collections import Counter
from contextlib import nullcontext
from typing import Optional

import requests

from loadtest.core.config import Settings, get_settings
from loadtest.core.errors import BootstrapError
from loadtest.core.logging import setup_logging
from loadtest.profiles import PROFILES, get_profile
from loadtest.services.client import AuthClient, HttpSession
from loadtest.services.payload import BookGenerator
from loadtest.services.scenario import ScenarioContext, run_iteration
from loadtest.services.session import login


def _no_sleep(_: float) -> None:
    return None


def run(
    settings: Settings,
    profile_name: str,
    iterations: int,
    pacing: bool = True,
    session: Optional[HttpSession] = None,
) -> Counter:
    profile = get_profile(profile_name)
    steps = profile.steps(settings)
    rng = random.Random()
    books = BookGenerator(settings.payload, rng=rng, title=settings.book_title)
    counts: Counter = Counter()

    with (nullcontext(session) if session is not None else requests.Session()) as s:
        token = login(s, settings)
        client = AuthClient(s, settings, token)
        for _ in range(iterations):
            ctx = ScenarioContext(rng=rng, books=books)
            res = run_iteration(client, steps, ctx, sleep=time.sleep if pacing else _no_sleep)
            counts["passed" if res.ok else f"failed:{res.failed_step}"] += 1

    return counts


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--iterations", type=int, default=3)
    ap.add_argument("--profile", choices=sorted(PROFILES), default=None)
    ap.add_argument("--base-url", default=None)
    ap.add_argument("--no-pacing", action="store_true", help="skip think-time between steps")
    args = ap.parse_args()

    settings = get_settings()
    if args.base_url:
        settings = settings.model_copy(update={"base_url": args.base_url})
    setup_logging(settings)

    try:
        counts = run(settings, args.profile or settings.profile, args.iterations, pacing=not args.no_pacing)
    except BootstrapError as e:
        print(f"ERROR bootstrap: {e}")
        return 1

    print("Iteration results:", dict(counts))
    return 0 if counts.get("passed", 0) == args.iterations else 2


if __name__ == "__main__":
    sys.exit(main())
