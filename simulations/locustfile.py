# simulations/locustfile.py
"""
Books API load run.

    BLT_PROFILE=steady locust -f simulations/locustfile.py --headless

The profile (steady | ramp | spike) picks the stage plan, the failure
threshold and the step sequence every simulated user repeats.
"""
from __future__ import annotations

import random
from typing import Any, Optional

import gevent
import requests
from locust import HttpUser, LoadTestShape, constant, events, task
from locust.exception import StopUser

from loadtest.core.config import get_settings
from loadtest.core.errors import BootstrapError
from loadtest.core.logging import get_logger, json_log, setup_logging
from loadtest.profiles import get_profile, stage_at
from loadtest.services.client import ApiResponse, AuthClient
from loadtest.services.payload import BookGenerator
from loadtest.services.scenario import ScenarioContext, ScenarioStep, StepResult, failure_of, run_iteration
from loadtest.services.session import login

SETTINGS = get_settings()
PROFILE = get_profile(SETTINGS.profile)

# request_type of the synthetic entries fired for failed checks
CHECK_REQUEST_TYPE = "CHECK"


def http_fail_ratio(stats) -> float:
    """Failed share of real HTTP requests; CHECK entries are left out of both sums."""
    entries = [e for (_, method), e in stats.entries.items() if method != CHECK_REQUEST_TYPE]
    total = sum(e.num_requests for e in entries)
    if not total:
        return 0.0
    return sum(e.num_failures for e in entries) / total


class LocustAuthClient(AuthClient):
    """Passes a route name through so locust groups /books/17 and /books/42 together."""

    def _dispatch(self, method: str, url: str, name: str, **kwargs: Any) -> Any:
        return self.session.request(method, url, name=name, **kwargs)


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    logger = setup_logging(SETTINGS)
    environment.books_token = None

    with requests.Session() as s:
        try:
            environment.books_token = login(s, SETTINGS)
        except BootstrapError as e:
            logger.error("Bootstrap failed, stopping run: %s", e)
            environment.process_exit_code = 1
            if environment.runner is not None:
                gevent.spawn(environment.runner.quit)
            return

    logger.info("Load run started. profile=%s base_url=%s", PROFILE.name, SETTINGS.base_url)


@events.quitting.add_listener
def on_quitting(environment, **kwargs):
    fail_ratio = http_fail_ratio(environment.stats)
    if PROFILE.threshold_breached(fail_ratio):
        json_log(
            get_logger(),
            {
                "event": "threshold_breached",
                "profile": PROFILE.name,
                "fail_ratio": round(fail_ratio, 4),
                "max_fail_ratio": PROFILE.max_fail_ratio,
            },
        )
        environment.process_exit_code = 1


class BooksApiUser(HttpUser):
    host = SETTINGS.base_url
    wait_time = constant(0)  # think-time lives in each step's pacing

    def on_start(self):
        token = getattr(self.environment, "books_token", None)
        if not token:
            raise StopUser()

        self.api = LocustAuthClient(self.client, SETTINGS, token)
        self.steps = PROFILE.steps(SETTINGS)
        self.rng = random.Random()
        self.books = BookGenerator(SETTINGS.payload, rng=self.rng, title=SETTINGS.book_title)

    @task
    def iteration(self):
        ctx = ScenarioContext(rng=self.rng, books=self.books)
        run_iteration(self.api, self.steps, ctx, on_failure=self._report_failure)

    def _report_failure(self, step: ScenarioStep, result: StepResult, resp: Optional[ApiResponse]) -> None:
        self.environment.events.request.fire(
            request_type=CHECK_REQUEST_TYPE,
            name=step.name,
            response_time=resp.elapsed_ms if resp is not None else 0,
            response_length=len(resp.body) if resp is not None else 0,
            exception=failure_of(step, result),
            context={},
        )


class ProfileShape(LoadTestShape):
    stages = PROFILE.stages

    def tick(self):
        return stage_at(self.stages, self.get_run_time())
