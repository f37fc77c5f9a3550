# loadtest/services/scenario.py
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from loadtest.core.config import Settings
from loadtest.core.errors import CheckFailure, MissingResourceIdError
from loadtest.core.logging import LOGGER_NAME, json_log
from loadtest.schemas import PayloadRanges
from loadtest.services.checks import (
    CREATE_BOOK_CHECKS,
    LIST_BOOKS_CHECKS,
    LIST_RESOURCE_CHECKS,
    PATCH_BOOK_CHECKS,
    Check,
    validate,
)
from loadtest.services.client import ApiResponse, AuthClient
from loadtest.services.pacing import NO_PACING, Pacing, Sleeper
from loadtest.services.payload import BookGenerator

logger = logging.getLogger(LOGGER_NAME)

RESOURCES: Tuple[str, ...] = ("books", "genres", "authors", "languages")
# page size when a caller does not pass settings.list_limit
DEFAULT_LIMIT: int = Settings.model_fields["list_limit"].default


@dataclass
class ScenarioContext:
    """
    State of one simulated-user iteration. Never shared between iterations.
    """
    rng: random.Random = field(default_factory=random.Random)
    books: Optional[BookGenerator] = None
    created_id: Optional[str] = None
    completed: List[str] = field(default_factory=list)

    def book_generator(self, ranges: PayloadRanges, title: Optional[str]) -> BookGenerator:
        if self.books is None:
            self.books = BookGenerator(ranges, rng=self.rng, title=title)
        return self.books


Operation = Callable[[AuthClient, ScenarioContext], ApiResponse]


@dataclass(frozen=True)
class ScenarioStep:
    name: str
    operation: Operation
    checks: Tuple[Check, ...]
    pacing: Pacing = NO_PACING
    creates: bool = False


@dataclass(frozen=True)
class StepResult:
    ok: bool
    created_id: Optional[str] = None
    status: int = 0
    failed: Tuple[str, ...] = ()
    skipped: bool = False


@dataclass(frozen=True)
class IterationResult:
    ok: bool
    completed: Tuple[str, ...]
    failed_step: Optional[str] = None
    failure: Optional[StepResult] = None


FailureHook = Callable[[ScenarioStep, StepResult, Optional[ApiResponse]], None]


def parse_location_id(location: Optional[str]) -> Optional[str]:
    """Last path segment of a Location header, e.g. ``/api/v1/books/42`` -> ``"42"``."""
    if not location:
        return None
    last = location.rstrip().split("/")[-1]
    return last or None


def random_book_id(rng: random.Random, newest_id: Optional[str]) -> int:
    """Uniform id in ``[1, newest_id]``; the newest id was created this iteration."""
    try:
        highest = int(newest_id) if newest_id is not None else 0
    except ValueError:
        highest = 0
    if highest < 1:
        raise MissingResourceIdError(f"no usable created id to patch (got {newest_id!r})")
    return rng.randint(1, highest)


# -------------------------
# Step factories
# -------------------------
def list_books_step(pacing: Pacing = NO_PACING, limit: int = DEFAULT_LIMIT) -> ScenarioStep:
    def op(client: AuthClient, ctx: ScenarioContext) -> ApiResponse:
        return client.get("/books", {"limit": limit}, name="/books")

    return ScenarioStep("list_books", op, LIST_BOOKS_CHECKS, pacing)


def create_book_step(
    pacing: Pacing = NO_PACING,
    ranges: Optional[PayloadRanges] = None,
    title: Optional[str] = None,
) -> ScenarioStep:
    def op(client: AuthClient, ctx: ScenarioContext) -> ApiResponse:
        payload = ctx.book_generator(ranges or PayloadRanges(), title).generate()
        return client.post("/books", payload, name="/books")

    return ScenarioStep("create_book", op, CREATE_BOOK_CHECKS, pacing, creates=True)


def patch_random_book_step(
    pacing: Pacing = NO_PACING,
    ranges: Optional[PayloadRanges] = None,
    title: Optional[str] = None,
) -> ScenarioStep:
    def op(client: AuthClient, ctx: ScenarioContext) -> ApiResponse:
        book_id = random_book_id(ctx.rng, ctx.created_id)
        payload = ctx.book_generator(ranges or PayloadRanges(), title).generate()
        return client.patch(f"/books/{book_id}", payload, name="/books/[id]")

    return ScenarioStep("patch_random_book", op, PATCH_BOOK_CHECKS, pacing)


def list_random_resource_step(
    pacing: Pacing = NO_PACING,
    limit: int = DEFAULT_LIMIT,
    resources: Sequence[str] = RESOURCES,
) -> ScenarioStep:
    choices = tuple(resources)

    def op(client: AuthClient, ctx: ScenarioContext) -> ApiResponse:
        resource = ctx.rng.choice(choices)
        return client.get(f"/{resource}", {"limit": limit}, name=f"/{resource}")

    return ScenarioStep("list_random_resource", op, LIST_RESOURCE_CHECKS, pacing)


# -------------------------
# Runner
# -------------------------
def run_step(
    client: AuthClient,
    step: ScenarioStep,
    ctx: ScenarioContext,
) -> Tuple[StepResult, Optional[ApiResponse]]:
    try:
        resp = step.operation(client, ctx)
    except MissingResourceIdError as e:
        json_log(logger, {"event": "step_skipped", "step": step.name, "reason": str(e)}, level=logging.WARNING)
        return StepResult(ok=False, skipped=True, failed=("resource id available",)), None

    result = validate(resp, step.checks)
    if not result.passed:
        json_log(
            logger,
            {
                "event": "step_failed",
                "step": step.name,
                "status": resp.status,
                "failed": list(result.failed),
                "detail": resp.diagnostic(),
            },
            level=logging.ERROR,
        )
        return StepResult(ok=False, status=resp.status, failed=result.failed), resp

    created_id = None
    if step.creates:
        created_id = parse_location_id(resp.headers.get("Location"))
        if created_id is None:
            json_log(
                logger,
                {"event": "step_failed", "step": step.name, "status": resp.status, "detail": "no id in Location"},
                level=logging.ERROR,
            )
            return StepResult(ok=False, status=resp.status, failed=("Location has resource id",)), resp

    return StepResult(ok=True, created_id=created_id, status=resp.status), resp


def run_iteration(
    client: AuthClient,
    steps: Sequence[ScenarioStep],
    ctx: Optional[ScenarioContext] = None,
    *,
    sleep: Sleeper = time.sleep,
    on_failure: Optional[FailureHook] = None,
) -> IterationResult:
    """
    One simulated-user pass over ``steps`` in order.

    The first failing step ends the iteration; the run itself continues with
    the next iteration. Pacing is applied after each successful step.
    """
    ctx = ctx or ScenarioContext()

    for step in steps:
        result, resp = run_step(client, step, ctx)
        if not result.ok:
            if on_failure is not None:
                on_failure(step, result, resp)
            json_log(logger, {"event": "iteration_aborted", "step": step.name}, level=logging.WARNING)
            return IterationResult(
                ok=False,
                completed=tuple(ctx.completed),
                failed_step=step.name,
                failure=result,
            )

        if result.created_id is not None:
            ctx.created_id = result.created_id
        ctx.completed.append(step.name)

        step.pacing.delay(rng=ctx.rng, sleep=sleep)

    return IterationResult(ok=True, completed=tuple(ctx.completed))


def failure_of(step: ScenarioStep, result: StepResult) -> CheckFailure:
    return CheckFailure(step.name, result.failed, result.status)
