# loadtest/services/checks.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, Tuple

from loadtest.services.client import ApiResponse

Predicate = Callable[[ApiResponse], Any]


@dataclass(frozen=True)
class Check:
    name: str
    predicate: Predicate


@dataclass(frozen=True)
class CheckResult:
    passed: bool
    failed: Tuple[str, ...] = ()


CheckSpec = Tuple[Check, ...]


def validate(response: ApiResponse, checks: Sequence[Check]) -> CheckResult:
    """
    Run every check in declared order and collect the names that failed.
    A predicate that raises (bad JSON, missing keys, wrong types) counts as
    failed instead of propagating.
    """
    failed: List[str] = []
    for check in checks:
        try:
            ok = bool(check.predicate(response))
        except Exception:
            ok = False
        if not ok:
            failed.append(check.name)
    return CheckResult(passed=not failed, failed=tuple(failed))


# -------------------------
# Predicates
# -------------------------
def status_is(code: int) -> Check:
    return Check(f"status is {code}", lambda r: r.status == code)


def body_not_null() -> Check:
    return Check("body is not null", lambda r: r.json() is not None)


def has_entries() -> Check:
    return Check("has more than zero entries", lambda r: len(r.json()) > 0)


def first_title_not_empty() -> Check:
    return Check("first title is not empty", lambda r: r.status == 200 and r.json()[0]["title"] != "")


def first_author_not_zero() -> Check:
    return Check("first author is not zero", lambda r: r.status == 200 and r.json()[0]["author"] != 0)


def location_not_empty() -> Check:
    return Check("Location header is not empty", lambda r: bool(r.headers.get("Location")))


# -------------------------
# Check sets per step
# -------------------------
LIST_BOOKS_CHECKS: CheckSpec = (
    status_is(200),
    body_not_null(),
    has_entries(),
    first_title_not_empty(),
    first_author_not_zero(),
)

CREATE_BOOK_CHECKS: CheckSpec = (
    status_is(201),
    body_not_null(),
    location_not_empty(),
)

PATCH_BOOK_CHECKS: CheckSpec = (
    status_is(204),
)

LIST_RESOURCE_CHECKS: CheckSpec = (
    status_is(200),
    body_not_null(),
    has_entries(),
)
