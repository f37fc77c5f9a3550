# loadtest/core/errors.py
from __future__ import annotations

from typing import Optional, Sequence


class HarnessError(Exception):
    pass


class BootstrapError(HarnessError):
    """Login failed; nothing can run without a token."""

    def __init__(self, message: str, status: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.detail = detail

    def __str__(self) -> str:
        parts = [self.message]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.detail:
            parts.append(f"detail={self.detail}")
        return " ".join(parts)


class PacingConfigError(HarnessError, ValueError):
    pass


class MissingResourceIdError(HarnessError):
    pass


class CheckFailure(HarnessError):
    """A step whose checks did not all pass."""

    def __init__(self, step: str, failed: Sequence[str], status: int = 0):
        self.step = step
        self.failed = tuple(failed)
        self.status = status
        super().__init__(f"{step} failed checks: {', '.join(self.failed) or 'n/a'} (status={status})")
