# loadtest/schemas.py
from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.types import StrictInt, constr

Title = constr(min_length=1, strip_whitespace=True)


class IntRange(BaseModel):
    """Inclusive integer range ``[low, high]``."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    low: int
    high: int

    @model_validator(mode="after")
    def _check_order(self) -> "IntRange":
        if self.low > self.high:
            raise ValueError(f"range low ({self.low}) is bigger than high ({self.high})")
        return self

    def contains(self, value: int) -> bool:
        return self.low <= value <= self.high


class PayloadRanges(BaseModel):
    """
    Bounds for every numeric field of a synthetic book.
    author/genre/language are ids of rows seeded in the target database.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    year: IntRange = IntRange(low=500, high=2024)
    pages: IntRange = IntRange(low=20, high=1839)
    author: IntRange = IntRange(low=1, high=9)
    genre: IntRange = IntRange(low=1, high=9)
    language: IntRange = IntRange(low=1, high=11)

    @model_validator(mode="after")
    def _check_positive(self) -> "PayloadRanges":
        for name in ("pages", "author", "genre", "language"):
            if getattr(self, name).low < 1:
                raise ValueError(f"{name} range must start at 1 or above")
        return self


class BookPayload(BaseModel):
    """
    Body for POST /books and PATCH /books/{id}.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    title: Title
    year: StrictInt
    pages: StrictInt = Field(..., gt=0)
    author: StrictInt = Field(..., gt=0)
    genre: StrictInt = Field(..., gt=0)
    language: StrictInt = Field(..., gt=0)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
