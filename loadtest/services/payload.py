# loadtest/services/payload.py
from __future__ import annotations

import random
from typing import Optional

from faker import Faker

from loadtest.schemas import BookPayload, IntRange, PayloadRanges


def _draw(rng: random.Random, r: IntRange) -> int:
    return rng.randint(r.low, r.high)


class BookGenerator:
    """
    Builds synthetic books for write steps.

    Every numeric field is drawn independently and uniformly from its
    inclusive range. When ``title`` is None titles come from Faker, seeded
    from ``rng`` so a seeded generator is fully reproducible.
    """

    def __init__(
        self,
        ranges: Optional[PayloadRanges] = None,
        rng: Optional[random.Random] = None,
        title: Optional[str] = None,
    ):
        self.ranges = ranges or PayloadRanges()
        self.rng = rng or random.Random()
        self.title = title
        self._fake: Optional[Faker] = None
        if title is None:
            self._fake = Faker()
            self._fake.seed_instance(self.rng.getrandbits(32))

    def _title(self) -> str:
        if self.title is not None:
            return self.title
        return self._fake.sentence(nb_words=3).rstrip(".")

    def generate(self) -> BookPayload:
        r = self.ranges
        return BookPayload(
            title=self._title(),
            year=_draw(self.rng, r.year),
            pages=_draw(self.rng, r.pages),
            author=_draw(self.rng, r.author),
            genre=_draw(self.rng, r.genre),
            language=_draw(self.rng, r.language),
        )
