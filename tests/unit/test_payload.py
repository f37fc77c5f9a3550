# tests/unit/test_payload.py
import json
import random

import pytest
from pydantic import ValidationError

from loadtest.schemas import BookPayload, IntRange, PayloadRanges
from loadtest.services.payload import BookGenerator


def test_generated_fields_never_leave_their_ranges():
    ranges = PayloadRanges()
    gen = BookGenerator(ranges, rng=random.Random(42))
    for _ in range(10_000):
        b = gen.generate()
        assert b.title
        assert ranges.year.contains(b.year)
        assert ranges.pages.contains(b.pages)
        assert ranges.author.contains(b.author)
        assert ranges.genre.contains(b.genre)
        assert ranges.language.contains(b.language)


def test_range_edges_are_reachable():
    ranges = PayloadRanges(author=IntRange(low=1, high=2), language=IntRange(low=3, high=3))
    gen = BookGenerator(ranges, rng=random.Random(0), title="Book title")
    authors = {gen.generate().author for _ in range(500)}
    assert authors == {1, 2}
    assert gen.generate().language == 3


def test_default_ranges():
    r = PayloadRanges()
    assert (r.year.low, r.year.high) == (500, 2024)
    assert (r.pages.low, r.pages.high) == (20, 1839)
    assert (r.author.low, r.author.high) == (1, 9)
    assert (r.genre.low, r.genre.high) == (1, 9)
    assert (r.language.low, r.language.high) == (1, 11)


def test_fixed_title_is_used():
    gen = BookGenerator(rng=random.Random(1), title="Book title")
    assert gen.generate().title == "Book title"


def test_seeded_generators_repeat():
    a = BookGenerator(rng=random.Random(99))
    b = BookGenerator(rng=random.Random(99))
    assert [a.generate() for _ in range(5)] == [b.generate() for _ in range(5)]


def test_payload_is_immutable_and_serializes():
    b = BookGenerator(rng=random.Random(5), title="T").generate()
    with pytest.raises(ValidationError):
        b.year = 1
    body = json.loads(json.dumps(b.to_json_dict()))
    assert set(body) == {"title", "year", "pages", "author", "genre", "language"}
    assert BookPayload(**body) == b


def test_inverted_range_is_rejected():
    with pytest.raises(ValidationError):
        IntRange(low=10, high=1)


def test_non_positive_id_range_is_rejected():
    with pytest.raises(ValidationError):
        PayloadRanges(genre=IntRange(low=0, high=9))


def test_empty_title_is_rejected():
    with pytest.raises(ValidationError):
        BookPayload(title="  ", year=2000, pages=10, author=1, genre=1, language=1)
