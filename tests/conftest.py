# tests/conftest.py
from __future__ import annotations

import os
import sys
from pathlib import Path

# locust objects are driven directly; no gevent patching next to TestClient
os.environ.setdefault("LOCUST_SKIP_MONKEY_PATCH", "1")

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import random
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.testclient import TestClient

from loadtest.core.config import Settings
from loadtest.schemas import BookPayload

TOKEN = "abc"


class FakeBooksApi:
    """
    In-memory stand-in for the books service, mounted at /api/v1.
    Knobs let a test break individual endpoints.
    """

    def __init__(self, token: str = TOKEN):
        self.token = token
        self.login_status = 200
        self.login_body: Optional[Dict[str, Any]] = None
        self.login_request: Optional[Dict[str, Any]] = None
        self.books: List[Dict[str, Any]] = [
            {"id": i, "title": f"Seed book {i}", "year": 1990, "pages": 100, "author": 1, "genre": 1, "language": 1}
            for i in range(1, 4)
        ]
        self.collections: Dict[str, List[Dict[str, Any]]] = {
            "genres": [{"id": 1, "name": "Drama"}],
            "authors": [{"id": 1, "first_name": "Ada", "last_name": "Lovelace"}],
            "languages": [{"id": 1, "name": "English"}],
        }
        self.list_override: Optional[Any] = None
        self.create_status = 201
        self.location_prefix = "/api/v1/books"
        self.calls: List[Tuple[str, str, Dict[str, str]]] = []
        self.patched: List[int] = []
        self.created: List[Dict[str, Any]] = []
        self.app = self._build()

    def _authorized(self, request: Request) -> bool:
        return request.headers.get("authorization") == f"Bearer {self.token}"

    def _build(self) -> FastAPI:
        app = FastAPI()
        api = self

        @app.middleware("http")
        async def record(request: Request, call_next):
            api.calls.append((request.method, request.url.path, dict(request.headers)))
            return await call_next(request)

        @app.post("/api/v1/login")
        async def login(request: Request):
            api.login_request = await request.json()
            if api.login_status != 200:
                return JSONResponse({"error": "Failed to create token"}, status_code=api.login_status)
            body = api.login_body if api.login_body is not None else {"admin": True, "token": api.token}
            return JSONResponse(body)

        @app.get("/api/v1/books")
        def list_books(request: Request, limit: int = 100):
            if not api._authorized(request):
                return JSONResponse({"error": "Unauthorized"}, status_code=401)
            if api.list_override is not None:
                return JSONResponse(api.list_override)
            return JSONResponse(api.books[:limit])

        @app.post("/api/v1/books")
        def create_book(request: Request, book: BookPayload):
            if not api._authorized(request):
                return JSONResponse({"error": "Unauthorized"}, status_code=401)
            if api.create_status != 201:
                return JSONResponse({"error": "An Internal Server Error occurred"}, status_code=api.create_status)
            new = {"id": len(api.books) + 1, **book.model_dump()}
            api.books.append(new)
            api.created.append(new)
            return JSONResponse(new, status_code=201, headers={"Location": f"{api.location_prefix}/{new['id']}"})

        @app.patch("/api/v1/books/{book_id}")
        def patch_book(request: Request, book_id: int, book: BookPayload):
            if not api._authorized(request):
                return JSONResponse({"error": "Unauthorized"}, status_code=401)
            if not 1 <= book_id <= len(api.books):
                return JSONResponse({"error": "No resource found"}, status_code=404)
            api.books[book_id - 1].update(book.model_dump())
            api.patched.append(book_id)
            return Response(status_code=204)

        @app.get("/api/v1/{collection}")
        def list_collection(request: Request, collection: str, limit: int = 100):
            if not api._authorized(request):
                return JSONResponse({"error": "Unauthorized"}, status_code=401)
            if collection not in api.collections:
                return JSONResponse({"error": "Not found"}, status_code=404)
            return JSONResponse(api.collections[collection][:limit])

        return app

    def paths(self, method: Optional[str] = None) -> List[str]:
        return [p for m, p, _ in self.calls if method is None or m == method]


class RecordingSleeper:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    """
    Settings pointing at the fake API with logs under a temp dir.
    """
    return Settings(
        repo_root=str(tmp_path),
        logs_dir="logs",
        log_path="logs/loadtest.jsonl",
        base_url="http://testserver/api/v1",
        request_timeout_s=5.0,
        list_limit=50,
        book_title=None,
    )


@pytest.fixture()
def fake_api() -> FakeBooksApi:
    return FakeBooksApi()


@pytest.fixture()
def http(fake_api: FakeBooksApi) -> Iterator[TestClient]:
    with TestClient(fake_api.app) as c:
        yield c


@pytest.fixture()
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture(autouse=True)
def _reset_books_load_logger() -> Iterator[None]:
    """Drop handlers added to the process-wide logger so tests don't share log files."""
    yield
    import logging

    logger = logging.getLogger("books_load")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
