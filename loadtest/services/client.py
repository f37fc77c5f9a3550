# loadtest/services/client.py
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Union

import httpx
import requests
from requests.structures import CaseInsensitiveDict

from loadtest.core.config import Settings
from loadtest.core.logging import LOGGER_NAME, json_log
from loadtest.schemas import BookPayload

logger = logging.getLogger(LOGGER_NAME)

# status reported when no HTTP response was received at all
TRANSPORT_FAILURE_STATUS = 0

TRANSPORT_ERRORS = (requests.RequestException, httpx.TransportError)

Body = Union[BookPayload, Mapping[str, Any]]


class HttpSession(Protocol):
    """Anything with a requests/httpx style ``request`` method."""

    def request(self, method: str, url: str, **kwargs: Any) -> Any: ...


def latency_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


@dataclass(frozen=True)
class ApiResponse:
    status: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""
    error: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        # ValueError on empty / non-JSON bodies; checks treat that as a failure
        return json.loads(self.body)

    def text(self, limit: int = 200) -> str:
        return self.body[:limit].decode("utf-8", errors="replace")

    def diagnostic(self, limit: int = 200) -> str:
        """One short field explaining the response, for failure logs."""
        if self.error:
            return self.error[:limit]
        try:
            data = self.json()
        except ValueError:
            return self.text(limit)
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])[:limit]
        return self.text(limit)


def to_api_response(resp: Any, elapsed_ms: float = 0.0) -> ApiResponse:
    """Normalize a requests / httpx / locust response object."""
    return ApiResponse(
        status=int(getattr(resp, "status_code", 0) or 0),
        headers=CaseInsensitiveDict(dict(getattr(resp, "headers", None) or {})),
        body=getattr(resp, "content", None) or b"",
        error=str(resp.error) if getattr(resp, "error", None) else None,
        elapsed_ms=elapsed_ms,
    )


def _body_dict(body: Body) -> Dict[str, Any]:
    if isinstance(body, BookPayload):
        return body.to_json_dict()
    return dict(body)


class AuthClient:
    """
    Bearer-token JSON client bound to ``settings.base_url``.

    Transport failures never raise; they come back as an ``ApiResponse`` with
    status ``TRANSPORT_FAILURE_STATUS`` so the caller's checks fail normally.
    """

    def __init__(self, session: HttpSession, settings: Settings, token: str):
        self.session = session
        self.settings = settings
        self.token = token

    def _headers(self, write: bool) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.token}"}
        if write:
            headers["Content-Type"] = "application/json"
        return headers

    def get(self, path: str, query: Optional[Mapping[str, Any]] = None, name: Optional[str] = None) -> ApiResponse:
        return self.request("GET", path, query=query, name=name)

    def post(self, path: str, body: Body, name: Optional[str] = None) -> ApiResponse:
        return self.request("POST", path, body=body, name=name)

    def patch(self, path: str, body: Body, name: Optional[str] = None) -> ApiResponse:
        return self.request("PATCH", path, body=body, name=name)

    def request(
        self,
        method: str,
        path: str,
        *,
        query: Optional[Mapping[str, Any]] = None,
        body: Optional[Body] = None,
        name: Optional[str] = None,
    ) -> ApiResponse:
        url = self.settings.url(path)
        kwargs: Dict[str, Any] = {
            "headers": self._headers(write=body is not None),
            "timeout": self.settings.request_timeout_s,
        }
        if query:
            kwargs["params"] = dict(query)
        if body is not None:
            kwargs["json"] = _body_dict(body)

        start = time.perf_counter()
        try:
            resp = self._dispatch(method, url, name or path, **kwargs)
        except TRANSPORT_ERRORS as e:
            elapsed = latency_ms(start)
            json_log(
                logger,
                {"event": "transport_error", "method": method, "url": url, "error": f"{type(e).__name__}: {e}"},
                level=logging.WARNING,
            )
            return ApiResponse(
                status=TRANSPORT_FAILURE_STATUS,
                error=f"{type(e).__name__}: {e}",
                elapsed_ms=elapsed,
            )
        return to_api_response(resp, latency_ms(start))

    def _dispatch(self, method: str, url: str, name: str, **kwargs: Any) -> Any:
        # name is only meaningful to runtimes that group stats by route
        return self.session.request(method, url, **kwargs)
