# loadtest/services/session.py
from __future__ import annotations

import logging
import time

from loadtest.core.config import Settings
from loadtest.core.errors import BootstrapError
from loadtest.core.logging import LOGGER_NAME, json_log
from loadtest.services.client import TRANSPORT_ERRORS, HttpSession, latency_ms, to_api_response

logger = logging.getLogger(LOGGER_NAME)

LOGIN_PATH = "/login"


def login(session: HttpSession, settings: Settings) -> str:
    """
    POST /login asking for an admin token.

    Runs once before any iteration. Any failure (transport, status other than
    200, body without a usable token) raises ``BootstrapError``; there is no
    retry.
    """
    url = settings.url(LOGIN_PATH)
    start = time.perf_counter()
    try:
        resp = session.request(
            "POST",
            url,
            json={"return_admin_token": True},
            headers={"Content-Type": "application/json"},
            timeout=settings.request_timeout_s,
        )
    except TRANSPORT_ERRORS as e:
        json_log(logger, {"event": "bootstrap_failed", "url": url, "error": str(e)}, level=logging.ERROR)
        raise BootstrapError("login request failed", detail=f"{type(e).__name__}: {e}") from e

    r = to_api_response(resp, latency_ms(start))
    if r.status != 200:
        json_log(
            logger,
            {"event": "bootstrap_failed", "url": url, "status": r.status, "detail": r.diagnostic()},
            level=logging.ERROR,
        )
        raise BootstrapError("login returned unexpected status", status=r.status, detail=r.diagnostic())

    try:
        data = r.json()
    except ValueError as e:
        json_log(logger, {"event": "bootstrap_failed", "url": url, "status": r.status, "detail": "body is not JSON"},
                 level=logging.ERROR)
        raise BootstrapError("login body is not JSON", status=r.status, detail=r.text()) from e

    token = data.get("token") if isinstance(data, dict) else None
    if not isinstance(token, str) or not token:
        json_log(logger, {"event": "bootstrap_failed", "url": url, "status": r.status, "detail": "no token"},
                 level=logging.ERROR)
        raise BootstrapError("login response has no token", status=r.status, detail=r.text())

    json_log(logger, {"event": "bootstrap_ok", "url": url, "latency_ms": round(r.elapsed_ms, 3)})
    return token
