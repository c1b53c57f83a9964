from __future__ import annotations

import hmac
import secrets

from fastapi import Header, Request

from finance_tracker.core.errors import CsrfError

CSRF_SESSION_KEY = "csrf"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def csrf_token(request: Request) -> str:
    """Return the session's CSRF token, issuing one on first use."""
    token = request.session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_hex(16)
        request.session[CSRF_SESSION_KEY] = token
    return token


def require_csrf(
    request: Request,
    x_csrf_token: str | None = Header(default=None),
) -> None:
    if request.method in SAFE_METHODS:
        return
    expected = csrf_token(request)
    if not x_csrf_token or not hmac.compare_digest(expected, x_csrf_token):
        raise CsrfError()
