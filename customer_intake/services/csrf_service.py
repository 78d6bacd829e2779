from __future__ import annotations

import hmac
import secrets
from typing import Any, MutableMapping

CSRF_SESSION_KEY = "csrf_token"


def issue_csrf_token(session: MutableMapping[str, Any]) -> str:
    """Return the session's anti-forgery token, creating it on first use.

    The token is 32 random bytes, hex encoded, and stays the same until
    ``clear_csrf_token`` removes it.
    """
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_hex(32)
        session[CSRF_SESSION_KEY] = token
    return token


def verify_csrf_token(session: MutableMapping[str, Any], presented: str | None) -> bool:
    expected = session.get(CSRF_SESSION_KEY)
    if not expected or not isinstance(presented, str):
        return False
    # Constant-time comparison; the token is not rotated here.
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


def clear_csrf_token(session: MutableMapping[str, Any]) -> None:
    session.pop(CSRF_SESSION_KEY, None)
