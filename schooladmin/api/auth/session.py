# schooladmin/api/auth/session.py
from typing import Any, Dict, List, Optional, Tuple

from schooladmin.api import settings
from schooladmin.api.auth.token import decode_token


class CookieJar:
    """
    Cookie access for one GraphQL request.

    Reads come from the incoming request; writes are queued and applied to
    the Flask response once the operation has executed.
    """

    def __init__(self, request_cookies=None):
        self._incoming = dict(request_cookies or {})
        self._pending: List[Tuple[str, str, Dict[str, Any]]] = []

    def get(self, name: str) -> Optional[str]:
        return self._incoming.get(name)

    def set(self, name: str, value: str, max_age: Optional[int] = None, httponly: bool = True):
        self._incoming[name] = value
        self._pending.append(("set", name, {"value": value, "max_age": max_age, "httponly": httponly}))

    def clear(self, name: str):
        self._incoming.pop(name, None)
        self._pending.append(("clear", name, {}))

    @property
    def pending(self):
        return list(self._pending)

    def apply(self, response):
        for action, name, opts in self._pending:
            if action == "set":
                response.set_cookie(
                    name,
                    opts["value"],
                    max_age=opts["max_age"],
                    httponly=opts["httponly"],
                    secure=settings.COOKIE_SECURE,
                    samesite=settings.COOKIE_SAMESITE,
                )
            else:
                response.delete_cookie(
                    name,
                    httponly=True,
                    secure=settings.COOKIE_SECURE,
                    samesite=settings.COOKIE_SAMESITE,
                )
        return response


def _context(info_or_context) -> dict:
    ctx = getattr(info_or_context, "context", info_or_context)
    return ctx or {}


def cookie_jar(info_or_context) -> CookieJar:
    jar = _context(info_or_context).get("cookies")
    if jar is None:
        raise RuntimeError("request context carries no cookie jar")
    return jar


def session_token(info_or_context) -> Optional[str]:
    jar = _context(info_or_context).get("cookies")
    if jar is None:
        return None
    return jar.get(settings.COOKIE_NAME)


def caller_identity(info_or_context) -> Optional[Dict[str, Any]]:
    """Decoded user of the current session, or None when anonymous or invalid."""
    payload = decode_token(session_token(info_or_context))
    if not payload:
        return None
    return payload["data"]

