# schooladmin/api/auth/token.py
"""
Session token utilities.

A session token is an HS256 JWT whose ``data`` claim is the public
projection of the User at login time. Tokens carry no ``exp`` claim; the
session cookie's max-age is the only expiry.

Exports:
- issue_token, verify_token, decode_token
"""
from __future__ import annotations
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from schooladmin.api.errors import InvalidToken
from schooladmin.api.models import public_user
from schooladmin.api.settings import ALGORITHM, SECRET_KEY
from schooladmin.api.utils.logger import write_log


def issue_token(user: Dict[str, Any]) -> str:
    claims = {"data": public_user(user)}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: Optional[str]) -> Dict[str, Any]:
    if not token:
        raise InvalidToken("missing session token")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        write_log({"event": "token_decode_failed", "error": str(e), "token_snippet": token[:16]}, stream="security")
        raise InvalidToken(f"invalid session token: {e}") from e

    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("role"), dict):
        write_log({"event": "token_decode_failed", "error": "missing data claim", "token_snippet": token[:16]}, stream="security")
        raise InvalidToken("session token carries no user")
    return payload


def decode_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Like verify_token, but returns None instead of raising."""
    if not token:
        return None
    try:
        return verify_token(token)
    except InvalidToken:
        return None
