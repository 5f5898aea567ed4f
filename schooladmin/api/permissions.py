# schooladmin/api/permissions.py
from typing import Callable, Iterable, TypeVar

from schooladmin.api.auth.session import session_token
from schooladmin.api.auth.token import verify_token
from schooladmin.api.errors import InvalidToken, Unauthorized
from schooladmin.api.models import RoleType
from schooladmin.api.utils.logger import write_log

T = TypeVar("T")

# Role sets used by the resolvers
ADMINS = frozenset({RoleType.ADMIN.value})
MANAGERS = frozenset({RoleType.ADMIN.value, RoleType.SCHOOL_ADMIN.value})
STAFF = frozenset({RoleType.ADMIN.value, RoleType.SCHOOL_ADMIN.value, RoleType.TEACHER.value})


def require_role(caller: dict, allowed_roles: Iterable[str]) -> bool:
    role = caller.get("role") or {}
    role_type = role.get("type") if isinstance(role, dict) else None
    if role_type not in set(allowed_roles):
        write_log({
            "event": "access_denied",
            "reason": f"role '{role_type}' not allowed",
            "user_id": caller.get("_id"),
        }, stream=role_type or "anonymous")
        return False
    return True


def protect(info, allowed_roles: Iterable[str], operation: Callable[[dict], T]) -> T:
    """
    Run ``operation(caller)`` when the session's role type is in ``allowed_roles``.

    A missing session or a disallowed role raises Unauthorized; a session
    token that fails verification raises InvalidToken.
    """
    token = session_token(info)
    if not token:
        write_log({"event": "access_denied", "reason": "no session"}, stream="anonymous")
        raise Unauthorized()

    try:
        payload = verify_token(token)
    except InvalidToken:
        write_log({"event": "access_denied", "reason": "invalid session token"}, stream="security")
        raise

    caller = payload["data"]
    if not require_role(caller, allowed_roles):
        raise Unauthorized()
    return operation(caller)
