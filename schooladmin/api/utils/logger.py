# schooladmin/api/utils/logger.py
import json
from datetime import datetime, timezone
from typing import Optional

# Fields that must never reach a log line
_REDACTED_FIELDS = {"password", "token", "secret"}


def _redact(value):
    if isinstance(value, dict):
        return {k: ("***" if k in _REDACTED_FIELDS else _redact(v)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact(v) for v in value]
    return value


# Basic structured logging function
def write_log(entry: dict, stream: str = "default"):
    entry = _redact(dict(entry))
    entry.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    entry.setdefault("stream", stream or "default")
    print(json.dumps(entry, ensure_ascii=False, default=str))


def caller_summary(caller: Optional[dict]) -> dict:
    """Reduce a decoded session identity to the fields worth auditing."""
    if not isinstance(caller, dict):
        return {"user_id": None, "role": None}
    role = caller.get("role") if isinstance(caller.get("role"), dict) else {}
    return {"user_id": caller.get("_id"), "role": role.get("type")}


def log_mutation(caller: Optional[dict], mutation_name: str, status: str, reason: str = None):
    summary = caller_summary(caller)
    entry = {
        "event": "mutation_audit",
        "mutation": mutation_name,
        "user_id": summary["user_id"],
        "role": summary["role"],
        "status": status,
        "reason": reason,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    # Split logs by role
    write_log(entry, stream=summary["role"] or "anonymous")
