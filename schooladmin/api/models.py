# schooladmin/api/models.py
"""
User, Section and Role shapes as stored in the document store.

Documents are plain dicts (they are what Redis holds and what Ariadne
serializes); the helpers here build, validate and project them.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from schooladmin.api.errors import ValidationError

USERS = "users"
SECTIONS = "sections"

USER_FIELDS = ("id", "firstName", "lastName", "middleInitial", "email", "password", "role")
# Fields never returned to a client or embedded in a session token
CREDENTIAL_FIELDS = ("password",)


class RoleType(str, Enum):
    ADMIN = "admin"
    SCHOOL_ADMIN = "schoolAdmin"
    TEACHER = "teacher"
    STUDENT = "student"


@dataclass(frozen=True)
class Role:
    type: RoleType
    section_id: Optional[str] = None

    @classmethod
    def from_input(cls, raw: Any) -> "Role":
        if isinstance(raw, Role):
            return raw
        if not isinstance(raw, dict) or "type" not in raw:
            raise ValidationError("role must be an object with a 'type' field")
        try:
            role_type = RoleType(raw["type"])
        except ValueError:
            allowed = ", ".join(r.value for r in RoleType)
            raise ValidationError(f"unknown role type '{raw['type']}' (expected one of: {allowed})")

        unknown = set(raw) - {"type", "sectionId"}
        if unknown:
            raise ValidationError(f"unexpected role fields: {', '.join(sorted(unknown))}")

        section_id = raw.get("sectionId")
        if section_id is not None and role_type is not RoleType.STUDENT:
            raise ValidationError("only student roles may reference a section")
        return cls(type=role_type, section_id=str(section_id) if section_id is not None else None)

    def with_section(self, section_id: str) -> "Role":
        if self.type is not RoleType.STUDENT:
            raise ValidationError(f"a section roster may only contain students, got '{self.type.value}'")
        return Role(type=self.type, section_id=section_id)

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.type.value}
        if self.section_id is not None:
            data["sectionId"] = self.section_id
        return data


def timestamp() -> str:
    # epoch milliseconds, kept as a string
    return str(int(time.time() * 1000))


def role_type_of(doc: Optional[dict]) -> Optional[str]:
    if not isinstance(doc, dict):
        return None
    role = doc.get("role")
    if isinstance(role, dict):
        return role.get("type")
    return None


def _require(data: dict, field: str) -> str:
    value = data.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"'{field}' is required")
    return value


def new_user(data: dict, password_hash: str, created_by: Optional[str]) -> Dict[str, Any]:
    """Build a User document from creation input; the password is already hashed."""
    role = Role.from_input(data.get("role"))
    return {
        "id": _require(data, "id"),
        "firstName": _require(data, "firstName"),
        "lastName": _require(data, "lastName"),
        "middleInitial": data.get("middleInitial"),
        "email": _require(data, "email").strip().lower(),
        "password": password_hash,
        "role": role.to_dict(),
        "createdAt": timestamp(),
        "createdBy": created_by,
    }


def new_section(section_id: str, name: Optional[str], adviser_internal_id: str, created_by: Optional[str]) -> Dict[str, Any]:
    if not section_id:
        raise ValidationError("'id' is required")
    return {
        "id": section_id,
        "name": name,
        "adviserId": adviser_internal_id,
        "createdAt": timestamp(),
        "createdBy": created_by,
    }


def public_user(doc: Optional[dict]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    return {k: v for k, v in doc.items() if k not in CREDENTIAL_FIELDS}


def user_filter(raw: Optional[dict]) -> Dict[str, Any]:
    """Turn a UserInput filter into a store filter; password cannot be matched against a hash."""
    if not raw:
        return {}
    flt = {k: v for k, v in raw.items() if k in USER_FIELDS and k not in CREDENTIAL_FIELDS and v is not None}
    if "email" in flt and isinstance(flt["email"], str):
        flt["email"] = flt["email"].strip().lower()
    return flt
