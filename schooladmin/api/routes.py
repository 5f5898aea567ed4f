from typing import Any, Dict, List, Optional

from ariadne import MutationType, ObjectType, QueryType, ScalarType
from graphql import value_from_ast_untyped

from schooladmin.api import settings
from schooladmin.api.auth.password import hash_password, verify_password
from schooladmin.api.auth.session import caller_identity, cookie_jar
from schooladmin.api.auth.token import issue_token
from schooladmin.api.errors import AdviserNotFound, ApiError, InvalidCredentials, StoreError, ValidationError
from schooladmin.api.models import (
    Role,
    RoleType,
    new_section,
    new_user,
    public_user,
    role_type_of,
    user_filter,
)
from schooladmin.api.permissions import ADMINS, MANAGERS, STAFF, protect
from schooladmin.api.utils.logger import log_mutation, write_log

query = QueryType()
mutation = MutationType()
section_type = ObjectType("Section")
object_scalar = ScalarType("Object")
null_scalar = ScalarType("Null")


@object_scalar.value_parser
def parse_object_value(value):
    return value


@object_scalar.literal_parser
def parse_object_literal(ast, variable_values=None):
    return value_from_ast_untyped(ast, variable_values)


@null_scalar.serializer
def serialize_null(_value):
    return None


def _store(info):
    return info.context["store"]


def prepare_user(data: Dict[str, Any], created_by: Optional[str]) -> Dict[str, Any]:
    """Validate creation input and hash its password; nothing is written."""
    if not isinstance(data, dict):
        raise ValidationError("user input must be an object")
    password = data.get("password")
    if not password:
        raise ValidationError("'password' is required")
    doc = new_user(data, hash_password(password), created_by)
    return doc


def create_user(store, data: Dict[str, Any], created_by: Optional[str]) -> Dict[str, Any]:
    return store.users.insert(prepare_user(data, created_by))


def _compensate(store, mutation_name: str, users: List[dict], section: Optional[dict] = None):
    """Undo the writes of a failed batch; failures here are logged, the original error wins."""
    removed = []
    for doc in reversed(users):
        try:
            store.users.delete_by_id(doc["_id"])
            removed.append(doc["_id"])
        except StoreError as e:
            write_log({"event": "compensation_failed", "mutation": mutation_name, "_id": doc["_id"], "error": str(e)}, stream="system")
    if section is not None:
        try:
            store.sections.delete_by_id(section["_id"])
            removed.append(section["_id"])
        except StoreError as e:
            write_log({"event": "compensation_failed", "mutation": mutation_name, "_id": section["_id"], "error": str(e)}, stream="system")
    write_log({"event": "compensation", "mutation": mutation_name, "removed": removed}, stream="system")


def _audited(mutation_name: str, caller: Optional[dict], fn):
    try:
        result = fn()
    except ApiError as e:
        log_mutation(caller, mutation_name, "failed", e.code)
        raise
    log_mutation(caller, mutation_name, "success")
    return result


@query.field("me")
def resolve_me(_, info):
    identity = caller_identity(info)
    if not identity:
        return None
    return public_user(_store(info).users.find_by_id(identity.get("_id")))


@query.field("user")
def resolve_user(_, info, id):
    def operation(caller):
        return public_user(_store(info).users.find_by_id(id))

    return protect(info, MANAGERS, operation)


@query.field("users")
def resolve_users(_, info, filter=None):
    def operation(caller):
        users = _store(info).users.find(user_filter(filter))
        return [public_user(u) for u in users]

    return protect(info, MANAGERS, operation)


@query.field("sections")
def resolve_sections(_, info):
    def operation(caller):
        store = _store(info)
        sections = store.sections.find()
        for section in sections:
            section["adviserId"] = _section_adviser(store, section)
        return sections

    return protect(info, STAFF, operation)


def _section_adviser(store, section):
    adviser_id = section.get("adviserId")
    if isinstance(adviser_id, dict) or adviser_id is None:
        return adviser_id
    adviser = store.users.find_by_id(adviser_id)
    if adviser is None:
        # deleteUsers removes non-admin advisers; the section keeps its stale reference
        write_log({"event": "section_adviser_missing", "section": section.get("id"), "adviserId": adviser_id}, stream="system")
    return public_user(adviser)


@section_type.field("adviserId")
def resolve_section_adviser(section, info):
    return _section_adviser(_store(info), section)


@mutation.field("addUser")
def resolve_add_user(_, info, **data):
    def operation(caller):
        return _audited("addUser", caller, lambda: public_user(create_user(_store(info), data, caller.get("_id"))))

    return protect(info, MANAGERS, operation)


@mutation.field("addUsers")
def resolve_add_users(_, info, users):
    def operation(caller):
        store = _store(info)

        def run():
            # validate and hash the whole batch before the first write
            prepared = [prepare_user(data, caller.get("_id")) for data in users]
            created = []
            try:
                for doc in prepared:
                    created.append(store.users.insert(doc))
            except Exception:
                _compensate(store, "addUsers", created)
                raise
            return [public_user(u) for u in created]

        return _audited("addUsers", caller, run)

    return protect(info, MANAGERS, operation)


@mutation.field("deleteUsers")
def resolve_delete_users(_, info):
    def operation(caller):
        store = _store(info)

        def run():
            non_admin = [u for u in store.users.find() if role_type_of(u) != RoleType.ADMIN.value]
            for user in non_admin:
                store.users.delete_by_id(user["_id"])
            write_log({
                "event": "users_deleted",
                "count": len(non_admin),
                "remaining": store.users.count(),
                "user_id": caller.get("_id"),
            }, stream="admin")
            return None

        return _audited("deleteUsers", caller, run)

    return protect(info, ADMINS, operation)


@mutation.field("addSection")
def resolve_add_section(_, info, id, adviserId, students, name=None):
    def operation(caller):
        store = _store(info)
        requester_id = caller.get("_id")

        def run():
            adviser = store.users.find_one({"id": adviserId})
            if not adviser:
                raise AdviserNotFound()

            # validate the whole roster before the first write
            roster = []
            for student in students:
                student = dict(student)
                role = Role.from_input(student.get("role") or {"type": RoleType.STUDENT.value})
                if role.type is not RoleType.STUDENT:
                    raise ValidationError(f"a section roster may only contain students, got '{role.type.value}'")
                student["role"] = role.to_dict()
                roster.append((prepare_user(student, requester_id), role))

            section = store.sections.insert(new_section(id, name, adviser["_id"], requester_id))
            created = []
            try:
                for doc, role in roster:
                    doc["role"] = role.with_section(section["_id"]).to_dict()
                    created.append(store.users.insert(doc))
            except Exception:
                _compensate(store, "addSection", created, section)
                raise
            return section

        return _audited("addSection", caller, run)

    return protect(info, MANAGERS, operation)


@mutation.field("login")
def resolve_login(_, info, email, password):
    email = email.strip().lower()
    write_log({"event": "login_attempt", "email": email})

    user = _store(info).users.find_one({"email": email})
    if not user:
        log_mutation({}, "login", "denied", "user not found")
        raise InvalidCredentials()

    if not verify_password(password, user.get("password")):
        log_mutation({}, "login", "denied", "invalid password")
        raise InvalidCredentials()

    token = issue_token(user)
    cookie_jar(info).set(settings.COOKIE_NAME, token, max_age=settings.SESSION_MAX_AGE, httponly=True)
    log_mutation(user, "login", "success")
    return public_user(user)


@mutation.field("logout")
def resolve_logout(_, info):
    caller = caller_identity(info)
    cookie_jar(info).clear(settings.COOKIE_NAME)
    log_mutation(caller, "logout", "success")
    return None
