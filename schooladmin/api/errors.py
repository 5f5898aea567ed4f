# schooladmin/api/errors.py
"""
Error kinds raised by resolvers and collaborators.

Every kind carries a stable ``code``; the GraphQL error formatter copies it
into ``extensions.code`` so clients and tests can tell failures apart even
though the message stays human readable.
"""
from typing import Optional

from ariadne import format_error as default_format_error
from graphql import GraphQLError


class ApiError(Exception):
    code = "INTERNAL"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class Unauthorized(ApiError):
    code = "UNAUTHORIZED"
    default_message = "You are not authorized to perform this action!"


class InvalidCredentials(ApiError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class AdviserNotFound(ApiError):
    code = "ADVISER_NOT_FOUND"
    default_message = "Adviser not found"


class InvalidToken(ApiError):
    code = "INVALID_TOKEN"
    default_message = "Invalid session token"


class ValidationError(ApiError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class StoreError(ApiError):
    code = "STORE_ERROR"
    default_message = "Storage failure"


class DuplicateKey(StoreError):
    code = "DUPLICATE_KEY"
    default_message = "Duplicate key"

    def __init__(self, collection: str, field: str, value):
        super().__init__(f"{collection}.{field} '{value}' already exists")
        self.collection = collection
        self.field = field
        self.value = value


def format_error(error: GraphQLError, debug: bool = False) -> dict:
    formatted = default_format_error(error, debug)
    original = getattr(error, "original_error", None)
    extensions = dict(formatted.get("extensions") or {})
    if isinstance(original, ApiError):
        extensions["code"] = original.code
    elif original is not None:
        extensions["code"] = ApiError.code
    elif error.path is None:
        # parse or validation errors, raised before execution starts
        extensions.setdefault("code", "GRAPHQL_VALIDATION_FAILED")
    else:
        # execution errors raised by graphql-core itself, e.g. a null in a non-null field
        extensions.setdefault("code", ApiError.code)
    formatted["extensions"] = extensions
    return formatted
