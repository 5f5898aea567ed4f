# schooladmin/api/auth/password.py
from passlib.context import CryptContext

from schooladmin.api.errors import ValidationError
from schooladmin.api.settings import PASSWORD_SCHEMES

_pwd_context = CryptContext(schemes=PASSWORD_SCHEMES, deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValidationError("password must not be empty")
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return _pwd_context.verify(password, hashed)
    except (ValueError, TypeError):
        # unknown or malformed hash
        return False
