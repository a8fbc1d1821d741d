"""
Auth Service

Account lookup, registration and credential checks. Token issuing stays in core.security
and cookie handling stays in the auth router.
"""
import logging
import re
import uuid
from typing import Any, Optional

from ..core.clock import to_iso
from ..core.errors import EmailExistsError, ValidationError
from ..core.security import hash_password, password_needs_rehash, verify_password
from ..models.user import User

logger = logging.getLogger("uvicorn.error")

MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 100
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "createdAt": to_iso(user.created_at),
    }


async def get_user_by_email(email: str) -> Optional[User]:
    return await User.get_or_none(email=normalize_email(email))


async def get_user_by_id(user_id: str) -> Optional[User]:
    try:
        pk = uuid.UUID(str(user_id))
    except ValueError:
        return None
    return await User.get_or_none(id=pk)


async def register_user(email: str, name: str, password: str) -> User:
    """
    Create a new account with a hashed password.

    Raises:
        ValidationError: malformed email, empty/too long name, short password
        EmailExistsError: email already registered
    """
    email = normalize_email(email)
    name = (name or "").strip()
    errors = []
    if not _EMAIL_RE.match(email):
        errors.append("email is invalid")
    if not name:
        errors.append("name is required")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"name must be at most {MAX_NAME_LENGTH} characters")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    if errors:
        raise ValidationError(f"Validation failed: {', '.join(errors)}")

    if await User.filter(email=email).exists():
        raise EmailExistsError()

    user = await User.create(email=email, name=name, password_hash=hash_password(password), role="user")
    logger.info("[auth] registered user %s", user.id)
    return user


async def authenticate(email: str, password: str) -> Optional[User]:
    """Return the user if the credentials match, otherwise None."""
    user = await get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await user.save(update_fields=["password_hash", "updated_at"])
        logger.info("[auth] upgraded password hash for user %s", user.id)
    return user
