"""
Identity service: registration, login and token verification.

Usernames are unique by database constraint; a collision on insert surfaces as
ConflictError. Login failures never reveal whether the username exists.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sweetshop.config import settings
from sweetshop.crud import crud_user
from sweetshop.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    ValidationError,
)
from sweetshop.models import User
from sweetshop.security import (
    create_access_token,
    decode_access_token,
    dummy_verify,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: User
    token: str


def issue_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "username": user.username})


def register(db: Session, username: str, password: str, is_admin: bool = False) -> AuthResult:
    if not username or not username.strip() or not password:
        raise ValidationError("Username and password are required")
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )

    try:
        user = crud_user.create(
            db,
            obj_in={
                "username": username,
                "password_hash": get_password_hash(password),
                "is_admin": bool(is_admin),
            },
        )
    except IntegrityError as e:
        logger.info(f"Registration rejected, username taken: {username}")
        raise ConflictError("Username already exists") from e

    logger.info(f"Registered user {user.username} (id={user.id}, admin={user.is_admin})")
    return AuthResult(user=user, token=issue_token(user))


def login(db: Session, username: str, password: str) -> AuthResult:
    user = crud_user.get_by_username(db, username)
    if user is None:
        dummy_verify()
        logger.warning(f"Failed login attempt for username: {username}")
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for username: {username}")
        raise InvalidCredentialsError()

    logger.info(f"User {user.username} logged in")
    return AuthResult(user=user, token=issue_token(user))


def verify(token: str) -> int:
    """
    Return the user id a token was issued to.

    Only the signature, shape and expiry are checked here; whether the user
    still exists is up to the caller.
    """
    payload = decode_access_token(token)
    subject = payload.get("sub")
    if subject is None:
        logger.warning("JWT token missing 'sub' claim")
        raise InvalidTokenError()
    try:
        return int(subject)
    except (TypeError, ValueError):
        logger.warning(f"JWT token has non-numeric 'sub' claim: {subject!r}")
        raise InvalidTokenError() from None
