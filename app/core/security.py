"""Operator credentials: password hashing, password policy and access tokens."""

import re
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from app.core.config import settings

ACCESS_TOKEN_TYPE = "access"
MIN_PASSWORD_LENGTH = 8

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# (pattern, what a password lacks when the pattern does not match)
PASSWORD_REQUIREMENTS = (
    (re.compile(r"[A-Z]"), "uppercase letter"),
    (re.compile(r"[a-z]"), "lowercase letter"),
    (re.compile(r"\d"), "number"),
    (re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?~`]"), "symbol"),
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_password(password: str) -> tuple[bool, str | None]:
    """
    Check a new operator password against the policy: at least
    MIN_PASSWORD_LENGTH characters and one character of each kind in
    PASSWORD_REQUIREMENTS.

    Returns: (is_valid, error_message)
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    for pattern, requirement in PASSWORD_REQUIREMENTS:
        if not pattern.search(password):
            return False, f"Password must contain at least one {requirement}"

    return True, None


def create_access_token(
    user_id: int,
    role: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Issue an access token for an operator.

    The subject claim carries the user id as a string; the role name is
    included for clients but never trusted by the API, which reloads the user.
    """
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    claims = {
        "sub": str(user_id),
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    if role is not None:
        claims["role"] = role
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> int | None:
    """User id of a valid, unexpired access token; None for anything else."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.InvalidTokenError:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
