"""Auth service: operator login."""

import logging

from sqlalchemy.orm import Session

from app.core.security import create_access_token, verify_password
from app.errors import UnauthorizedError
from app.repositories.user import get_user_by_email
from app.schemas.user import Token, User

logger = logging.getLogger(__name__)


def login(db: Session, email: str, password: str) -> Token:
    """
    Exchange an operator's email and password for a bearer access token.

    The email is matched case-insensitively. Unknown emails and wrong
    passwords fail the same way so the response does not reveal which
    accounts exist.

    Raises:
        UnauthorizedError: If the credentials do not match an operator.
    """
    user = get_user_by_email(db, email.strip())
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        raise UnauthorizedError("Incorrect email or password")

    role_name = user.role.name if user.role else None
    logger.info("Operator %s logged in (%s)", user.id, role_name)
    return Token(
        access_token=create_access_token(user.id, role=role_name),
        token_type="bearer",
        user=User.model_validate(user),
    )
