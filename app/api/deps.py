import secrets

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

import app.repositories.user as user_repo
from app.core.config import settings
from app.core.security import decode_access_token
from app.db import SessionLocal
from app.db.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Get the operator behind a bearer access token."""
    user_id = decode_access_token(token)
    if user_id is None:
        raise _credentials_exception()

    user = user_repo.get_user_by_id(db, user_id)
    if user is None:
        raise _credentials_exception("User not found")

    return user


def require_roles(*role_names: str):
    """
    Create a dependency that requires the current user to have one of the specified roles.

    Args:
        *role_names: Variable number of role name strings to allow

    Returns:
        A dependency function that checks if the user has one of the required roles

    Example:
        Depends(require_roles("admin"))
        Depends(require_roles("admin", "accountant"))
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.name not in role_names:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return role_checker


def require_cron_secret(x_cron_secret: str | None = Header(None)) -> None:
    """Guard for the scheduler endpoint: the X-Cron-Secret header must match CRON_SECRET."""
    if not settings.cron_secret:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Scheduler trigger is disabled (CRON_SECRET not set)",
        )
    if x_cron_secret is None or not secrets.compare_digest(x_cron_secret, settings.cron_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )
