from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models.user import User as UserModel


def get_user_by_email(db: Session, email: str) -> UserModel | None:
    """Get an operator by email, ignoring case."""
    return (
        db.query(UserModel)
        .filter(func.lower(UserModel.email) == email.lower())
        .first()
    )


def get_user_by_id(db: Session, user_id: int) -> UserModel | None:
    return db.query(UserModel).filter(UserModel.id == user_id).first()


def create_user(
    db: Session,
    email: str,
    name: str,
    password_hash: str,
    role_id: int,
) -> UserModel:
    """Insert an operator. Emails are stored lower-cased. Commits."""
    db_user = UserModel(
        email=email.lower(),
        name=name,
        password_hash=password_hash,
        role_id=role_id,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_all_users_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    role_id: int | None = None,
) -> tuple[list[UserModel], int]:
    """
    Get operators with pagination, optionally only those holding one role.
    Sorted by name for stable pages.

    Returns:
        Tuple of (list of users, total count)
    """
    query = db.query(UserModel)
    if role_id is not None:
        query = query.filter(UserModel.role_id == role_id)

    total = query.count()
    skip = (page - 1) * page_size
    users = query.order_by(UserModel.name, UserModel.id).offset(skip).limit(page_size).all()
    return users, total
