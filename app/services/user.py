from sqlalchemy.orm import Session

import app.repositories.role as role_repo
import app.repositories.user as user_repo
from app.db.models.user import User as UserModel
from app.errors import DomainValidationError, DuplicateResourceError, NotFoundError
from app.schemas.user import UserCreate
from app.core.security import hash_password, validate_password

DEFAULT_ROLE = "accountant"


def create_user(db: Session, user_data: UserCreate) -> UserModel:
    """
    Create a new back-office user with business logic validation.

    - Validates email uniqueness
    - Validates password requirements
    - Validates role_id exists (if provided)
    - Defaults to the read-only "accountant" role if role_id not provided
    """
    existing_user = user_repo.get_user_by_email(db, user_data.email)
    if existing_user:
        raise DuplicateResourceError("Email already registered")

    is_valid, error_message = validate_password(user_data.password)
    if not is_valid:
        raise DomainValidationError(error_message)

    if user_data.role_id is None:
        role = role_repo.get_role_by_name(db, DEFAULT_ROLE)
        if not role:
            raise NotFoundError(f"Role '{DEFAULT_ROLE}' not found")
    else:
        role = role_repo.get_role_by_id(db, user_data.role_id)
        if not role:
            raise NotFoundError(f"Role with id {user_data.role_id} not found")

    password_hash = hash_password(user_data.password)

    return user_repo.create_user(
        db,
        email=user_data.email,
        name=user_data.name,
        password_hash=password_hash,
        role_id=role.id,
    )


def get_user(db: Session, user_id: int) -> UserModel:
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_all_users(
    db: Session, page: int = 1, page_size: int = 100, role_id: int | None = None
) -> tuple[list[UserModel], int]:
    return user_repo.get_all_users_paginated(
        db, page=page, page_size=page_size, role_id=role_id
    )
