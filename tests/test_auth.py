from datetime import timedelta

import jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import create_access_token, decode_access_token, validate_password


# ============================================================================
# LOGIN TESTS
# ============================================================================


def test_login_success(client, db: Session, admin_user: dict):
    """Test successful login returns access token and user info."""
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": admin_user["email"],
            "password": admin_user["password"],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == admin_user["email"]
    assert data["user"]["role"]["name"] == "admin"


def test_login_token_authenticates_requests(client, db: Session, admin_user: dict):
    response = client.post(
        "/api/v1/auth/login",
        data={"username": admin_user["email"], "password": admin_user["password"]},
    )
    token = response.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == admin_user["id"]


def test_login_invalid_email(client, db: Session):
    """Test login with non-existent email."""
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": "nonexistent@example.com",
            "password": "Password123!",
        },
    )
    assert response.status_code == 401
    data = response.json()
    assert "Incorrect email or password" in data["detail"]
    assert data["code"] == "UNAUTHORIZED"


def test_login_wrong_password(client, db: Session, admin_user: dict):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": admin_user["email"],
            "password": "WrongPassword123!",
        },
    )
    assert response.status_code == 401
    assert "Incorrect email or password" in response.json()["detail"]


# ============================================================================
# CURRENT USER TESTS
# ============================================================================


def test_get_current_user_success(client, db: Session, admin_headers: dict, admin_user: dict):
    response = client.get("/api/v1/auth/me", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == admin_user["email"]
    assert data["name"] == "Administrator"


def test_get_current_user_without_token(client, db: Session):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401


def test_get_current_user_invalid_token(client, db: Session):
    response = client.get(
        "/api/v1/auth/me",
        headers={"Authorization": "Bearer not-a-real-token"},
    )
    assert response.status_code == 401


def test_get_current_user_unknown_subject(client, db: Session):
    token = create_access_token(9999)
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "User not found"


def test_login_email_is_case_insensitive(client, db: Session, admin_user: dict):
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": f"  {admin_user['email'].upper()} ",
            "password": admin_user["password"],
        },
    )
    assert response.status_code == 200
    assert response.json()["user"]["id"] == admin_user["id"]


def test_login_token_carries_role(client, db: Session, admin_user: dict):
    response = client.post(
        "/api/v1/auth/login",
        data={"username": admin_user["email"], "password": admin_user["password"]},
    )
    token = response.json()["access_token"]
    claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    assert claims["sub"] == str(admin_user["id"])
    assert claims["role"] == "admin"
    assert claims["type"] == "access"


# ============================================================================
# TOKENS AND PASSWORD POLICY
# ============================================================================


def test_decode_access_token_roundtrip():
    assert decode_access_token(create_access_token(42)) == 42


def test_decode_access_token_rejects_expired():
    token = create_access_token(42, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_decode_access_token_rejects_other_token_types():
    token = jwt.encode(
        {"sub": "42", "type": "refresh"}, settings.secret_key, algorithm=settings.algorithm
    )
    assert decode_access_token(token) is None


def test_expired_token_is_rejected_by_api(client, db: Session, admin_user: dict):
    token = create_access_token(admin_user["id"], expires_delta=timedelta(seconds=-1))
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_validate_password_policy():
    assert validate_password("Str0ng!pass") == (True, None)
    assert validate_password("Sh0rt!") == (False, "Password must be at least 8 characters long")
    assert validate_password("n0upper!case") == (
        False,
        "Password must contain at least one uppercase letter",
    )
    assert validate_password("NoDigits!here") == (
        False,
        "Password must contain at least one number",
    )
    assert validate_password("NoSymbol1here") == (
        False,
        "Password must contain at least one symbol",
    )
