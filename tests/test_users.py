from sqlalchemy.orm import Session

from app.db.models.role import Role as RoleModel


def test_create_user_as_admin_defaults_to_accountant(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/users",
        json={
            "email": "newuser@example.com",
            "name": "New User",
            "password": "NewPassword123!",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "newuser@example.com"
    assert data["name"] == "New User"
    assert "password_hash" not in data
    assert data["role"]["name"] == "accountant"


def test_create_user_with_specific_role(client, db: Session, admin_headers: dict):
    admin_role = db.query(RoleModel).filter(RoleModel.name == "admin").first()
    response = client.post(
        "/api/v1/users",
        json={
            "email": "second.admin@example.com",
            "name": "Second Admin",
            "password": "AdminPass123!",
            "role_id": admin_role.id,
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["role"]["name"] == "admin"


def test_create_user_as_accountant_fails(client, db: Session, accountant_headers: dict):
    response = client.post(
        "/api/v1/users",
        json={
            "email": "someone@example.com",
            "name": "Someone",
            "password": "Password123!",
        },
        headers=accountant_headers,
    )
    assert response.status_code == 403


def test_create_user_email_already_exists(client, db: Session, admin_headers: dict, admin_user: dict):
    response = client.post(
        "/api/v1/users",
        json={
            "email": admin_user["email"],
            "name": "Duplicate",
            "password": "Password123!",
        },
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"


def test_create_user_weak_password(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/users",
        json={
            "email": "weak@example.com",
            "name": "Weak",
            "password": "password123",
        },
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert "uppercase" in response.json()["detail"]


def test_create_user_invalid_role_id(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/users",
        json={
            "email": "norole@example.com",
            "name": "No Role",
            "password": "Password123!",
            "role_id": 999,
        },
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_list_users_as_admin(client, db: Session, admin_headers: dict, accountant_user: dict):
    response = client.get("/api/v1/users", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    emails = {u["email"] for u in data["items"]}
    assert accountant_user["email"] in emails


def test_list_users_as_accountant_fails(client, db: Session, accountant_headers: dict):
    response = client.get("/api/v1/users", headers=accountant_headers)
    assert response.status_code == 403


def test_list_users_filtered_by_role(
    client, db: Session, admin_headers: dict, admin_user: dict, accountant_user: dict
):
    response = client.get(
        "/api/v1/users",
        params={"role_id": accountant_user["role_id"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["email"] == accountant_user["email"]


def test_create_user_stores_email_lower_case(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/users",
        json={
            "email": "Mixed.Case@Example.com",
            "name": "Mixed Case",
            "password": "MixedCase123!",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["email"] == "mixed.case@example.com"

    duplicate = client.post(
        "/api/v1/users",
        json={
            "email": "mixed.case@example.com",
            "name": "Again",
            "password": "MixedCase123!",
        },
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
