def test_get_roles_returns_seeded_roles(client, admin_headers: dict):
    """GET /api/v1/roles returns the two roles created by migrations."""
    response = client.get("/api/v1/roles", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 2

    role_names = {role["name"] for role in data}
    assert role_names == {"admin", "accountant"}

    for role in data:
        assert isinstance(role["id"], int)
        assert isinstance(role["name"], str)


def test_get_roles_as_accountant(client, accountant_headers: dict):
    response = client.get("/api/v1/roles", headers=accountant_headers)
    assert response.status_code == 200


def test_get_roles_without_authentication(client):
    response = client.get("/api/v1/roles")
    assert response.status_code == 401
