from datetime import date

from sqlalchemy.orm import Session


# ============================================================================
# CREATE / READ
# ============================================================================


def test_create_customer_as_admin(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/customers",
        json={
            "name": "Acme Deliveries Ltd",
            "email": "accounts@acme.example.com",
            "phone": "01234 567890",
            "customer_type": "Company",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Acme Deliveries Ltd"
    assert data["customer_type"] == "Company"


def test_create_customer_defaults_to_individual(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/customers",
        json={"name": "Sam Smith"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["customer_type"] == "Individual"


def test_create_customer_invalid_type(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/customers",
        json={"name": "Sam Smith", "customer_type": "Charity"},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_create_customer_as_accountant_fails(client, db: Session, accountant_headers: dict):
    response = client.post(
        "/api/v1/customers",
        json={"name": "Sam Smith"},
        headers=accountant_headers,
    )
    assert response.status_code == 403


def test_list_customers_with_name_filter(client, db: Session, accountant_headers: dict, make_customer):
    make_customer(name="Alice Archer")
    make_customer(name="Bob Baker")
    make_customer(name="Alicia Keys")

    response = client.get("/api/v1/customers?name=alic", headers=accountant_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [c["name"] for c in data["items"]] == ["Alice Archer", "Alicia Keys"]


def test_get_customer_not_found(client, db: Session, admin_headers: dict):
    response = client.get("/api/v1/customers/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


# ============================================================================
# UPDATE / DELETE
# ============================================================================


def test_update_customer_partial(client, db: Session, admin_headers: dict, customer):
    response = client.put(
        f"/api/v1/customers/{customer.id}",
        json={"phone": "07700 900123"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["phone"] == "07700 900123"
    assert data["name"] == "Jane Driver"


def test_delete_customer_without_rentals(client, db: Session, admin_headers: dict, customer):
    response = client.delete(f"/api/v1/customers/{customer.id}", headers=admin_headers)
    assert response.status_code == 204

    response = client.get(f"/api/v1/customers/{customer.id}", headers=admin_headers)
    assert response.status_code == 404


def test_delete_customer_with_rental_fails(
    client, db: Session, admin_headers: dict, customer, vehicle, make_rental
):
    make_rental(customer, vehicle, start_date=date(2024, 1, 1))

    response = client.delete(f"/api/v1/customers/{customer.id}", headers=admin_headers)
    assert response.status_code == 400
    assert "rentals" in response.json()["detail"]


# ============================================================================
# NET POSITION
# ============================================================================


def test_net_position_endpoint(
    client, db: Session, accountant_headers: dict, customer, vehicle, make_rental
):
    make_rental(
        customer,
        vehicle,
        start_date=date(2024, 1, 1),
        periodic_amount=10000,
        initial_fee=15000,
    )

    response = client.get(
        f"/api/v1/customers/{customer.id}/net-position", headers=accountant_headers
    )
    assert response.status_code == 200
    assert response.json() == {
        "total_charges": 10000,
        "total_payments": 10000,
        "outstanding": 0,
        "unallocated_credit": 5000,
    }


def test_net_position_unknown_customer(client, db: Session, admin_headers: dict):
    response = client.get("/api/v1/customers/999/net-position", headers=admin_headers)
    assert response.status_code == 404
