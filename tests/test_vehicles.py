from datetime import date

from sqlalchemy.orm import Session


def test_create_vehicle_normalizes_reg(client, db: Session, admin_headers: dict):
    response = client.post(
        "/api/v1/vehicles",
        json={
            "reg": "ab12 cde",
            "make": "Ford",
            "model": "Transit",
            "mot_due_date": "2024-06-30",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["reg"] == "AB12CDE"
    assert data["status"] == "Available"
    assert data["mot_due_date"] == "2024-06-30"
    assert data["insurance_expiry_date"] is None


def test_create_vehicle_duplicate_reg(client, db: Session, admin_headers: dict, vehicle):
    response = client.post(
        "/api/v1/vehicles",
        json={"reg": "AB12 CDE"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"


def test_update_vehicle_to_taken_reg(client, db: Session, admin_headers: dict, make_vehicle):
    make_vehicle(reg="AA11AAA")
    other = make_vehicle(reg="BB22BBB")

    response = client.put(
        f"/api/v1/vehicles/{other.id}",
        json={"reg": "AA11AAA"},
        headers=admin_headers,
    )
    assert response.status_code == 409


def test_update_vehicle_clears_document_date(client, db: Session, admin_headers: dict, make_vehicle):
    v = make_vehicle(reg="CC33CCC", tax_due_date=date(2024, 5, 1))

    response = client.put(
        f"/api/v1/vehicles/{v.id}",
        json={"tax_due_date": None},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["tax_due_date"] is None


def test_list_vehicles_by_status(
    client, db: Session, accountant_headers: dict, customer, make_vehicle, make_rental
):
    rented = make_vehicle(reg="RR11RRR")
    make_vehicle(reg="FF22FFF")
    make_rental(customer, rented, start_date=date(2024, 1, 1))

    response = client.get("/api/v1/vehicles?status=Rented", headers=accountant_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["reg"] == "RR11RRR"


def test_delete_vehicle_never_rented(client, db: Session, admin_headers: dict, vehicle):
    response = client.delete(f"/api/v1/vehicles/{vehicle.id}", headers=admin_headers)
    assert response.status_code == 204


def test_delete_vehicle_with_rental_fails(
    client, db: Session, admin_headers: dict, customer, vehicle, make_rental
):
    make_rental(customer, vehicle)
    response = client.delete(f"/api/v1/vehicles/{vehicle.id}", headers=admin_headers)
    assert response.status_code == 400


def test_get_vehicle_as_accountant(client, db: Session, accountant_headers: dict, vehicle):
    response = client.get(f"/api/v1/vehicles/{vehicle.id}", headers=accountant_headers)
    assert response.status_code == 200
    assert response.json()["make"] == "Ford"
