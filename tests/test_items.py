import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from pickapp import create_app
from pickapp.extensions import db
from pickapp.models import Area, Item


@pytest.fixture
def app():
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    with app.app_context():
        db.create_all()
        db.session.add_all([Area(id=1, name="Aisle 1"), Area(id=2, name="Dock")])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _receive(client, **overrides):
    payload = {
        "barcode_id": "B001",
        "barcode_type": "code128",
        "name": "Bolt",
        "description": "M6 hex bolt",
        "total_quantity": 10,
        "locations": [{"bin": "A1", "quantity": 10, "type": "primary", "area_id": 1}],
    }
    payload.update(overrides)
    return client.post("/items", json=payload)


def test_get_item_requires_barcode(client):
    response = client.get("/items")
    assert response.status_code == 400
    assert response.get_json() == {"error": "barcode_id is required"}


def test_get_unknown_item_returns_no_content(client):
    response = client.get("/items?barcode_id=NOPE")
    assert response.status_code == 204
    assert response.data == b""


def test_receive_creates_item_with_area_names(client):
    response = _receive(client)
    assert response.status_code == 201
    data = response.get_json()
    assert data["barcode_id"] == "B001"
    assert data["total_quantity"] == 10
    assert data["locations"] == [
        {"bin": "A1", "quantity": 10, "type": "primary", "area_id": 1, "area_name": "Aisle 1"}
    ]

    fetched = client.get("/items?barcode_id=B001")
    assert fetched.status_code == 200
    assert fetched.get_json()["item"]["name"] == "Bolt"


def test_receive_without_total_uses_ledger_sum(client):
    response = _receive(
        client,
        total_quantity=None,
        locations=[
            {"bin": "A1", "quantity": 4, "type": "primary", "area_id": 1},
            {"bin": "D1", "quantity": 6, "type": "overflow", "area_id": 2},
        ],
    )
    assert response.status_code == 201
    assert response.get_json()["total_quantity"] == 10


def test_receive_existing_item_adds_quantity_and_replaces_ledger(client):
    _receive(client)

    response = _receive(
        client,
        total_quantity=5,
        locations=[{"bin": "D1", "quantity": 15, "type": "overflow", "area_id": 2}],
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["total_quantity"] == 15
    assert [location["bin"] for location in data["locations"]] == ["D1"]
    assert data["locations"][0]["area_name"] == "Dock"


def test_receive_existing_item_without_locations_keeps_ledger(client):
    _receive(client)

    response = client.post("/items", json={"barcode_id": "B001", "total_quantity": 2})
    assert response.status_code == 200
    data = response.get_json()
    assert data["total_quantity"] == 12
    assert [location["bin"] for location in data["locations"]] == ["A1"]


def test_receive_rejects_location_without_type(client, app):
    response = _receive(
        client, locations=[{"bin": "A1", "quantity": 10, "area_id": 1}]
    )
    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "Each location must have a type."
    assert body["details"] == {"field": "locations[0].type"}

    with app.app_context():
        assert db.session.get(Item, "B001") is None


def test_receive_rejects_unknown_area(client, app):
    response = _receive(
        client, locations=[{"bin": "A1", "quantity": 10, "type": "primary", "area_id": 77}]
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "Each location must have a valid area selected."

    with app.app_context():
        assert db.session.get(Item, "B001") is None


def test_receive_rejects_non_object_body(client):
    response = client.post("/items", json=["B001"])
    assert response.status_code == 400
    assert response.get_json()["error"] == "Request body must be a JSON object."


def test_update_overwrites_item(client):
    _receive(client)

    response = client.put(
        "/items",
        json={
            "barcode_id": "B001",
            "name": "Bolt, zinc",
            "description": None,
            "total_quantity": 3,
            "locations": [{"bin": "a1", "quantity": 3, "type": "primary", "area_id": 1}],
        },
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["name"] == "Bolt, zinc"
    assert data["description"] is None
    assert data["total_quantity"] == 3
    assert data["locations"][0]["bin"] == "a1"


def test_update_unknown_item_is_not_found(client):
    response = client.put("/items", json={"barcode_id": "NOPE", "locations": []})
    assert response.status_code == 404
    assert response.get_json()["error"] == "Item not found"


def test_list_areas_sorted_by_name(client):
    response = client.get("/items/areas")
    assert response.status_code == 200
    assert response.get_json() == [
        {"area_id": 1, "name": "Aisle 1"},
        {"area_id": 2, "name": "Dock"},
    ]


@pytest.mark.parametrize("quantity", ["Infinity", "-inf", "NaN", "1e40", 10**20])
def test_receive_rejects_unrepresentable_quantities(client, app, quantity):
    response = _receive(
        client, locations=[{"bin": "A1", "quantity": quantity, "type": "primary", "area_id": 1}]
    )
    assert response.status_code == 400
    assert response.get_json()["error"].startswith("locations[0].quantity")

    with app.app_context():
        assert db.session.get(Item, "B001") is None


def test_receive_rejects_oversized_total(client):
    response = _receive(client, total_quantity="Infinity")
    assert response.status_code == 400
    assert response.get_json()["error"] == "total_quantity must be a whole number."
