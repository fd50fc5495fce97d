import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from pickapp import create_app
from pickapp.extensions import db
from pickapp.models import Area, Employee, Item, ItemLocation, Order, OrderLine, OrderStatus


@pytest.fixture
def app():
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    with app.app_context():
        db.create_all()
        db.session.add_all([Area(id=1, name="Aisle 1"), Area(id=2, name="Aisle 2")])
        item = Item(barcode_id="B001", name="Bolt", total_quantity=10)
        item.locations.append(
            ItemLocation(position=0, bin="A1", quantity=10, type="primary", area_id=1)
        )
        db.session.add(item)
        db.session.add(
            Employee(account_id=5, first_name="Ana", last_name="Lopez", email="ana@example.com")
        )
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def order_id(client):
    response = client.post("/orders", json={"items": [{"barcode_id": "B001", "quantity": 10}]})
    return response.get_json()["order_id"]


def test_by_locations_reserves_order(client, app, order_id):
    response = client.get("/orders/by-locations?locations=1")
    assert response.status_code == 200
    assert response.get_json() == {"order_id": order_id}

    with app.app_context():
        assert db.session.get(Order, order_id).status == OrderStatus.IN_PROGRESS

    again = client.get("/orders/by-locations?locations=1")
    assert again.status_code == 404
    assert again.get_json()["error"] == "No pending orders found for selected locations"


def test_by_locations_outside_area_is_not_found(client, order_id):
    response = client.get("/orders/by-locations?locations=2")
    assert response.status_code == 404


def test_by_locations_requires_areas(client):
    response = client.get("/orders/by-locations")
    assert response.status_code == 400
    assert response.get_json()["error"] == "At least one area must be selected."

    garbage = client.get("/orders/by-locations?locations=x,,y")
    assert garbage.status_code == 400


def test_claim_line_conflicts_for_second_picker(client, order_id):
    url = f"/orders/{order_id}/items/B001/claim"

    assert client.post(url, json={"picked_by": 5}).status_code == 200
    repeat = client.post(url, json={"picked_by": "5"})
    assert repeat.status_code == 200
    assert repeat.get_json()["picked_by_name"] == "Ana Lopez"

    other = client.post(url, json={"picked_by": 6})
    assert other.status_code == 409
    assert other.get_json()["error"] == "Line item already claimed by another user"


def test_claim_requires_picker(client, order_id):
    response = client.post(f"/orders/{order_id}/items/B001/claim", json={})
    assert response.status_code == 400
    assert response.get_json()["error"] == "picked_by is required"


def test_claim_unknown_line_is_not_found(client, order_id):
    response = client.post(f"/orders/{order_id}/items/NOPE/claim", json={"picked_by": 5})
    assert response.status_code == 404


def test_record_pick_updates_line_and_stock(client, app, order_id):
    response = client.put(
        f"/orders/{order_id}/items/B001",
        json={"picked_quantity": 10, "picked_location": "a1", "picked_by": 5},
    )
    assert response.status_code == 200
    line = response.get_json()
    assert line["picked_quantity"] == 10
    assert line["completed_at"]

    item = client.get("/items?barcode_id=B001").get_json()["item"]
    assert item["total_quantity"] == 0
    assert item["locations"][0]["quantity"] == 0

    with app.app_context():
        assert db.session.get(Order, order_id).status == OrderStatus.COMPLETED


def test_record_pick_with_unknown_bin(client, app, order_id):
    response = client.put(
        f"/orders/{order_id}/items/B001",
        json={"picked_quantity": 1, "picked_location": "Z9", "picked_by": 5},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == (
        "Invalid location: this item does not have the specified location."
    )

    with app.app_context():
        assert db.session.get(OrderLine, (order_id, "B001")).picked_quantity == 0
        assert db.session.get(Item, "B001").total_quantity == 10


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"picked_location": "A1", "picked_by": 5}, "picked_quantity must be a positive whole number."),
        ({"picked_quantity": 0, "picked_location": "A1", "picked_by": 5}, "picked_quantity must be a positive whole number."),
        ({"picked_quantity": 1, "picked_by": 5}, "picked_location is required and must be a string"),
        ({"picked_quantity": 1, "picked_location": 7, "picked_by": 5}, "picked_location is required and must be a string"),
        ({"picked_quantity": 1, "picked_location": "A1"}, "picked_by is required"),
    ],
)
def test_record_pick_validates_body(client, order_id, payload, message):
    response = client.put(f"/orders/{order_id}/items/B001", json=payload)
    assert response.status_code == 400
    assert response.get_json()["error"] == message


def test_record_pick_over_request_is_rejected(client, order_id):
    response = client.put(
        f"/orders/{order_id}/items/B001",
        json={"picked_quantity": 11, "picked_location": "A1", "picked_by": 5},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "picked_quantity cannot exceed the requested quantity"


def test_reset_order_states(client, order_id):
    not_started = client.put(f"/orders/{order_id}/reset")
    assert not_started.status_code == 400
    assert not_started.get_json()["error"] == "Order not in progress or already completed"

    client.get("/orders/by-locations?locations=1")
    reset = client.put(f"/orders/{order_id}/reset")
    assert reset.status_code == 200
    assert reset.get_json() == {"message": "Order reset to pending", "order_id": order_id}

    missing = client.put("/orders/9999/reset")
    assert missing.status_code == 400
    assert missing.get_json()["error"] == "Order not in progress or already completed"


def test_cleanup_user_progress(client, app, order_id):
    client.post(f"/orders/{order_id}/items/B001/claim", json={"picked_by": 5})
    client.put(
        f"/orders/{order_id}/items/B001",
        json={"picked_quantity": 3, "picked_location": "A1", "picked_by": 5},
    )

    response = client.post("/orders/cleanup-user-progress", json={"employee_id": 5})
    assert response.status_code == 200
    data = response.get_json()
    assert data["cleaned_items"] == 1
    assert data["reset_orders"] == [order_id]

    with app.app_context():
        line = db.session.get(OrderLine, (order_id, "B001"))
        assert line.picked_by is None
        assert line.picked_quantity == 3
        assert db.session.get(Order, order_id).status == OrderStatus.PENDING


def test_cleanup_requires_employee(client):
    response = client.post("/orders/cleanup-user-progress", json={})
    assert response.status_code == 400
    assert response.get_json()["error"] == "employee_id is required"


def test_employee_logs(client, order_id):
    empty = client.get("/orders/employee-logs/5")
    assert empty.status_code == 404
    assert empty.get_json()["error"] == "No picking history found for this employee"

    client.put(
        f"/orders/{order_id}/items/B001",
        json={"picked_quantity": 10, "picked_location": "A1", "picked_by": 5},
    )
    response = client.get("/orders/employee-logs/5")
    assert response.status_code == 200
    logs = response.get_json()
    assert logs[0]["order_id"] == order_id
    assert logs[0]["item_name"] == "Bolt"
    assert logs[0]["employee_name"] == "Ana Lopez"

    invalid = client.get("/orders/employee-logs/abc")
    assert invalid.status_code == 400


def test_record_pick_from_non_ascii_bin(client, app):
    with app.app_context():
        item = Item(barcode_id="E001", name="Écrou", total_quantity=10)
        item.locations.append(
            ItemLocation(position=0, bin="É1", quantity=10, type="primary", area_id=1)
        )
        db.session.add(item)
        db.session.commit()
    created = client.post("/orders", json={"items": [{"barcode_id": "E001", "quantity": 2}]})
    order_id = created.get_json()["order_id"]

    response = client.put(
        f"/orders/{order_id}/items/E001",
        json={"picked_quantity": 1, "picked_location": "é1", "picked_by": 5},
    )
    assert response.status_code == 200
    assert response.get_json()["picked_quantity"] == 1

    stock = client.get("/items?barcode_id=E001").get_json()["item"]
    assert stock["total_quantity"] == 9
    assert stock["locations"][0]["quantity"] == 9


def test_record_pick_rejects_oversized_quantity(client, app, order_id):
    response = client.put(
        f"/orders/{order_id}/items/B001",
        json={"picked_quantity": 10**20, "picked_location": "A1", "picked_by": 5},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "picked_quantity cannot exceed 2147483647."

    with app.app_context():
        assert db.session.get(OrderLine, (order_id, "B001")).picked_quantity == 0


def test_record_pick_respects_existing_claim(client, app, order_id):
    client.post(f"/orders/{order_id}/items/B001/claim", json={"picked_by": 5})

    response = client.put(
        f"/orders/{order_id}/items/B001",
        json={"picked_quantity": 1, "picked_location": "A1", "picked_by": 6},
    )
    assert response.status_code == 409
    assert response.get_json()["error"] == "Line item already claimed by another user"

    with app.app_context():
        line = db.session.get(OrderLine, (order_id, "B001"))
        assert line.picked_by == 5
        assert line.picked_quantity == 0
        assert db.session.get(Item, "B001").total_quantity == 10
