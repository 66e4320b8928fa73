import pytest
from sqlmodel import select

from app.models.shipment import Shipment
from app.models.user import User
from tests.helpers import auth_headers, signed_notification


def _payload(transaction, recipient, choices):
    return {"transaction_id": transaction.id, **recipient, "shipments": choices}


@pytest.mark.filterwarnings("error::pydantic.warnings.PydanticDeprecatedSince20")
def test_create_shipments(client, buyer, t1, catalog, shipping_choices, recipient):
    response = client.post(
        "/shipments",
        json=_payload(t1, recipient, shipping_choices),
        headers=auth_headers(buyer),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert sorted(row["seller_id"] for row in body["data"]) == sorted(
        [catalog["seller_a"].id, catalog["seller_b"].id]
    )
    assert {row["status"] for row in body["data"]} == {"unpaid"}


def test_repeat_create_returns_same_ids(client, buyer, t1, shipping_choices, recipient):
    headers = auth_headers(buyer)
    first = client.post("/shipments", json=_payload(t1, recipient, shipping_choices), headers=headers)
    second = client.post("/shipments", json=_payload(t1, recipient, shipping_choices), headers=headers)

    assert [row["id"] for row in second.json()["data"]] == [row["id"] for row in first.json()["data"]]


def test_create_with_missing_choice(client, session, buyer, t1, shipping_choices, recipient):
    response = client.post(
        "/shipments",
        json=_payload(t1, recipient, shipping_choices[:1]),
        headers=auth_headers(buyer),
    )

    assert response.status_code == 400
    assert session.exec(select(Shipment)).all() == []


def test_create_rejects_negative_cost(client, buyer, t1, shipping_choices, recipient):
    shipping_choices[0]["cost"] = -1
    response = client.post(
        "/shipments",
        json=_payload(t1, recipient, shipping_choices),
        headers=auth_headers(buyer),
    )
    assert response.status_code == 422


def test_create_for_someone_elses_transaction(client, make_user, t1, shipping_choices, recipient):
    stranger = make_user(first_name="Andi", last_name="Wijaya")
    response = client.post(
        "/shipments",
        json=_payload(t1, recipient, shipping_choices),
        headers=auth_headers(stranger),
    )
    assert response.status_code == 404


def test_list_and_detail(client, session, buyer, t1, catalog, shipping_choices, recipient):
    headers = auth_headers(buyer)
    created = client.post("/shipments", json=_payload(t1, recipient, shipping_choices), headers=headers)
    ids = [row["id"] for row in created.json()["data"]]

    listing = client.get("/shipments", headers=headers).json()
    assert listing["total_items"] == 2
    assert listing["status"] == "all"

    seller_a_user = session.get(User, catalog["seller_a"].user_id)
    seller_view = client.get("/shipments", headers=auth_headers(seller_a_user)).json()
    assert seller_view["total_items"] == 1
    shipment_id = seller_view["results"][0]["id"]
    assert shipment_id in ids

    detail = client.get(f"/shipments/{shipment_id}", headers=auth_headers(seller_a_user))
    assert detail.status_code == 200
    assert [item["name"] for item in detail.json()["items"]] == ["Laskar Pelangi"]

    seller_b_user = session.get(User, catalog["seller_b"].user_id)
    hidden = client.get(f"/shipments/{shipment_id}", headers=auth_headers(seller_b_user))
    assert hidden.status_code == 404


def test_detail_unknown_shipment(client, buyer):
    response = client.get("/shipments/9999", headers=auth_headers(buyer))
    assert response.status_code == 404


def test_shipments_require_login(client):
    assert client.get("/shipments").status_code == 401


def test_paid_order_releases_shipments(client, buyer, t1, shipping_choices, recipient):
    headers = auth_headers(buyer)
    client.post("/shipments", json=_payload(t1, recipient, shipping_choices), headers=headers)
    client.post("/payments/webhook", json=signed_notification("ORDER-T1", "settlement"))

    listing = client.get("/shipments?status=pending", headers=headers).json()
    assert listing["total_items"] == 2


def test_history_and_library(client, buyer, t1):
    headers = auth_headers(buyer)
    client.post("/payments/confirm", json={"order_id": "ORDER-T1", "status": "success"})

    history = client.get("/transactions", headers=headers).json()
    assert history["total_items"] == 1
    assert history["results"][0]["status"] == "paid"
    assert len(history["results"][0]["items"]) == 3

    assert client.get("/transactions?status=pending", headers=headers).json()["total_items"] == 0
    assert client.get("/transactions?status=bogus", headers=headers).json()["total_items"] == 1

    library = client.get("/library", headers=headers).json()
    assert len(library) == 4
    assert all(entry["progress"] == {"last_page": 0, "percent": 0.0} for entry in library)


def test_health_check(client):
    response = client.get("/health/check")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"
