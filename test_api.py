"""HTTP API end to end against an in-memory ledger."""
import pytest
from fastapi.testclient import TestClient

from medshop.api.deps import get_ledger
from medshop.main import app
import rx_ai.prescription_parser as prescription_parser

IMAGE_URI = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ=="


class FakeVisionClient:
    def __init__(self, answer):
        self.answer = answer
        self.calls = 0

    def read_prescription(self, prompt, photo_data_uri):
        self.calls += 1
        return self.answer


@pytest.fixture
def client(stocked_ledger, monkeypatch):
    app.dependency_overrides[get_ledger] = lambda: stocked_ledger
    monkeypatch.setattr(app.state, "ledger", stocked_ledger, raising=False)
    yield TestClient(app)
    app.dependency_overrides.clear()


def medicine_ids(client):
    return {row["name"]: row["id"] for row in client.get("/inventory").json()}


def test_health_reports_warnings(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["warnings"] == []


def test_inventory_listing_and_search(client):
    rows = client.get("/inventory").json()
    assert [r["name"] for r in rows] == ["Paracetamol 500mg", "Cough Syrup"]
    para = rows[0]
    assert para["available_units"] == 100
    assert para["stock_label"] == "10 strips"
    assert para["stock"]["kind"] == "tablet"

    found = client.get("/inventory", params={"search": "cough"}).json()
    assert [r["name"] for r in found] == ["Cough Syrup"]


def test_create_update_delete_medicine(client):
    resp = client.post("/inventory", json={
        "name": "Dolo 650", "location": "Rack A-4", "category": "Tablet",
        "price": "30.00", "strips": 4, "loose_tablets": 7, "tablets_per_strip": 15,
    })
    assert resp.status_code == 201
    created = resp.json()
    assert created["available_units"] == 67
    assert created["stock_label"] == "4 strips + 7 tablets"

    resp = client.patch(f"/inventory/{created['id']}", json={"strips": 1})
    assert resp.json()["available_units"] == 22

    resp = client.delete(f"/inventory/{created['id']}")
    assert resp.status_code == 200
    assert client.get(f"/inventory/{created['id']}").status_code == 404


def test_create_medicine_rejects_bad_price(client):
    resp = client.post("/inventory", json={
        "name": "Freebie", "location": "A", "category": "Syrup", "price": "0", "quantity": 1,
    })
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_MEDICINE"


def test_low_stock(client):
    rows = client.get("/inventory/low-stock", params={"threshold": 6}).json()
    assert [r["name"] for r in rows] == ["Cough Syrup"]
    assert rows[0]["status"] == "Low Stock"


def test_sale_flow(client):
    ids = medicine_ids(client)
    resp = client.post("/sales", json={
        "customer_name": "Rahul",
        "items": [{"medicine_id": ids["Paracetamol 500mg"], "quantity": 95}],
    })
    assert resp.status_code == 201
    sale = resp.json()
    assert sale["total_amount"] == "237.50"
    assert sale["items"][0]["in_catalog"] is True

    para = client.get(f"/inventory/{ids['Paracetamol 500mg']}").json()
    assert para["stock"]["strips"] == 0
    assert para["stock"]["loose_tablets"] == 5

    history = client.get("/sales").json()
    assert [s["id"] for s in history] == [sale["id"]]


def test_oversell_returns_conflict_and_changes_nothing(client):
    ids = medicine_ids(client)
    resp = client.post("/sales", json={
        "customer_name": "Rahul",
        "items": [
            {"medicine_id": ids["Cough Syrup"], "quantity": 3},
            {"medicine_id": ids["Cough Syrup"], "quantity": 3},
        ],
    })
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["code"] == "INSUFFICIENT_STOCK"
    assert detail["shortages"][0]["shortfall"] == 1
    assert client.get(f"/inventory/{ids['Cough Syrup']}").json()["available_units"] == 5
    assert client.get("/sales").json() == []


@pytest.mark.parametrize("body, status, code", [
    ({"customer_name": "Rahul", "items": []}, 400, "EMPTY_BILL"),
    ({"customer_name": "   ", "items": [{"medicine_id": "x", "quantity": 1}]}, 400, "MISSING_CUSTOMER"),
    ({"customer_name": "Rahul", "items": [{"medicine_id": "med-gone", "quantity": 1}]}, 404, "UNKNOWN_MEDICINE"),
])
def test_sale_rejections(client, body, status, code):
    resp = client.post("/sales", json=body)
    assert resp.status_code == status
    assert resp.json()["detail"]["code"] == code


def test_zero_quantity_is_invalid(client):
    ids = medicine_ids(client)
    resp = client.post("/sales", json={
        "customer_name": "Rahul", "items": [{"medicine_id": ids["Cough Syrup"], "quantity": 0}],
    })
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_QUANTITY"


@pytest.mark.parametrize("quantity", ["two", 1.5, True, None, "2"])
def test_non_integer_quantity_is_invalid_and_sells_nothing(client, quantity):
    ids = medicine_ids(client)
    resp = client.post("/sales", json={
        "customer_name": "Rahul", "items": [{"medicine_id": ids["Cough Syrup"], "quantity": quantity}],
    })
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_QUANTITY"
    assert client.get(f"/inventory/{ids['Cough Syrup']}").json()["available_units"] == 5
    assert client.get("/sales").json() == []


def test_quantity_is_checked_before_medicine_ids(client):
    ids = medicine_ids(client)
    resp = client.post("/sales", json={
        "customer_name": "Rahul",
        "items": [
            {"medicine_id": "med-gone", "quantity": 1},
            {"medicine_id": ids["Cough Syrup"], "quantity": 0},
        ],
    })
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_QUANTITY"


def test_history_survives_medicine_deletion_and_exports(client):
    ids = medicine_ids(client)
    client.post("/sales", json={
        "customer_name": "Sharma, Raju",
        "items": [{"medicine_id": ids["Cough Syrup"], "quantity": 2}],
    })
    client.delete(f"/inventory/{ids['Cough Syrup']}")

    [sale] = client.get("/sales").json()
    assert sale["items"][0]["in_catalog"] is False
    assert sale["items"][0]["name"] == "Cough Syrup"

    resp = client.get("/sales/export")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.splitlines()
    assert lines[0].startswith("Sale ID,Date,Customer Name")
    assert '"Sharma, Raju",Cough Syrup,2,12.00,24.00' in lines[1]


def test_clear_history_and_empty_export(client):
    ids = medicine_ids(client)
    client.post("/sales", json={"customer_name": "A", "items": [{"medicine_id": ids["Cough Syrup"], "quantity": 1}]})
    assert client.delete("/sales").json()["cleared"] == 1
    assert client.get("/sales").json() == []
    assert client.get("/sales/export").status_code == 400


def test_prescription_scan_matches_catalog(client, monkeypatch):
    fake = FakeVisionClient('{"medicines": ["Paracetamol 650", "Azithromycin 500"]}')
    monkeypatch.setattr(prescription_parser, "get_vision_client", lambda: fake)

    resp = client.post("/prescriptions/scan", json={"photo_data_uri": IMAGE_URI})
    assert resp.status_code == 200
    body = resp.json()
    assert body["medicines"] == ["Paracetamol 650", "Azithromycin 500"]
    assert [m["name"] for m in body["matches"]["Paracetamol 650"]] == ["Paracetamol 500mg"]
    assert body["matches"]["Azithromycin 500"] == []


def test_prescription_scan_failure_is_empty_not_error(client, monkeypatch):
    fake = FakeVisionClient(None)
    monkeypatch.setattr(prescription_parser, "get_vision_client", lambda: fake)

    resp = client.post("/prescriptions/scan", json={"photo_data_uri": "not-an-image"})
    assert resp.status_code == 200
    assert resp.json() == {"medicines": [], "matches": {}}
    assert fake.calls == 0
