import pytest
from fastapi.testclient import TestClient

from db.database import make_engine
from db.persistence import SlotStorage
from main import create_app

from conftest import SequentialIds, TickingClock


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"


@pytest.fixture
def client(db_url):
    app = create_app(SlotStorage(make_engine(db_url)), ids=SequentialIds(), clock=TickingClock())
    with TestClient(app) as c:
        yield c


def _register(client, signal, partner_id=None):
    return client.post("/inventory/assets", json={
        "itemId": "item-tank-9", "signalNumber": signal, "partnerId": partner_id,
    })


def test_default_catalog_is_served_in_camel_case(client):
    res = client.get("/inventory/items")
    assert res.status_code == 200
    items = {i["id"]: i for i in res.json()}
    assert items["item-tank-9"]["quantity"] == 0
    assert "safetyStock" in items["item-filter-5"]
    assert "lastUpdated" in items["item-filter-5"]


def test_register_then_scan_out(client):
    res = _register(client, "SN-77", "pt-hq-supply")
    assert res.status_code == 201
    body = res.json()
    assert body["asset"]["signalNumber"] == "SN-77"
    assert body["log"]["partnerName"] == "HQ Supply"
    assert client.get("/inventory/items/item-tank-9").json()["quantity"] == 1

    res = client.post("/inventory/transactions/scan", json={
        "itemId": "item-tank-9", "type": "OUT", "signalNumber": " SN-77 ", "partnerId": "pt-plant-a",
    })
    assert res.status_code == 201
    assert res.json()["log"]["signalNumber"] == "SN-77"
    assert res.json()["item"]["quantity"] == 0

    shipped = client.get("/inventory/items/item-tank-9/assets", params={"status": "SHIPPED"}).json()
    assert [a["partnerId"] for a in shipped] == ["pt-plant-a"]
    counts = client.get("/inventory/items/item-tank-9/asset-counts").json()
    assert (counts["available"], counts["shipped"]) == (0, 1)


def test_duplicate_signal_is_a_conflict(client):
    _register(client, "SN-1")
    res = _register(client, "SN-1")
    assert res.status_code == 409
    assert res.json()["detail"]["code"] == "duplicate_signal"


def test_bulk_transaction_and_rejections(client):
    res = client.post("/inventory/transactions", json={
        "itemId": "item-filter-5", "type": "OUT", "quantity": 5, "partnerId": "pt-plant-a",
    })
    assert res.status_code == 201
    assert res.json()["item"]["quantity"] == 35

    res = client.post("/inventory/transactions", json={"itemId": "item-filter-5", "type": "IN", "quantity": 1})
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "partner_required"

    res = client.post("/inventory/transactions", json={
        "itemId": "nope", "type": "IN", "quantity": 1, "partnerId": "pt-plant-a",
    })
    assert res.status_code == 404

    res = client.post("/inventory/transactions", json={"itemId": "item-filter-5", "type": "SIDEWAYS"})
    assert res.status_code == 422


def test_delete_asset_through_plan(client):
    asset_id = _register(client, "SN-9").json()["asset"]["id"]

    plan = client.post(f"/inventory/assets/{asset_id}/delete-plan").json()
    assert plan["action"] == "DELETE_ASSET"
    assert plan["effects"]["availableChange"] == -1
    assert client.get("/inventory/items/item-tank-9").json()["quantity"] == 1

    res = client.post(f"/plans/{plan['token']}/commit")
    assert res.status_code == 200
    assert res.json()["action"] == "DELETE_ASSET"
    assert res.json()["log"]["note"].startswith("Data correction")
    assert client.get("/inventory/items/item-tank-9").json()["quantity"] == 0

    assert client.post(f"/plans/{plan['token']}/commit").status_code == 404


def test_stale_plan_is_a_conflict(client):
    plan = client.post("/inventory/items/item-resin-25/delete-plan").json()
    client.patch("/inventory/items/item-resin-25", json={"price": 1})
    res = client.post(f"/plans/{plan['token']}/commit")
    assert res.status_code == 409
    assert client.get("/inventory/items/item-resin-25").status_code == 200


def test_export_import_plan_and_commit(client):
    _register(client, "SN-5")
    exported = client.get("/backup/export")
    assert exported.status_code == 200
    assert "smartinven_backup_" in exported.headers["content-disposition"]
    blob = exported.content

    plan = client.post("/inventory/items/item-tank-9/delete-plan").json()
    client.post(f"/plans/{plan['token']}/commit")
    assert client.get("/inventory/items/item-tank-9").status_code == 404

    plan = client.post("/backup/import-plan", content=blob).json()
    assert plan["action"] == "IMPORT_SNAPSHOT"
    res = client.post(f"/plans/{plan['token']}/commit")
    assert res.json()["result"]["assets"] == 1
    assert client.get("/inventory/items/item-tank-9").json()["quantity"] == 1


def test_import_plan_rejects_garbage(client):
    res = client.post("/backup/import-plan", content=b'{"items": []}')
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "import_format"


def test_history_and_dashboard(client):
    _register(client, "SN-1")
    client.post("/inventory/transactions", json={
        "itemId": "item-filter-5", "type": "OUT", "quantity": 2, "partnerId": "pt-plant-a",
    })

    logs = client.get("/history/logs").json()
    assert [log["type"] for log in logs] == ["OUT", "IN"]
    assert len(client.get("/history/logs", params={"search": "sediment"}).json()) == 1

    days = client.get("/history/days").json()
    assert days[0]["day"] == "2024-05-01"
    report = client.get("/history/days/2024-05-01/report").json()
    assert {t["itemName"] for t in report["totals"]} >= {"5-micron sediment filter"}

    stats = client.get("/dashboard/stats").json()
    assert stats["totalItems"] == 4
    assert stats["totalQuantity"] == 1 + 38 + 12
    assert client.get("/dashboard/activity").json() == {"IN": 1, "OUT": 1}
    assert "TANK" in client.get("/dashboard/categories").json()


def test_partners_crud(client):
    res = client.post("/partners/", json={"name": "  Depot B ", "role": "BOTH"})
    assert res.status_code == 201
    partner_id = res.json()["id"]
    assert res.json()["name"] == "Depot B"

    assert client.patch(f"/partners/{partner_id}", json={"contact": "010"}).json()["contact"] == "010"
    names = [p["name"] for p in client.get("/partners/").json()]
    assert names == sorted(names, key=str.lower)
    assert client.delete(f"/partners/{partner_id}").status_code == 200
    assert client.delete(f"/partners/{partner_id}").status_code == 404


def test_state_survives_restart(db_url):
    app = create_app(SlotStorage(make_engine(db_url)), ids=SequentialIds(), clock=TickingClock())
    with TestClient(app) as c:
        _register(c, "SN-keep")

    app = create_app(SlotStorage(make_engine(db_url)), ids=SequentialIds(), clock=TickingClock())
    with TestClient(app) as c:
        assets = c.get("/inventory/items/item-tank-9/assets").json()
        assert [a["signalNumber"] for a in assets] == ["SN-keep"]


def test_partner_search_covers_address(client):
    client.post("/partners/", json={"name": "Depot C", "address": "12 Harbor Road"})
    names = [p["name"] for p in client.get("/partners/", params={"search": "harbor"}).json()]
    assert names == ["Depot C"]
