import pytest

from core.converters import inventory_key


@pytest.fixture
async def vendor(make_user, auth):
    user = await make_user(role="vendor")
    auth["user"] = user
    return user


async def test_create_and_list_items(client, vendor, snapshot):
    resp = await client.post(
        "/inventory/items",
        json={"name": "Toor Dal", "unit": "kg", "quantity": 12, "selling_price": 120.5, "category": "Groceries"},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["id"] == inventory_key(vendor.uid, "Toor Dal")
    assert body["location"] == "VENDOR"
    assert body["selling_price"] == 120.5
    assert body["cost_price"] == 120.5

    await client.post("/inventory/items", json={"name": "atta", "quantity": 0})
    listed = await client.get("/inventory/items")
    assert [i["name"] for i in listed.json()] == ["atta", "Toor Dal"]
    assert listed.json()[0]["category"] == "Uncategorized"

    groceries = await client.get("/inventory/items", params={"category": "groceries"})
    assert [i["name"] for i in groceries.json()] == ["Toor Dal"]

    movements = await snapshot.movements()
    assert [(m.reason, m.change) for m in movements] == [("MANUAL", 12)]


async def test_duplicate_name_conflicts(client, vendor):
    assert (await client.post("/inventory/items", json={"name": "Rice"})).status_code == 201
    resp = await client.post("/inventory/items", json={"name": " rice"})
    assert resp.status_code == 409


async def test_negative_quantity_rejected(client, vendor):
    resp = await client.post("/inventory/items", json={"name": "Rice", "quantity": -1})
    assert resp.status_code == 422


async def test_update_records_adjustment(client, vendor, make_item):
    item = await make_item(vendor, "Sugar", 10, price=42.0)

    resp = await client.patch(f"/inventory/items/{item.id}", json={"quantity": 7, "selling_price": 44.0})
    assert resp.status_code == 200
    assert resp.json()["quantity"] == 7
    assert resp.json()["selling_price"] == 44.0

    history = await client.get(f"/inventory/items/{item.id}/movements")
    assert history.status_code == 200
    assert [(m["reason"], m["change"]) for m in history.json()["movements"]] == [("ADJUSTMENT", -3)]


async def test_items_of_others_are_hidden(client, auth, vendor, make_user, make_item):
    dealer = await make_user(role="dealer")
    theirs = await make_item(dealer, "Rice", 100)

    assert (await client.get("/inventory/items")).json() == []
    assert (await client.patch(f"/inventory/items/{theirs.id}", json={"quantity": 1})).status_code == 404
    assert (await client.delete(f"/inventory/items/{theirs.id}")).status_code == 404

    auth["user"] = dealer
    assert [i["id"] for i in (await client.get("/inventory/items")).json()] == [theirs.id]


async def test_delete_item(client, vendor, make_item, snapshot):
    item = await make_item(vendor, "Salt", 3)

    resp = await client.delete(f"/inventory/items/{item.id}")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "id": item.id}
    assert await snapshot.item(item.id) is None


async def test_customers_hold_no_inventory(client, auth, make_user):
    auth["user"] = await make_user(role="customer")
    assert (await client.get("/inventory/items")).status_code == 403


async def test_rename_onto_an_existing_name_conflicts(client, vendor, make_item, snapshot):
    rice = await make_item(vendor, "Rice", 5)
    await make_item(vendor, "Wheat", 8)

    resp = await client.patch(f"/inventory/items/{rice.id}", json={"name": " wheat"})

    assert resp.status_code == 409
    assert sorted(i.name for i in await snapshot.items(vendor)) == ["Rice", "Wheat"]


async def test_renamed_items_free_their_old_name(client, vendor, make_item):
    rice = await make_item(vendor, "Rice", 5)
    assert (await client.patch(f"/inventory/items/{rice.id}", json={"name": "Wheat"})).status_code == 200
    # renaming to a different spelling of its own name is allowed
    assert (await client.patch(f"/inventory/items/{rice.id}", json={"name": "WHEAT"})).status_code == 200

    resp = await client.post("/inventory/items", json={"name": "Rice", "quantity": 2})

    assert resp.status_code == 201
    assert resp.json()["id"] == inventory_key(vendor.uid, "Rice") + "_2"
    names = [i["name"] for i in (await client.get("/inventory/items")).json()]
    assert names == ["Rice", "WHEAT"]


async def test_concurrent_create_of_same_name_conflicts(client, vendor, make_item, snapshot, monkeypatch):
    await make_item(vendor, "Rice", 5)

    async def nothing_found(*args, **kwargs):
        return None

    # the name check passes as if the other create had not committed yet
    monkeypatch.setattr("routers.inventory.find_item_by_name", nothing_found)

    resp = await client.post("/inventory/items", json={"name": "rice", "quantity": 3})

    assert resp.status_code == 409
    assert [(i.name, i.quantity) for i in await snapshot.items(vendor)] == [("Rice", 5)]
    assert await snapshot.movements() == []


async def test_failed_update_is_logged_with_traceback(client, vendor, make_item, snapshot, monkeypatch, caplog):
    item = await make_item(vendor, "Salt", 3)

    def broken_clock():
        raise RuntimeError("clock unavailable")

    monkeypatch.setattr("routers.inventory.utcnow", broken_clock)

    with caplog.at_level("ERROR", logger="routers.inventory"):
        resp = await client.patch(f"/inventory/items/{item.id}", json={"quantity": 9})

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to update item"
    assert (await snapshot.item(item.id)).quantity == 3
    record = next(r for r in caplog.records if r.name == "routers.inventory")
    assert record.exc_info is not None
    assert isinstance(record.exc_info[1], RuntimeError)
