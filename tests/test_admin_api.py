import pytest
from sqlalchemy import func, select

from core.config import settings
from db.users import User


async def _registered(session_maker, email):
    async with session_maker() as s:
        res = await s.execute(select(User).where(func.lower(User.email) == email.lower()))
        return res.scalar_one()


@pytest.mark.parametrize(
    "role, expected_status",
    [("customer", "approved"), ("vendor", "pending"), ("dealer", "pending")],
)
async def test_register_sets_initial_status(client, session_maker, role, expected_status):
    email = f"{role}@kirana.in"
    resp = await client.post(
        "/auth/register",
        json={"email": email, "password": "s3cret-pass", "role": role, "business_name": " Shop "},
    )

    assert resp.status_code == 201
    user = await _registered(session_maker, email)
    assert user.role == role
    assert user.status == expected_status
    assert user.business_name == "Shop"
    assert user.is_superuser is False


async def test_register_cannot_claim_admin_role(client):
    resp = await client.post(
        "/auth/register",
        json={"email": "sneaky@kirana.in", "password": "s3cret-pass", "role": "admin"},
    )
    assert resp.status_code == 422


async def test_configured_admin_email_is_promoted(client, session_maker, monkeypatch):
    monkeypatch.setattr(settings, "admin_email", "owner@kirana.in")

    resp = await client.post("/auth/register", json={"email": "Owner@kirana.in", "password": "s3cret-pass"})

    assert resp.status_code == 201
    user = await _registered(session_maker, "owner@kirana.in")
    assert user.role == "admin"
    assert user.status == "approved"
    assert user.is_superuser is True


async def test_admin_approves_pending_vendor(client, auth, make_user, snapshot):
    pending = await make_user(role="vendor", status="pending")
    await make_user(role="dealer", status="approved")
    auth["user"] = await make_user(role="admin", is_superuser=True)

    listed = await client.get("/admin/users")
    assert [u["id"] for u in listed.json()] == [pending.uid]

    resp = await client.post(f"/admin/users/{pending.uid}/approve")

    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    notes = await snapshot.notifications(pending)
    assert [(n.title, n.type) for n in notes] == [("Account approved", "account")]
    assert (await client.get("/admin/users")).json() == []


async def test_admin_rejects_user(client, auth, make_user, snapshot):
    pending = await make_user(role="dealer", status="pending")
    auth["user"] = await make_user(role="admin", is_superuser=True)

    resp = await client.post(f"/admin/users/{pending.uid}/reject")

    assert resp.json()["status"] == "rejected"
    rejected = await client.get("/admin/users", params={"status": "rejected"})
    assert [u["id"] for u in rejected.json()] == [pending.uid]
    assert [n.title for n in await snapshot.notifications(pending)] == ["Account rejected"]


async def test_admin_routes_need_superuser(client, auth, make_user):
    pending = await make_user(role="vendor", status="pending")
    auth["user"] = await make_user(role="dealer")

    assert (await client.get("/admin/users")).status_code == 403
    assert (await client.post(f"/admin/users/{pending.uid}/approve")).status_code == 403


async def test_unknown_user_is_404(client, auth, make_user):
    auth["user"] = await make_user(role="admin", is_superuser=True)
    resp = await client.post("/admin/users/00000000-0000-0000-0000-000000000000/approve")
    assert resp.status_code == 404


async def test_vendor_directory_lists_approved_vendors(client, auth, make_user):
    await make_user(role="vendor", business_name="Zeta Stores")
    await make_user(role="vendor", business_name="Alpha Mart", phone="98450 00000")
    await make_user(role="vendor", status="pending", business_name="Pending Shop")
    await make_user(role="vendor", business_name="Closed Shop", is_active=False)
    auth["user"] = await make_user(role="dealer")

    resp = await client.get("/vendors/")

    assert resp.status_code == 200
    assert [v["name"] for v in resp.json()] == ["Alpha Mart", "Zeta Stores"]
    assert resp.json()[0]["phone"] == "98450 00000"
