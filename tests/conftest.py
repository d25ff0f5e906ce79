import os
import uuid

# The app's global engine is never connected in tests; every test gets its own database.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest
from fastapi import HTTPException, status
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from core.auth import current_active_superuser, current_active_user
from core.converters import inventory_key, minor_from_price
from db.database import Base, get_async_session
from db.inventory import ROLE_LOCATIONS
from db.inventory.item import InventoryItem
from db.inventory.movement import InventoryMovement
from db.notification import Notification
from db.stock_request import StockRequest
from db.users import User
from main import app


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(session_maker):
    async def _make(role: str = "vendor", status: str = "approved", **fields) -> User:
        user = User(
            id=uuid.uuid4(),
            email=fields.pop("email", f"{role}-{uuid.uuid4().hex[:8]}@kirana.in"),
            hashed_password="not-a-real-hash",
            is_active=fields.pop("is_active", True),
            is_superuser=fields.pop("is_superuser", False),
            is_verified=True,
            role=role,
            status=status,
            **fields,
        )
        async with session_maker() as s:
            s.add(user)
            await s.commit()
        return user

    return _make


@pytest.fixture
def make_item(session_maker):
    async def _make(owner: User, name: str, quantity: int, **fields) -> InventoryItem:
        price = fields.pop("price", None)
        item = InventoryItem(
            id=fields.pop("id", inventory_key(owner.uid, name)),
            location=fields.pop("location", ROLE_LOCATIONS[owner.role]),
            owner_id=owner.uid,
            name=name,
            quantity=quantity,
            unit=fields.pop("unit", "pcs"),
            selling_price_minor=minor_from_price(price),
            **fields,
        )
        async with session_maker() as s:
            s.add(item)
            await s.commit()
        return item

    return _make


@pytest.fixture
def make_request(session_maker):
    async def _make(dealer: User, vendor: User, lines: list, **fields) -> StockRequest:
        request = StockRequest(
            vendor_id=vendor.uid,
            dealer_id=dealer.uid,
            dealer_name=dealer.display_name,
            items=lines,
            total_items=sum(int(line["qty"]) for line in lines),
            **fields,
        )
        async with session_maker() as s:
            s.add(request)
            await s.commit()
        return request

    return _make


class Snapshot:
    """Fresh-session reads of persisted state."""

    def __init__(self, session_maker):
        self._session_maker = session_maker

    async def item(self, item_id: str):
        async with self._session_maker() as s:
            return await s.get(InventoryItem, item_id)

    async def items(self, owner: User):
        async with self._session_maker() as s:
            res = await s.execute(
                select(InventoryItem).where(InventoryItem.owner_id == owner.uid).order_by(InventoryItem.id)
            )
            return res.scalars().all()

    async def request(self, request_id: str):
        async with self._session_maker() as s:
            return await s.get(StockRequest, request_id)

    async def notifications(self, user: User):
        async with self._session_maker() as s:
            res = await s.execute(select(Notification).where(Notification.user_id == user.uid))
            return res.scalars().all()

    async def movements(self, source_id: str = None):
        async with self._session_maker() as s:
            q = select(InventoryMovement)
            if source_id is not None:
                q = q.where(InventoryMovement.source_id == source_id)
            res = await s.execute(q)
            return res.scalars().all()


@pytest.fixture
def snapshot(session_maker):
    return Snapshot(session_maker)


@pytest.fixture
def auth():
    """Holds the user the API sees as the caller; `auth["user"] = some_user` to log in."""
    return {"user": None}


@pytest.fixture
async def client(session_maker, auth):
    async def _session():
        async with session_maker() as s:
            yield s

    async def _current_user():
        if auth["user"] is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
        return auth["user"]

    async def _current_superuser():
        user = await _current_user()
        if not user.is_superuser:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    app.dependency_overrides[get_async_session] = _session
    app.dependency_overrides[current_active_user] = _current_user
    app.dependency_overrides[current_active_superuser] = _current_superuser
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
