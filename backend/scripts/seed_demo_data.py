import asyncio
import sys
from pathlib import Path

"""
Seed demo data (admin, one dealer, one vendor, dealer inventory, a pending stock request).

This script can be run from either:
- backend/: `uv run python scripts/seed_demo_data.py`
- repo root: `uv run python backend/scripts/seed_demo_data.py`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import select

from core.converters import inventory_key, minor_from_price
from db.database import async_session_maker, create_db_and_tables
from db.inventory import LOCATION_DEALER
from db.inventory.item import InventoryItem
from db.stock_request import StockRequest
from db.users import User

from fastapi_users.password import PasswordHelper


password_helper = PasswordHelper()

DEALER_STOCK = [
    # name, category, unit, quantity, price
    ("Rice", "Groceries", "kg", 100, 48.0),
    ("Sunflower Oil", "Groceries", "ltr", 40, 160.0),
    ("Toor Dal", "Groceries", "kg", 60, 120.0),
    ("Phone Charger", "Mobile Accessories", "pcs", 25, 349.0),
]


async def get_or_create_user(session, email: str, password: str, **fields) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        email=email,
        hashed_password=password_helper.hash(password),
        is_active=True,
        is_verified=True,
        **fields,
    )
    session.add(user)
    await session.flush()
    return user


async def get_or_create_dealer_item(session, dealer: User, name: str, category: str, unit: str, qty: int, price: float):
    item_id = inventory_key(dealer.uid, name)
    item = await session.get(InventoryItem, item_id)
    if item:
        return item

    item = InventoryItem(
        id=item_id,
        location=LOCATION_DEALER,
        owner_id=dealer.uid,
        name=name,
        category=category,
        unit=unit,
        quantity=qty,
        selling_price_minor=minor_from_price(price),
        cost_price_minor=minor_from_price(price),
        description="",
    )
    session.add(item)
    await session.flush()
    return item


async def main() -> None:
    await create_db_and_tables()

    async with async_session_maker() as session:
        await get_or_create_user(
            session, "admin@example.com", "admin123",
            role="admin", status="approved", is_superuser=True, name="Admin",
        )
        dealer = await get_or_create_user(
            session, "dealer@example.com", "dealer123",
            role="dealer", status="approved", business_name="Sharma Distributors",
        )
        vendor = await get_or_create_user(
            session, "vendor@example.com", "vendor123",
            role="vendor", status="approved", business_name="Corner Kirana",
        )

        items = []
        for name, category, unit, qty, price in DEALER_STOCK:
            items.append(await get_or_create_dealer_item(session, dealer, name, category, unit, qty, price))

        existing = await session.execute(
            select(StockRequest).where(StockRequest.dealer_id == dealer.uid, StockRequest.vendor_id == vendor.uid)
        )
        if not existing.scalars().first():
            lines = [
                {"name": items[0].name, "qty": 20, "doc_id": items[0].id, "price": 48.0, "unit": "kg"},
                {"name": items[1].name, "qty": 5, "doc_id": items[1].id, "price": 160.0, "unit": "ltr"},
            ]
            session.add(
                StockRequest(
                    vendor_id=vendor.uid,
                    dealer_id=dealer.uid,
                    dealer_name=dealer.display_name,
                    items=lines,
                    total_items=sum(line["qty"] for line in lines),
                )
            )

        await session.commit()
        print(f"Seeded dealer={dealer.id} vendor={vendor.id} items={len(items)}")


if __name__ == "__main__":
    asyncio.run(main())
