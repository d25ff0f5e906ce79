from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.converters import inventory_key, normalize_name
from db.inventory.item import InventoryItem


async def find_item_by_name(
    db: AsyncSession,
    owner_id: str,
    name: str,
    *,
    exclude_id: Optional[str] = None,
    lock: bool = False,
) -> Optional[InventoryItem]:
    """The owner's item whose name normalizes like `name` ("Rice", " rice" and "RICE" match)."""
    q = select(InventoryItem).where(
        InventoryItem.owner_id == owner_id,
        InventoryItem.name_normalized == normalize_name(name),
    )
    if exclude_id is not None:
        q = q.where(InventoryItem.id != exclude_id)
    if lock:
        q = q.with_for_update()
    res = await db.execute(q)
    return res.scalars().first()


async def free_item_id(db: AsyncSession, owner_id: str, name: str) -> str:
    """
    Id for a new item named `name`.

    Normally `inventory_key(owner_id, name)`. A renamed item keeps the id it was
    created with, so when that key is still held the id gets a `_2`, `_3`, ... suffix.
    """
    base = inventory_key(owner_id, name)
    # LIKE treats '_' as a wildcard; the over-match is filtered below.
    res = await db.execute(select(InventoryItem.id).where(InventoryItem.id.like(f"{base}%")))
    taken = set(res.scalars().all())
    if base not in taken:
        return base
    n = 2
    while f"{base}_{n}" in taken:
        n += 1
    return f"{base}_{n}"
