import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_approved_user
from core.converters import minor_from_price
from db.database import get_async_session, utcnow
from db.inventory import ROLE_LOCATIONS
from db.inventory.item import InventoryItem as InventoryItemModel
from db.inventory.movement import InventoryMovement as InventoryMovementModel
from db.users import User
from schemas.inventory import (
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryItemWithMovements,
    InventoryMovementOut,
)
from services.inventory import find_item_by_name, free_item_id

logger = logging.getLogger(__name__)

router = APIRouter()


def _location_for(user: User) -> str:
    location = ROLE_LOCATIONS.get(user.role)
    if not location:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only dealers and vendors hold inventory")
    return location


async def _get_owned_item(db: AsyncSession, user: User, item_id: str) -> InventoryItemModel:
    res = await db.execute(
        select(InventoryItemModel).where(
            InventoryItemModel.id == item_id,
            InventoryItemModel.location == _location_for(user),
            InventoryItemModel.owner_id == user.uid,
        )
    )
    model = res.scalar_one_or_none()
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return model


def _movement(
    *,
    user: User,
    item: InventoryItemModel,
    delta: int,
    reason: str,
) -> InventoryMovementModel:
    return InventoryMovementModel(
        location=item.location,
        inventory_item_id=item.id,
        change=int(delta),
        reason=reason,
        source_type="manual",
        source_id=None,
        created_by_user_id=user.uid,
    )


@router.get("/items", response_model=List[InventoryItemOut])
async def list_inventory_items(
    category: Optional[str] = None,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    q = select(InventoryItemModel).where(
        InventoryItemModel.location == _location_for(user),
        InventoryItemModel.owner_id == user.uid,
    )
    if category:
        q = q.where(func.lower(InventoryItemModel.category) == category.strip().lower())
    res = await db.execute(q.order_by(func.lower(InventoryItemModel.name).asc(), InventoryItemModel.id))
    return [InventoryItemOut(**m.to_schema) for m in res.scalars().all()]


@router.post("/items", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    payload: InventoryItemCreate,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    location = _location_for(user)

    if await find_item_by_name(db, user.uid, payload.name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item already exists")

    model = InventoryItemModel(
        id=await free_item_id(db, user.uid, payload.name),
        location=location,
        owner_id=user.uid,
        name=payload.name,
        sku=payload.sku,
        brand=payload.brand,
        category=payload.category or "Uncategorized",
        unit=payload.unit,
        quantity=int(payload.quantity),
        selling_price_minor=minor_from_price(payload.selling_price),
        cost_price_minor=minor_from_price(payload.cost_price if payload.cost_price is not None else payload.selling_price),
        min_stock=payload.min_stock,
        expiry_date=payload.expiry_date,
        image=payload.image,
        description=payload.description or "",
        last_updated=utcnow(),
    )
    db.add(model)
    if model.quantity:
        db.add(_movement(user=user, item=model, delta=model.quantity, reason="MANUAL"))
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent create of the same name.
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item already exists")
    await db.refresh(model)
    return InventoryItemOut(**model.to_schema)


@router.patch("/items/{item_id}", response_model=InventoryItemOut)
async def update_inventory_item(
    item_id: str,
    payload: InventoryItemUpdate,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    model = await _get_owned_item(db, user, item_id)

    try:
        data = payload.model_dump(exclude_unset=True)
        if data.get("name") and await find_item_by_name(db, user.uid, data["name"], exclude_id=model.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Another item already has this name")
        if "quantity" in data and data["quantity"] is not None:
            delta = int(data["quantity"]) - int(model.quantity or 0)
            if delta:
                db.add(_movement(user=user, item=model, delta=delta, reason="ADJUSTMENT"))
            model.quantity = int(data["quantity"])
        if "selling_price" in data:
            model.selling_price_minor = minor_from_price(data["selling_price"])
        if "cost_price" in data:
            model.cost_price_minor = minor_from_price(data["cost_price"])
        for field in ("name", "unit", "sku", "brand", "category", "min_stock", "expiry_date", "image", "description"):
            if field in data:
                if field in ("name", "unit") and data[field] is None:
                    continue
                setattr(model, field, data[field])
        model.last_updated = utcnow()

        await db.commit()
        await db.refresh(model)
        return InventoryItemOut(**model.to_schema)
    except HTTPException:
        raise
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Another item already has this name")
    except Exception:
        await db.rollback()
        logger.exception("update_inventory_item %s failed", item_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update item")


@router.delete("/items/{item_id}")
async def delete_inventory_item(
    item_id: str,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    model = await _get_owned_item(db, user, item_id)
    await db.delete(model)
    await db.commit()
    return {"ok": True, "id": item_id}


@router.get("/items/{item_id}/movements", response_model=InventoryItemWithMovements)
async def list_item_movements(
    item_id: str,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    model = await _get_owned_item(db, user, item_id)
    res = await db.execute(
        select(InventoryMovementModel)
        .where(InventoryMovementModel.inventory_item_id == model.id)
        .order_by(InventoryMovementModel.created_at.desc(), InventoryMovementModel.id)
    )
    return InventoryItemWithMovements(
        item=InventoryItemOut(**model.to_schema),
        movements=[InventoryMovementOut(**m.to_schema) for m in res.scalars().all()],
    )
