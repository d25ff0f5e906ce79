"""
Stock transfer for stock requests.

Accepting a request moves every requested line out of the dealer's inventory
and into the vendor's inventory inside one transaction, in two phases:

- read phase: the request row, then every dealer and vendor item the lines
  resolve to (rows locked with FOR UPDATE). The quantities needed later are
  copied into a TransferPlan.
- write phase: status compare-and-swap, quantity updates/inserts, movement
  rows, the dealer notification.

Nothing is read after the first write. Rejecting a request only runs the
status compare-and-swap.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.converters import minor_from_price, normalize_name
from core.exceptions import (
    AuthorizationError,
    ConcurrentUpdateError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    TransferFailedError,
)
from db.database import utcnow
from db.inventory import LOCATION_DEALER, LOCATION_VENDOR
from db.inventory.item import InventoryItem
from db.inventory.movement import InventoryMovement
from db.stock_request import STATUS_ACCEPTED, STATUS_PENDING, TERMINAL_STATUSES, StockRequest
from db.users import User
from services.inventory import find_item_by_name, free_item_id
from services.notifications import add_notification

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "pcs"
DEFAULT_CATEGORY = "Returns"


@dataclass
class _DealerDebit:
    item_id: str
    name: str
    on_hand: int
    quantity: int = 0


@dataclass
class _VendorCredit:
    target_id: str
    name: str
    # None when the vendor has no such item yet and it must be created
    on_hand: Optional[int]
    seed: dict = field(default_factory=dict)
    quantity: int = 0


@dataclass
class TransferPlan:
    request_id: str
    dealer_id: str
    vendor_id: str
    debits: Dict[str, _DealerDebit] = field(default_factory=dict)
    credits: Dict[str, _VendorCredit] = field(default_factory=dict)

    @property
    def total_quantity(self) -> int:
        return sum(d.quantity for d in self.debits.values())


# --- read phase -------------------------------------------------------------


async def _load_request(db: AsyncSession, request_id: str) -> Optional[StockRequest]:
    res = await db.execute(
        select(StockRequest)
        .where(StockRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def _first_by_name(db: AsyncSession, location: str, owner_id: str, name: str) -> Optional[InventoryItem]:
    res = await db.execute(
        select(InventoryItem)
        .where(
            InventoryItem.location == location,
            InventoryItem.owner_id == owner_id,
            InventoryItem.name == name,
        )
        .order_by(InventoryItem.id)
        .limit(1)
        .with_for_update()
    )
    return res.scalars().first()


async def _find_dealer_item(db: AsyncSession, dealer_id: str, line: dict) -> Optional[InventoryItem]:
    name = line["name"]
    doc_id = line.get("doc_id") or line.get("docId")
    if doc_id:
        res = await db.execute(
            select(InventoryItem)
            .where(
                InventoryItem.id == doc_id,
                InventoryItem.location == LOCATION_DEALER,
                InventoryItem.owner_id == dealer_id,
            )
            .with_for_update()
        )
        item = res.scalar_one_or_none()
        if item is not None:
            return item
        logger.warning(
            "stock request line %r: doc_id=%r not in dealer %s inventory, resolved by name",
            name,
            doc_id,
            dealer_id,
        )

    return await _first_by_name(db, LOCATION_DEALER, dealer_id, name)


async def _find_vendor_item(db: AsyncSession, vendor_id: str, name: str) -> Optional[InventoryItem]:
    item = await _first_by_name(db, LOCATION_VENDOR, vendor_id, name)
    if item is not None:
        return item
    # Same item under a differently written name ("Rice" / "rice "). Matched on the
    # stored name, not the id: a renamed item keeps the id it was created with.
    return await find_item_by_name(db, vendor_id, name, lock=True)


def _seed_fields(line: dict, dealer_item: InventoryItem) -> dict:
    """Descriptive fields for a new vendor item: request line, then dealer item, then defaults."""

    def pick(key: str, dealer_value, default=None):
        value = line.get(key)
        if value not in (None, ""):
            return value
        if dealer_value not in (None, ""):
            return dealer_value
        return default

    price_minor = minor_from_price(line.get("price"))
    if price_minor is None:
        price_minor = dealer_item.selling_price_minor or 0

    return {
        "selling_price_minor": price_minor,
        "cost_price_minor": price_minor,
        "image": pick("image", dealer_item.image),
        "unit": pick("unit", dealer_item.unit, DEFAULT_UNIT),
        "category": pick("category", dealer_item.category, DEFAULT_CATEGORY),
        "description": pick("description", dealer_item.description, ""),
        "sku": dealer_item.sku,
        "brand": dealer_item.brand,
    }


async def plan_transfer(db: AsyncSession, request: StockRequest) -> TransferPlan:
    """Resolve and lock every item an accepted request touches. Issues reads only."""
    plan = TransferPlan(request_id=request.id, dealer_id=request.dealer_id, vendor_id=request.vendor_id)

    lines = []
    for line in request.items or []:
        name = (line.get("name") or "").strip()
        qty = int(line.get("qty") or 0)
        if not name or qty <= 0:
            raise TransferFailedError(f"Invalid request line: {line!r}")
        lines.append({**line, "name": name})
    # Rows are locked in name order so concurrent accepts over the same items cannot deadlock.
    lines.sort(key=lambda ln: (normalize_name(ln["name"]), ln["name"], ln.get("doc_id") or ln.get("docId") or ""))

    for line in lines:
        name = line["name"]
        qty = int(line["qty"])

        dealer_item = await _find_dealer_item(db, plan.dealer_id, line)
        if dealer_item is None:
            raise TransferFailedError(f"Dealer has no inventory item named '{name}'")
        debit = plan.debits.get(dealer_item.id)
        if debit is None:
            debit = _DealerDebit(item_id=dealer_item.id, name=dealer_item.name, on_hand=int(dealer_item.quantity or 0))
            plan.debits[dealer_item.id] = debit
        debit.quantity += qty

        vendor_item = await _find_vendor_item(db, plan.vendor_id, name)
        if vendor_item is not None:
            target_id = vendor_item.id
        else:
            target_id = await free_item_id(db, plan.vendor_id, name)
        credit = plan.credits.get(target_id)
        if credit is None:
            credit = _VendorCredit(
                target_id=target_id,
                name=vendor_item.name if vendor_item is not None else name,
                on_hand=int(vendor_item.quantity or 0) if vendor_item is not None else None,
                seed={} if vendor_item is not None else _seed_fields(line, dealer_item),
            )
            plan.credits[target_id] = credit
        credit.quantity += qty

    if not settings.allow_negative_dealer_stock:
        for debit in plan.debits.values():
            if debit.on_hand < debit.quantity:
                raise InsufficientStockError(
                    f"Not enough '{debit.name}' in dealer stock. Available={debit.on_hand} requested={debit.quantity}"
                )

    return plan


# --- write phase ------------------------------------------------------------


async def _claim_request(db: AsyncSession, request_id: str, status: str, now: datetime) -> None:
    """Compare-and-swap `pending -> status`; the first write of the transaction."""
    res = await db.execute(
        update(StockRequest)
        .where(StockRequest.id == request_id, StockRequest.status == STATUS_PENDING)
        .values(status=status, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise ConcurrentUpdateError(f"Request {request_id} is no longer pending")


async def _set_item_quantity(db: AsyncSession, item_id: str, quantity: int, now: datetime) -> None:
    await db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item_id)
        .values(quantity=quantity, last_updated=now)
        .execution_options(synchronize_session=False)
    )


async def _insert_item(db: AsyncSession, values: dict) -> None:
    await db.execute(insert(InventoryItem).values(**values))


def _record_movement(
    db: AsyncSession,
    *,
    location: str,
    item_id: str,
    change: int,
    reason: str,
    request_id: str,
    user_id: str,
) -> None:
    db.add(
        InventoryMovement(
            location=location,
            inventory_item_id=item_id,
            change=change,
            reason=reason,
            source_type="stock_request",
            source_id=request_id,
            created_by_user_id=user_id,
        )
    )


async def apply_transfer(db: AsyncSession, plan: TransferPlan, *, vendor: User, now: datetime) -> None:
    """Write the planned quantities. Uses only values captured by `plan_transfer`."""
    for debit in plan.debits.values():
        await _set_item_quantity(db, debit.item_id, debit.on_hand - debit.quantity, now)
        _record_movement(
            db,
            location=LOCATION_DEALER,
            item_id=debit.item_id,
            change=-debit.quantity,
            reason="TRANSFER_OUT",
            request_id=plan.request_id,
            user_id=vendor.uid,
        )

    for credit in plan.credits.values():
        if credit.on_hand is not None:
            # Existing vendor item keeps its own price/description/category.
            await _set_item_quantity(db, credit.target_id, credit.on_hand + credit.quantity, now)
        else:
            await _insert_item(
                db,
                {
                    "id": credit.target_id,
                    "location": LOCATION_VENDOR,
                    "owner_id": plan.vendor_id,
                    "name": credit.name,
                    "name_normalized": normalize_name(credit.name),
                    "quantity": credit.quantity,
                    "last_updated": now,
                    **credit.seed,
                },
            )
        _record_movement(
            db,
            location=LOCATION_VENDOR,
            item_id=credit.target_id,
            change=credit.quantity,
            reason="TRANSFER_IN",
            request_id=plan.request_id,
            user_id=vendor.uid,
        )

    add_notification(
        db,
        user_id=plan.dealer_id,
        title="Stock Request Accepted",
        message=(
            f"{vendor.display_name} accepted your stock request. "
            f"{plan.total_quantity} item(s) transferred to their inventory."
        ),
        type="stock_request",
    )


# --- entry point ------------------------------------------------------------


def _result(request_id: str, status: str, applied: bool) -> dict:
    return {"success": True, "request_id": request_id, "status": status, "applied": applied}


async def update_request_status(db: AsyncSession, *, request_id: str, status: str, caller: User) -> dict:
    """
    Move a stock request from `pending` to `accepted` or `rejected`.

    - `accepted` transfers every line from dealer to vendor inventory and notifies the dealer.
    - `rejected` only updates the request.
    - Re-applying the status the request already has is a no-op (`applied` is False).

    Raises NotFoundError, AuthorizationError, InvalidTransitionError or TransferFailedError.
    On any error the transaction is rolled back and nothing is applied.
    """
    if status not in TERMINAL_STATUSES:
        raise ValueError(f"status must be one of {TERMINAL_STATUSES}, got {status!r}")

    try:
        request = await _load_request(db, request_id)
        if request is None:
            raise NotFoundError("Request not found")
        if request.vendor_id != caller.uid:
            raise AuthorizationError("Only the vendor can update this request")

        if request.status == status:
            await db.rollback()
            logger.info("stock request %s already %s; nothing to do", request_id, status)
            return _result(request_id, status, applied=False)
        if request.status != STATUS_PENDING:
            raise InvalidTransitionError(f"Request is already {request.status}")

        plan = await plan_transfer(db, request) if status == STATUS_ACCEPTED else None

        now = utcnow()
        await _claim_request(db, request_id, status, now)
        if plan is not None:
            await apply_transfer(db, plan, vendor=caller, now=now)

        await db.flush()
        await db.commit()
    except (NotFoundError, AuthorizationError, InvalidTransitionError):
        await db.rollback()
        raise
    except TransferFailedError as e:
        await db.rollback()
        logger.warning("stock request %s: transfer aborted: %s", request_id, e)
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("stock request %s: transfer failed", request_id)
        raise TransferFailedError("Failed to update request status") from e

    if plan is not None:
        logger.info(
            "stock request %s accepted: %d unit(s) moved from dealer %s to vendor %s",
            request_id,
            plan.total_quantity,
            plan.dealer_id,
            plan.vendor_id,
        )
    else:
        logger.info("stock request %s %s", request_id, status)
    return _result(request_id, status, applied=True)
