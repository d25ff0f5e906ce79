import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_approved_user
from core.exceptions import (
    AuthorizationError,
    ConcurrentUpdateError,
    InvalidTransitionError,
    NotFoundError,
    TransferFailedError,
)
from db.database import get_async_session
from db.stock_request import STATUS_PENDING, StockRequest as StockRequestModel
from db.users import User
from schemas.stock_requests import (
    StockRequestCreate,
    StockRequestRead,
    StockRequestStatusResult,
    StockRequestStatusUpdate,
)
from services.stock_transfer import update_request_status

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_role(user: User, role: str) -> None:
    if user.role != role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Only a {role} can do this")


@router.post("/", response_model=StockRequestRead, status_code=status.HTTP_201_CREATED)
async def create_stock_request(
    payload: StockRequestCreate,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Dealer asks a vendor to take over stock."""
    _require_role(user, "dealer")

    res = await db.execute(select(User).where(User.id == payload.vendor_id))
    vendor = res.scalar_one_or_none()
    if not vendor or vendor.role != "vendor":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")

    items = [line.model_dump() for line in payload.items]
    model = StockRequestModel(
        vendor_id=vendor.uid,
        dealer_id=user.uid,
        dealer_name=user.display_name,
        items=items,
        total_items=sum(int(i["qty"]) for i in items),
        status=STATUS_PENDING,
    )
    db.add(model)
    await db.commit()
    await db.refresh(model)
    logger.info("stock request %s created by dealer %s for vendor %s", model.id, user.uid, vendor.uid)
    return StockRequestRead(**model.to_schema)


@router.get("/incoming", response_model=List[StockRequestRead])
async def list_incoming_requests(
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Requests addressed to the calling vendor, newest first."""
    _require_role(user, "vendor")
    res = await db.execute(
        select(StockRequestModel)
        .where(StockRequestModel.vendor_id == user.uid)
        .order_by(StockRequestModel.created_at.desc())
    )
    return [StockRequestRead(**r.to_schema) for r in res.scalars().all()]


@router.get("/outgoing", response_model=List[StockRequestRead])
async def list_outgoing_requests(
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Requests raised by the calling dealer, newest first."""
    _require_role(user, "dealer")
    res = await db.execute(
        select(StockRequestModel)
        .where(StockRequestModel.dealer_id == user.uid)
        .order_by(StockRequestModel.created_at.desc())
    )
    return [StockRequestRead(**r.to_schema) for r in res.scalars().all()]


@router.get("/{request_id}", response_model=StockRequestRead)
async def get_stock_request(
    request_id: str,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(select(StockRequestModel).where(StockRequestModel.id == request_id))
    model = res.scalar_one_or_none()
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if user.uid not in (model.vendor_id, model.dealer_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed")
    return StockRequestRead(**model.to_schema)


@router.patch("/{request_id}/status", response_model=StockRequestStatusResult)
async def set_stock_request_status(
    request_id: str,
    payload: StockRequestStatusUpdate,
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Vendor accepts or rejects a pending request.

    - accepted: stock moves from the dealer's inventory to the vendor's, the dealer is notified.
    - rejected: only the request status changes.
    """
    try:
        return await update_request_status(db, request_id=request_id, status=payload.status, caller=user)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    except AuthorizationError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized: Only the vendor can update this request",
        )
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ConcurrentUpdateError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Request was updated concurrently, please retry",
        )
    except TransferFailedError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update request status",
        )
