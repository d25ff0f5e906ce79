import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_superuser
from db.database import get_async_session
from db.users import User
from schemas.users import UserRead
from services.notifications import add_notification

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users", response_model=List[UserRead])
async def list_users(
    status_filter: Optional[str] = Query("pending", alias="status", pattern="^(pending|approved|rejected)$"),
    admin: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
):
    q = select(User).order_by(User.created_at.desc())
    if status_filter:
        q = q.where(User.status == status_filter)
    res = await db.execute(q)
    return [UserRead.model_validate(u, from_attributes=True) for u in res.scalars().all()]


async def _set_user_status(db: AsyncSession, admin: User, user_id: UUID, new_status: str) -> User:
    res = await db.execute(select(User).where(User.id == user_id))
    user = res.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.status = new_status
    add_notification(
        db,
        user_id=user.uid,
        title="Account approved" if new_status == "approved" else "Account rejected",
        message=(
            "Your account has been approved. You can now start trading."
            if new_status == "approved"
            else "Your account application was rejected."
        ),
        type="account",
    )
    await db.commit()
    await db.refresh(user)
    logger.info("admin %s set user %s status=%s", admin.id, user.id, new_status)
    return user


@router.post("/users/{user_id}/approve", response_model=UserRead)
async def approve_user(
    user_id: UUID,
    admin: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
):
    user = await _set_user_status(db, admin, user_id, "approved")
    return UserRead.model_validate(user, from_attributes=True)


@router.post("/users/{user_id}/reject", response_model=UserRead)
async def reject_user(
    user_id: UUID,
    admin: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
):
    user = await _set_user_status(db, admin, user_id, "rejected")
    return UserRead.model_validate(user, from_attributes=True)
