from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user
from db.database import get_async_session
from db.notification import Notification as NotificationModel
from db.users import User
from schemas.notifications import NotificationList, NotificationRead

router = APIRouter()

LATEST_LIMIT = 20


@router.get("/", response_model=NotificationList)
async def list_notifications(
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Latest notifications for the bell, newest first, plus the unread count."""
    res = await db.execute(
        select(NotificationModel)
        .where(NotificationModel.user_id == user.uid)
        .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        .limit(LATEST_LIMIT)
    )
    unread = await db.execute(
        select(func.count(NotificationModel.id)).where(
            NotificationModel.user_id == user.uid,
            NotificationModel.read == False,  # noqa: E712
        )
    )
    return NotificationList(
        unread=int(unread.scalar() or 0),
        items=[NotificationRead(**n.to_schema) for n in res.scalars().all()],
    )


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: str,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(
        select(NotificationModel).where(
            NotificationModel.id == notification_id,
            NotificationModel.user_id == user.uid,
        )
    )
    note = res.scalar_one_or_none()
    if not note:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    note.read = True
    await db.commit()
    await db.refresh(note)
    return NotificationRead(**note.to_schema)


@router.post("/read-all")
async def mark_all_notifications_read(
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(
        update(NotificationModel)
        .where(NotificationModel.user_id == user.uid, NotificationModel.read == False)  # noqa: E712
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return {"ok": True, "updated": int(res.rowcount or 0)}
