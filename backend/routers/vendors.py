from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_approved_user
from db.database import get_async_session
from db.users import User
from schemas.users import VendorSummary

router = APIRouter()


@router.get("/", response_model=List[VendorSummary])
async def list_vendors(
    user: User = Depends(current_approved_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Approved vendors a dealer can send stock requests to."""
    res = await db.execute(
        select(User)
        .where(User.role == "vendor", User.status == "approved", User.is_active == True)  # noqa: E712
        .order_by(func.lower(func.coalesce(User.business_name, User.name, User.email)).asc())
    )
    return [
        VendorSummary(id=v.id, name=v.display_name, email=v.email, address=v.address, phone=v.phone)
        for v in res.scalars().all()
    ]
