from sqlalchemy.ext.asyncio import AsyncSession

from db.notification import Notification


def add_notification(
    db: AsyncSession,
    *,
    user_id: str,
    title: str,
    message: str,
    type: str = "info",
) -> Notification:
    """Append a notification for `user_id` to the current transaction (no flush, no commit)."""
    note = Notification(user_id=str(user_id), title=title, message=message, type=type, read=False)
    db.add(note)
    return note
