"""In-app notifications for the signed-in user."""

from fastapi import APIRouter, Depends
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import Notification, User
from plastics_oms.schemas.notification import NotificationMarkRead, NotificationRead

router: APIRouter = APIRouter()

NOTIFICATION_PAGE_SIZE = 50


@router.get("", response_model=list[NotificationRead])
def list_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationRead]:
    rows = db.scalars(
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(NOTIFICATION_PAGE_SIZE)
    ).all()
    return [NotificationRead.model_validate(row) for row in rows]


@router.patch("")
def mark_read(
    payload: NotificationMarkRead,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    """Mark the given notifications read; ids owned by other users are ignored."""
    if payload.ids:
        db.execute(
            update(Notification)
            .where(Notification.id.in_(payload.ids), Notification.user_id == current_user.id)
            .values(read=True)
        )
        db.commit()
    return {"success": True}
