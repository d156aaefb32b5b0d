"""Direct messages between staff."""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import User
from plastics_oms.schemas.message import DirectMessageCreate
from plastics_oms.services import message_service

router: APIRouter = APIRouter()


@router.get("/direct")
def read_direct(
    counterpart_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """Conversation summaries, or one thread when ``counterpart_id`` is given."""
    if counterpart_id is None:
        return message_service.list_conversations(db, current_user)
    return message_service.list_thread(db, current_user, counterpart_id)


@router.post("/direct", status_code=status.HTTP_201_CREATED)
def send_direct(
    payload: DirectMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return message_service.send_message(
        db,
        current_user,
        recipient_id=payload.recipient_id,
        message=payload.message,
        parent_id=payload.parent_id,
    )
