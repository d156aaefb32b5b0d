"""Audit trail endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import User
from plastics_oms.schemas.notification import AuditLogRead
from plastics_oms.services.audit_service import list_audit_logs
from plastics_oms.services.rbac import can_view_audit_trail, ensure_permission

router: APIRouter = APIRouter()


@router.get("", response_model=list[AuditLogRead])
def list_logs(
    table: str | None = None,
    action: str | None = None,
    user_id: int | None = None,
    limit: int = 200,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[AuditLogRead]:
    ensure_permission(can_view_audit_trail(current_user))
    rows = list_audit_logs(
        db,
        table_name=table,
        action=action.upper() if action else None,
        user_id=user_id,
        limit=max(1, min(500, limit)),
    )
    return [AuditLogRead.model_validate(row) for row in rows]
