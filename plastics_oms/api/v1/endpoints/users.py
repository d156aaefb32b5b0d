"""User directory endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user, get_password_hash
from plastics_oms.db.session import get_db
from plastics_oms.models.user import User
from plastics_oms.schemas.user import UserCreate, UserRead
from plastics_oms.services.audit_service import log_action
from plastics_oms.services.rbac import ensure_role
from plastics_oms.services.user_service import create_user, get_user_by_username, list_active_users

router: APIRouter = APIRouter()


@router.get("", response_model=list[UserRead], summary="List active users")
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[UserRead]:
    """Directory used for task assignment and direct messages."""
    return [UserRead.model_validate(user) for user in list_active_users(db)]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    ensure_role(current_user, {"ADMIN"})
    if get_user_by_username(db, payload.username.strip()) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    user = create_user(
        db=db,
        username=payload.username.strip(),
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        full_name=payload.full_name.strip(),
        email=payload.email,
    )
    log_action(
        db,
        actor=current_user,
        action="INSERT",
        table_name="users",
        record_id=user.id,
        new_data={"username": user.username, "full_name": user.full_name, "role": user.role},
    )
    db.commit()
    return UserRead.model_validate(user)
