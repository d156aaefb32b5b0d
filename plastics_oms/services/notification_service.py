"""Notification fan-out helpers."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.models import Notification, User


def user_ids_with_roles(db: Session, roles: Iterable[str]) -> list[int]:
    """Return ids of active users holding any of ``roles``."""
    role_set = {role.upper() for role in roles}
    if not role_set:
        return []
    return list(
        db.scalars(
            select(User.id).where(User.role.in_(role_set), User.is_active.is_(True)).order_by(User.id.asc())
        ).all()
    )


def notify_users(
    db: Session,
    user_ids: Iterable[int],
    *,
    title: str,
    body: str,
    type: str,
    ref_id: int | str | None = None,
    exclude_user_id: int | None = None,
) -> list[Notification]:
    """Queue one notification per distinct recipient, skipping the actor."""
    created: list[Notification] = []
    seen: set[int] = set()
    for user_id in user_ids:
        if user_id is None or user_id == exclude_user_id or user_id in seen:
            continue
        seen.add(user_id)
        notification = Notification(
            user_id=user_id,
            title=title,
            body=body,
            type=type,
            ref_id=str(ref_id) if ref_id is not None else None,
        )
        db.add(notification)
        created.append(notification)
    return created


def notify_roles(
    db: Session,
    roles: Iterable[str],
    *,
    title: str,
    body: str,
    type: str,
    ref_id: int | str | None = None,
    exclude_user_id: int | None = None,
) -> list[Notification]:
    return notify_users(
        db,
        user_ids_with_roles(db, roles),
        title=title,
        body=body,
        type=type,
        ref_id=ref_id,
        exclude_user_id=exclude_user_id,
    )
