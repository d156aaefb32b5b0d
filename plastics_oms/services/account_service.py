"""Account bootstrap and credential checks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.core.config import settings
from plastics_oms.core.security import get_password_hash, verify_password
from plastics_oms.models import User

logger = logging.getLogger(__name__)


def ensure_default_admin(db: Session) -> bool:
    """Ensure the bootstrap admin user exists and is active.

    Returns:
        bool: True when the admin account existed before this call.
    """
    username = settings.admin_user
    existing_admin = db.scalar(select(User).where(User.username == username).limit(1))
    if existing_admin is not None:
        if not existing_admin.is_active:
            existing_admin.is_active = True
            db.commit()
            logger.info("[BOOTSTRAP] Admin exists but was inactive; account re-activated.")
        return True

    admin = User(
        username=username,
        full_name="Administrator",
        password_hash=get_password_hash(settings.admin_pass),
        role="ADMIN",
        email=None,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    if settings.app_env == "dev":
        logger.warning("[SECURITY] Default admin account created: %s. Change the password immediately.", username)
    return False


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    user = db.scalar(select(User).where(User.username == username.strip()).limit(1))
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user
