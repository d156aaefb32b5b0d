"""User service operations."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.models.user import User, normalize_user_role


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(User.username == username).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def list_active_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).where(User.is_active.is_(True)).order_by(User.full_name, User.id)).all())


def create_user(
    db: Session,
    username: str,
    hashed_password: str,
    role: str,
    full_name: str = "",
    email: str | None = None,
) -> User:
    user = User(
        username=username,
        full_name=full_name or username,
        password_hash=hashed_password,
        role=normalize_user_role(role),
        email=email,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
