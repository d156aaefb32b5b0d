"""Password hashing and bearer tokens for factory staff accounts.

A token records the user id and the role it was issued for. Moving someone to
another department invalidates their open sessions, and a deactivated account
is refused with 403 even while its token has not expired.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from plastics_oms.core.config import settings
from plastics_oms.db.session import get_db
from plastics_oms.models.user import User
from plastics_oms.services.user_service import get_user_by_id

pwd_context: CryptContext = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme: HTTPBearer = HTTPBearer(auto_error=True)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user: User) -> str:
    """Issue a token bound to the user's id and current role."""
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "role": str(user.role or "").upper(),
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> tuple[int, str]:
    """Return ``(user_id, role)`` from a signed token or raise 401."""
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        raise _unauthorized("Could not validate credentials") from exc

    subject = claims.get("sub")
    role = claims.get("role")
    if not isinstance(subject, str) or not subject.isdigit() or not isinstance(role, str):
        raise _unauthorized("Invalid authentication token")
    return int(subject), role


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    user_id, token_role = decode_access_token(credentials.credentials)

    user: User | None = get_user_by_id(db=db, user_id=user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    # Department moves change what a user may touch; old sessions must re-login.
    if str(user.role or "").upper() != token_role:
        raise _unauthorized("Role changed; sign in again")
    return user
