"""
Authentication and authorization dependencies.

Bearer tokens are always accepted. With AUTH_MODE=demo (the default) an
X-User-Id header is accepted as well, the way the mobile tracker identifies
itself.
"""

import os
import uuid
from fastapi import HTTPException, Header, Depends
from sqlalchemy.orm import Session
from typing import Optional

from fieldops.database import get_db
from fieldops.models.user import User
from fieldops.services.auth import decode_access_token

AUTH_MODE = os.getenv("AUTH_MODE", "demo")  # "demo" or "token"


def _as_uuid(value) -> uuid.UUID:
    if value is None:
        raise ValueError("None is not a UUID")
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _load_user(db: Session, user_id) -> User:
    try:
        user_uuid = _as_uuid(user_id)
    except (ValueError, AttributeError):
        raise HTTPException(status_code=401, detail="Invalid user id")

    user = db.query(User).filter(User.id == user_uuid).first()
    if not user or user.is_active is False:
        raise HTTPException(status_code=401, detail="Unauthorized - User not found")
    return user


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    if authorization:
        token = authorization.removeprefix("Bearer ").strip()
        payload = decode_access_token(token) if token else None
        if not payload:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return _load_user(db, payload["user_id"])

    if AUTH_MODE == "demo" and x_user_id:
        return _load_user(db, x_user_id)

    raise HTTPException(status_code=401, detail="Unauthorized - User ID header missing")


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Require the admin role. Returns the user."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden - Admin access required")
    return user
