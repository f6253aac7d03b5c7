"""Request guards: resolve the bearer token to a user, then check the role.

A request without a token is answered with 401; a token that is present but
cannot be trusted, or that points at a user who no longer exists or has been
deactivated, is answered with 403.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from . import models
from .auth import InvalidToken, verify_access_token
from .db import get_db


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(None, 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> models.User:
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Access token required")
    try:
        user_id = verify_access_token(token)
    except InvalidToken:
        raise HTTPException(status_code=403, detail="Invalid token")
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=403, detail="Invalid token")
    if user.status != "active":
        raise HTTPException(status_code=403, detail="Account is inactive")
    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
