import time
from typing import Optional

import jwt
from passlib.context import CryptContext

from . import config
from .models import MAX_ID

# Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


class InvalidToken(Exception):
    """Raised for any token that cannot be trusted (bad signature, expired, malformed)."""


def create_access_token(user_id: int, expires_delta: Optional[int] = None) -> str:
    settings = config.get_settings()
    now = int(time.time())
    exp = now + (expires_delta if expires_delta is not None else settings.token_ttl_seconds)
    payload = {"userId": user_id, "iat": now, "exp": exp}
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def verify_access_token(token: str) -> int:
    """Return the user id embedded in ``token`` or raise :class:`InvalidToken`."""
    try:
        payload = jwt.decode(
            token,
            config.get_settings().jwt_secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidToken() from e
    user_id = payload.get("userId")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or not 0 < user_id <= MAX_ID:
        raise InvalidToken()
    return user_id


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # unknown or corrupt hash format
        return False
