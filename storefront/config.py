"""Runtime configuration for the app (loaded once, replaceable in tests)."""
import os
from typing import NamedTuple, Optional


class ConfigError(RuntimeError):
    pass


class Settings(NamedTuple):
    jwt_secret: str
    token_ttl_seconds: int = 60 * 60 * 24  # 1 day
    min_password_length: int = 8
    log_level: str = "INFO"


state: Optional[Settings] = None


def load_settings(environ=None) -> Settings:
    env = os.environ if environ is None else environ
    secret = (env.get("JWT_SECRET") or "").strip()
    if not secret:
        raise ConfigError("JWT_SECRET must be set before the app can serve requests")
    try:
        ttl = int(env.get("TOKEN_TTL_SECONDS", 60 * 60 * 24))
        min_len = int(env.get("MIN_PASSWORD_LENGTH", 8))
    except ValueError as e:
        raise ConfigError(f"invalid numeric setting: {e}") from e
    return Settings(
        jwt_secret=secret,
        token_ttl_seconds=ttl,
        min_password_length=min_len,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


def set_settings(value: Settings):
    global state
    state = value


def get_settings() -> Settings:
    global state
    if state is None:
        state = load_settings()
    return state
