import logging
from typing import Optional
import bleach

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def sanitize_input(value: Optional[str]) -> str:
    """Sanitize user-supplied free text before it is stored and shown publicly.

    - Strips HTML tags using bleach.clean(..., strip=True)
    - Removes NULL bytes
    - Trims whitespace
    """
    if value is None:
        return ""
    val = value.replace("\x00", "")
    val = bleach.clean(val, tags=[], strip=True)
    return val.strip()
