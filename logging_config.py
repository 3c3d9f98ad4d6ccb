"""Centralized logging configuration."""

import logging
import re
from typing import Any

from config import settings

SENSITIVE_KEYS = {"secret_id", "secret_key", "access", "refresh", "access_token", "refresh_token"}
MASK = "********"

_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*")


def redact(data: Any) -> Any:
    """Return a copy of a decoded payload with credential values masked.

    Used before logging aggregator request or response bodies.
    """
    if isinstance(data, dict):
        return {
            k: MASK if k in SENSITIVE_KEYS and v else redact(v)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [redact(item) for item in data]
    return data


class BearerTokenFilter(logging.Filter):
    """Masks bearer tokens that end up in formatted log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _BEARER_RE.sub(rf"\g<1>{MASK}", message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging() -> None:
    """Configure logging for the application.

    Sets root logger level from settings.LOG_LEVEL, installs the bearer
    token filter on the root handlers and suppresses noisy third-party
    loggers to WARNING.
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        level=getattr(logging, settings.LOG_LEVEL),
        force=True,
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(BearerTokenFilter())

    # httpx logs every request URL at INFO
    for name in (
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "httpx",
        "httpcore",
        "urllib3",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)
