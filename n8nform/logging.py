"""Structured logging setup."""

import logging
import sys
from typing import Any, MutableMapping

import structlog

SENSITIVE_KEYS = frozenset(
    {"api_key", "password", "client_secret", "header_value", "data"}
)
MASK = "***"


def mask_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace values of sensitive keys before rendering."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = MASK
    return event_dict


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Setup structured logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            mask_secrets,
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
