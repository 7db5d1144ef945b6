"""Logging setup for the gateway and the explorer UI.

`get_logger` attaches a single stream handler to the root logger the first
time it is called. `log_event` writes one `event=<name> key=value ...` line per
gateway event, masking fields whose names look like credentials.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Final

HIDDEN_VALUE: Final[str] = "HIDDEN_KEY"
SENSITIVE_FIELD_MARKERS: Final[tuple[str, ...]] = ("apikey", "api_key", "token", "secret", "password", "authorization")

_HANDLER_ATTACHED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_event_logger = logging.getLogger("field_explorer.events")


def _resolve_level() -> int:
    level_name = os.getenv("FIELD_EXPLORER_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring the root handler on first use."""
    global _HANDLER_ATTACHED

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(_resolve_level())
        _HANDLER_ATTACHED = True

    return logging.getLogger(name)


def is_sensitive_field(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_FIELD_MARKERS)


def format_event(event_name: str, fields: dict[str, Any]) -> str:
    parts = [f"event={event_name}"]
    for name, value in fields.items():
        shown = HIDDEN_VALUE if is_sensitive_field(name) and value else value
        parts.append(f"{name}={shown!r}")
    return " ".join(parts)


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Fields named like credentials are masked; free-text
    fields must already be redacted by the caller.

    Side Effects:
        - Writes to logger (info level)
    """
    _event_logger.info("%s", format_event(event_name, fields))
