"""
loguru configuration for the resolver: console logging on stderr plus an
audit trail of describe calls written as JSON lines.

Audit events are ordinary loguru records bound with ``audit=True``; the
audit sink only accepts those, and the console sink ignores them.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from loguru import logger

from . import config

CONSOLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <7}</level> | {message}"


def _is_audit(record) -> bool:
    return bool(record["extra"].get("audit"))


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    """Send non-audit records to stderr (stdout may carry tool output)."""
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        filter=lambda record: not _is_audit(record),
        colorize=False,
    )


def audit_payload(record) -> Dict[str, Any]:
    extra = dict(record["extra"])
    extra.pop("audit", None)
    extra.pop("audit_json", None)
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "type": extra.pop("event_type", record["message"]),
        "message": record["message"],
    }
    if extra:
        payload["detail"] = extra
    return payload


def _audit_format(record) -> str:
    record["extra"]["audit_json"] = json.dumps(audit_payload(record), ensure_ascii=False, default=str)
    return "{extra[audit_json]}\n"


def add_audit_sink(
    path: Optional[Path] = None,
    writer: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> int:
    """
    Install the audit sink. ``writer`` (tests) receives each payload dict;
    otherwise loguru appends one JSON line per event to ``path``
    (default: TMUX_CONTEXT_AUDIT_PATH). Returns the loguru handler id.
    """
    if writer is not None:
        return logger.add(
            lambda message: writer(audit_payload(message.record)),
            level="INFO",
            filter=_is_audit,
            format="{message}",
        )
    return logger.add(
        str(path or config.AUDIT_PATH),
        level="INFO",
        filter=_is_audit,
        format=_audit_format,
        encoding="utf-8",
    )


def audit(event_type: str, message: str, **detail: Any) -> None:
    logger.bind(audit=True, event_type=event_type, **detail).info(message)
