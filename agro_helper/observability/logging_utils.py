"""
Structured event logging for the advisory backend and client.

Every event is one JSON line carrying the request trace id. Image payloads are
never written: fields that hold base64 data are replaced by their size, and
long free text is cut to ``TEXT_LIMIT`` characters.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

TEXT_LIMIT = 400
TRACE_HEADER = "X-Trace-Id"
REDACTED_FIELDS = frozenset({"image_base64", "imageBase64", "data_url"})

_trace_id: ContextVar[str] = ContextVar("agro_trace_id", default="")
_events = logging.getLogger("agro_helper.events")
_configured = False


def init_logging(*, log_path: Optional[str] = None, level: int = logging.INFO) -> None:
    """Configure root logging once; a rotating file is used when ``log_path`` is set."""
    global _configured
    if _configured:
        return
    if log_path:
        target = Path(log_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            target, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
    else:
        handler = logging.StreamHandler()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=[handler],
    )
    _events.setLevel(level)
    _configured = True


def new_trace_id() -> str:
    return uuid.uuid4().hex


def get_trace_id() -> str:
    return _trace_id.get() or "unknown"


@contextmanager
def trace_scope(trace_id: Optional[str] = None) -> Iterator[str]:
    """Bind a trace id (a fresh one if none is given) for the enclosed block."""
    value = trace_id or new_trace_id()
    token = _trace_id.set(value)
    try:
        yield value
    finally:
        _trace_id.reset(token)


def summarize_text(text: Optional[str], limit: int = TEXT_LIMIT) -> str:
    if not text:
        return ""
    text = str(text)
    return text if len(text) <= limit else f"{text[:limit]}..."


def redact_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in fields.items():
        if key in REDACTED_FIELDS and isinstance(value, str):
            cleaned[key] = f"<{len(value)} chars>"
        elif isinstance(value, str):
            cleaned[key] = summarize_text(value)
        else:
            cleaned[key] = value
    return cleaned


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    payload = {"event": event, "trace_id": get_trace_id(), **redact_fields(fields)}
    _events.log(level, json.dumps(payload, ensure_ascii=False, default=str))
