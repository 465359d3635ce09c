import json
import logging
import sys
from datetime import datetime, timezone


_event_logger = logging.getLogger("yuandi.events")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "INFO") -> None:
    """Send event lines to stdout as-is; safe to call more than once."""
    _event_logger.setLevel(level.upper())
    if not any(getattr(h, "_yuandi_events", False) for h in _event_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._yuandi_events = True
        _event_logger.addHandler(handler)


def log_event(level: str, event: str, **fields) -> None:
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": level.lower(),
        "event": event,
    }
    payload.update(fields or {})
    _event_logger.log(
        _LEVELS.get(payload["level"], logging.INFO),
        json.dumps(payload, ensure_ascii=False, default=str),
    )
