from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional


# Survey being analysed in the current context; stamped on every record by SurveyIdFilter.
_SURVEY_ID: ContextVar[Optional[str]] = ContextVar("survey_id", default=None)

# Attributes every LogRecord carries; anything else on a record came from extra={...}.
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message", "asctime", "survey_id",
}


@contextmanager
def survey_context(survey_id: Optional[str]) -> Iterator[None]:
    """Tag log records emitted inside the block with `survey_id`, restoring the previous value on exit."""
    token = _SURVEY_ID.set(survey_id)
    try:
        yield
    finally:
        _SURVEY_ID.reset(token)


class SurveyIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.survey_id = _SURVEY_ID.get()
        return True


def _utc_stamp(created: float) -> str:
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class JsonFormatter(logging.Formatter):
    # One JSON object per line: fixed fields first, then JSON-safe extras.
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utc_stamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "survey_id": getattr(record, "survey_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(value, ensure_ascii=False)
            except TypeError:
                value = str(value)
            payload[key] = value

        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_logs: bool = True) -> None:
    # Configure root logging once.
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SurveyIdFilter())
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s survey_id=%(survey_id)s %(message)s"
        ))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
