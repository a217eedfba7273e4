"""
Logging Configuration

Provides:
- JsonFormatter: one JSON object per record, request ID included
- ScopedLogger: logger adapter carrying fixed key/value fields
- setup_logging: YAML (dictConfig) based setup with a JSON stdout fallback
"""

import json
import logging
import logging.config
import os
import string
import sys
from datetime import datetime, timezone
from typing import Any, Mapping, MutableMapping, Optional, Tuple

import yaml

from .request_context import get_request_id

_STANDARD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


class JsonFormatter(logging.Formatter):
    """
    JSON Formatter.

    Fields:
      - _time: ISO8601 timestamp (millisecond precision)
      - level: Log level
      - logger: Logger name (e.g. mig, mig.response)
      - message: Log message
      - id: Request ID, taken from the record or the active request
      - every field passed through ``extra``
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "_time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if not log_data.get("id"):
            request_id = get_request_id()
            if request_id:
                log_data["id"] = request_id
            else:
                log_data.pop("id", None)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ScopedLogger(logging.LoggerAdapter):
    """
    Logger adapter whose fields are merged into every record's ``extra``.

    Per-call ``extra`` wins over the adapter's own fields. Adapters may wrap
    other adapters; the outermost fields win.
    """

    def __init__(self, logger: Any, extra: Mapping[str, Any]):
        super().__init__(logger, dict(extra))

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def setup_logging(config_path: Optional[str] = None, level: str = "INFO") -> None:
    """
    Load the YAML config, substitute environment variables, and initialize logging.

    Without a config file, log JSON lines to stdout at ``level``.
    """
    if not config_path or not os.path.exists(config_path):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
        return

    with open(config_path, "r", encoding="utf-8") as f:
        # Supports ${LOG_LEVEL} format.
        template = string.Template(f.read())

    mapping = os.environ.copy()
    mapping.setdefault("LOG_LEVEL", level.upper())

    content = template.safe_substitute(mapping)
    config = yaml.safe_load(content)
    logging.config.dictConfig(config)
