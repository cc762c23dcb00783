import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from rich.logging import RichHandler

from aether.main.config import get_loglevel
from aether.main.request_context import get_request_context

JSON_LOGS_ENABLED = os.getenv("JSON_LOGS", "true").lower() in {"1", "true", "yes", "on"}

# Attributes every LogRecord carries; anything else came in through extra={}
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextJSONFormatter(logging.Formatter):
    """One JSON object per record, carrying the request context and any extras."""

    def format(self, record: logging.LogRecord) -> str:
        log: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in get_request_context().items():
            if value is not None:
                log.setdefault(key, value)

        # Extras never override request context
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            log.setdefault(key, value)

        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)

        return json.dumps(log, default=str)


# SQLAlchemy is too verbose below WARNING
for logger_name in ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm"):
    sa_logger = logging.getLogger(logger_name)
    sa_logger.setLevel(logging.WARNING)
    sa_logger.propagate = False


class SimpleLogger(logging.Logger):
    def __init__(self, name: str, level=logging.WARNING):
        logging.Logger.__init__(self, name, level)

        handler: logging.Handler
        if JSON_LOGS_ENABLED:
            handler = logging.StreamHandler(stream=sys.stdout)
            handler.setFormatter(ContextJSONFormatter())
        else:
            handler = RichHandler(rich_tracebacks=True, markup=True, show_path=True)

        handler.setLevel(level)
        self.addHandler(handler)


def get_logger(module_name: str):
    return SimpleLogger(name=module_name, level=get_loglevel())
