"""
Structured logging for statement processing.

Every record is rendered as one JSON object carrying the id of the batch
being processed, so all lines of one upload can be grouped together.
Keyword arguments passed to a logger become top-level JSON fields:

    logger = get_logger(__name__)
    logger.info("Consolidated documents", documents=2, transactions=41)
"""
import datetime
import json
import logging
import os
import traceback
import uuid
from contextlib import contextmanager
from threading import local
from typing import Any, Iterator, Optional

_context = local()

DEFAULT_LOG_FILE = "logs/extractos.log"
_LOGGER_ARGS = frozenset({'exc_info', 'stack_info', 'stacklevel', 'extra'})


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            "batch_id": getattr(_context, "batch_id", "GLOBAL"),
        }

        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict):
            for key, value in fields.items():
                # Fields never overwrite the base keys
                payload["extra_" + key if key in payload else key] = value

        if record.exc_info:
            payload["exception"] = "".join(traceback.format_exception(*record.exc_info))

        # Decimals and dates are logged as their str() form
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(log_level: int = logging.INFO, log_file: Optional[str] = DEFAULT_LOG_FILE) -> None:
    """
    Route the root logger to stderr and, optionally, a JSON-lines file.
    Existing root handlers are replaced.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handlers = [logging.StreamHandler()]
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    for handler in handlers:
        handler.setFormatter(JSONFormatter())
        root_logger.addHandler(handler)

    get_logger(__name__).debug("Logging configured", log_level=logging.getLevelName(log_level), log_file=log_file)


def set_batch_id(batch_id: Optional[str]) -> None:
    _context.batch_id = batch_id or "GLOBAL"


def get_batch_id() -> str:
    return getattr(_context, "batch_id", "GLOBAL")


@contextmanager
def batch_scope(batch_id: Optional[str] = None) -> Iterator[str]:
    """Tag every log line emitted inside the block with one batch id."""
    previous = getattr(_context, "batch_id", None)
    current = batch_id or uuid.uuid4().hex[:12]
    _context.batch_id = current
    try:
        yield current
    finally:
        if previous is None:
            del _context.batch_id
        else:
            _context.batch_id = previous


class StatementLoggerAdapter(logging.LoggerAdapter):
    """
    Moves non-logging keyword arguments into record.extra_fields.

    'level' and 'msg' are parameters of LoggerAdapter.log and cannot be
    used as field names.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        passthrough = {k: v for k, v in kwargs.items() if k in _LOGGER_ARGS}
        fields = {k: v for k, v in kwargs.items() if k not in _LOGGER_ARGS}

        extra = dict(passthrough.get("extra") or {})
        extra["extra_fields"] = {**extra.get("extra_fields", {}), **fields}
        passthrough["extra"] = extra
        return msg, passthrough


def get_logger(name: str) -> StatementLoggerAdapter:
    return StatementLoggerAdapter(logging.getLogger(name), {})
