import logging
import json
import os
import datetime
from contextlib import contextmanager
from typing import Any, Iterator, Optional
from threading import local

# Thread-local storage for context (like request_id)
_context = local()

SERVICE_NAME = "consignado"
GLOBAL_REQUEST_ID = "GLOBAL"
DEFAULT_LOG_FILE = "logs/consignado.log"

LOG_LEVEL_ENV = "CONSIGNADO_LOG_LEVEL"
LOG_FILE_ENV = "CONSIGNADO_LOG_FILE"

_FROM_ENV = object()


class JSONFormatter(logging.Formatter):
    """
    Formats log records as one JSON object per line.

    Fixed keys come first; the adapter's `extra_fields` (bound fields such
    as the ledger origin, then per-call keyword arguments) are merged on top.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "request_id": get_request_id(),
        }

        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def resolve_log_level(value=None) -> int:
    """
    Accepts a level number or name ("debug", "WARNING").
    None reads CONSIGNADO_LOG_LEVEL; unknown names fall back to INFO.
    """
    if value is None:
        value = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level=None, log_file: Optional[str] = _FROM_ENV):
    """
    Configure global logging settings.

    Args:
        log_level: Level number or name; defaults to CONSIGNADO_LOG_LEVEL (INFO)
        log_file: JSON log file; defaults to CONSIGNADO_LOG_FILE, then
            logs/consignado.log. None or "" logs to the console only.

    Library code never calls this; entry points (API, scripts) do.
    """
    if log_file is _FROM_ENV:
        log_file = os.getenv(LOG_FILE_ENV, DEFAULT_LOG_FILE)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_log_level(log_level))

    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    logging.info(
        "Logging infrastructure initialized.",
        extra={"extra_fields": {"status": "ready", "log_file": log_file or None}},
    )


def set_request_id(request_id: Optional[str]):
    """Set the current request ID in context (None clears it)."""
    _context.request_id = request_id


def get_request_id() -> str:
    """Current request ID, or GLOBAL outside a request."""
    return getattr(_context, "request_id", None) or GLOBAL_REQUEST_ID


@contextmanager
def request_context(request_id: str) -> Iterator[str]:
    """
    Scopes a request ID to a block and restores the previous one.
    Worker threads from the pool do not inherit the caller's thread-local.
    """
    previous = getattr(_context, "request_id", None)
    set_request_id(request_id)
    try:
        yield request_id
    finally:
        set_request_id(previous)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that folds arbitrary keyword arguments into `extra_fields`.

        logger.info("Bank file parsed", valid=120, errors=3)

    Fields given to `bind` are added to every record; per-call keyword
    arguments win on conflict.
    """
    def process(self, msg: Any, kwargs: Any) -> "tuple[Any, Any]":
        extra = kwargs.get("extra", {})
        if "extra_fields" not in extra:
            extra["extra_fields"] = {}

        fields = dict(self.extra or {})
        standard_args = {'exc_info', 'stack_info', 'stacklevel', 'extra'}
        new_kwargs = {}
        for key, value in kwargs.items():
            if key in standard_args:
                new_kwargs[key] = value
            else:
                fields[key] = value

        extra["extra_fields"].update(fields)
        new_kwargs["extra"] = extra
        return msg, new_kwargs

    def bind(self, **fields: Any) -> "StructuredLoggerAdapter":
        """Returns an adapter on the same logger with extra bound fields."""
        return StructuredLoggerAdapter(self.logger, {**(self.extra or {}), **fields})


def get_logger(name: str) -> StructuredLoggerAdapter:
    """
    Return a structured logger for the given name.
    """
    return StructuredLoggerAdapter(logging.getLogger(name), {})
