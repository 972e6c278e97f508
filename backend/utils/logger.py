import json
import logging
import sys
from typing import Any

from utils.utcnow import utcnow


class JSONFormatter(logging.Formatter):
    """One JSON object per log line"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        data = getattr(record, "extra_data", None)
        if data:
            payload["data"] = data

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class ContextLogger:
    """stdlib logger wrapper that turns keyword arguments into structured fields.

    ``logger.info("Fetched rows", rows=42)`` ends up as ``{"data": {"rows": 42}}``
    in the JSON output.  ``with_context`` binds fields for every later call.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self._context: dict[str, Any] = {}

    def with_context(self, **kwargs: Any) -> "ContextLogger":
        bound = ContextLogger(self.logger.name)
        bound._context = {**self._context, **kwargs}
        return bound

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        exc_info = kwargs.pop("exc_info", None)
        data: dict[str, Any] = dict(self._context)
        data.update(kwargs)
        self.logger.log(
            level,
            msg,
            *args,
            exc_info=exc_info,
            stacklevel=3,  # report the caller, not this wrapper
            extra={"extra_data": data or None},
        )

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, *args, **kwargs)


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Configure the root logger with a single stdout handler"""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root_logger.addHandler(handler)

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(name)


# Pre-configured loggers
api_logger = get_logger("api")
dune_logger = get_logger("dune")
cache_logger = get_logger("cache")
profile_logger = get_logger("profile")
