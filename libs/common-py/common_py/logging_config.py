import logging
import sys
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
from contextvars import ContextVar


# The video being worked on by the current task, if any
video_key_var: ContextVar[Optional[str]] = ContextVar("video_key", default=None)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        video_key = video_key_var.get()
        if video_key:
            log_record["video_key"] = video_key

        for key, value in getattr(record, "extra_kwargs", {}).items():
            # Never overwrite the fixed fields
            log_record[f"extra_{key}" if key in log_record else key] = value
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


class ContextLogger:
    """Thin wrapper around stdlib logger that supports structured kwargs.

    Allows calls like `logger.info("Cache hit", key=key, error=str(e))` by
    appending key=value pairs to the message for the text format and passing
    them through untouched for the JSON format.
    """

    def __init__(self, base: logging.Logger):
        self._base = base

    @property
    def name(self) -> str:
        return self._base.name

    def setLevel(self, level: int) -> None:
        self._base.setLevel(level)

    def _prepare(self, msg: str, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        std_kwargs: Dict[str, Any] = {}
        for key in ("exc_info", "stack_info", "stacklevel"):
            if key in kwargs:
                std_kwargs[key] = kwargs.pop(key)

        if kwargs:
            pairs = " - ".join(f"{key}={value}" for key, value in kwargs.items())
            msg = f"{msg} - {pairs}"
            std_kwargs["extra"] = {"extra_kwargs": kwargs}
        return {"msg": msg, "std": std_kwargs}

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.debug(prepared["msg"], *args, **prepared["std"])

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.info(prepared["msg"], *args, **prepared["std"])

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.warning(prepared["msg"], *args, **prepared["std"])

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.error(prepared["msg"], *args, **prepared["std"])

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        prepared = self._prepare(msg, kwargs)
        self._base.error(prepared["msg"], *args, **prepared["std"])

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        prepared = self._prepare(msg, kwargs)
        self._base.critical(prepared["msg"], *args, **prepared["std"])


def _standardize_logger_name(name: str, caller_file: Optional[str] = None) -> str:
    """Ensure logger name follows `service:file` when possible.

    Names that already contain a colon are returned unchanged. Otherwise the
    service is taken from the `services/<service>/...` segment of the caller's path.
    """
    if ":" in name or not caller_file:
        return name

    p = Path(caller_file).resolve()
    parts = p.parts
    if "services" in parts:
        i = parts.index("services")
        if i + 1 < len(parts):
            file_part = p.stem if p.name != "__init__.py" else p.parent.name
            return f"{parts[i + 1]}:{file_part}"
    return name


def configure_logging(
    service_name: str,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> ContextLogger:
    """Configure logging and return a ContextLogger that accepts kwargs.

    Level and format fall back to LOG_LEVEL / LOG_FORMAT ("text" or "json").

    Usage:
        logger = configure_logging("tiktok-cache:video_cache_service")
        logger.info("Returning cached metadata", key=cache_key)
    """
    caller_file = sys._getframe(1).f_code.co_filename
    service_name = _standardize_logger_name(service_name, caller_file)
    log_level = log_level or os.getenv("LOG_LEVEL", "INFO")
    log_format = log_format or os.getenv("LOG_FORMAT", "text")

    if log_format == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    base = logging.getLogger(service_name)
    # Drop handlers from a previous configuration of the same logger
    for handler in base.handlers[:]:
        base.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    base.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    base.addHandler(handler)
    base.propagate = False

    return ContextLogger(base)


def set_video_key(video_key: Optional[str]) -> None:
    """Sets the video key reported by JSON log records of the current context."""
    video_key_var.set(video_key)
