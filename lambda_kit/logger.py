# lambda_kit/logger.py
"""
Bunyan-style JSON logger for Lambda functions.

Every record is a single JSON line written to the configured sink (stdout by
default, which is what CloudWatch Logs collects from a Lambda). A record is the
caller's fields, overlaid by the logger's own fields, overlaid by a fixed
envelope:

    {"data": {...}, "name": "default-handler", "v": 0, "pid": 1,
     "hostname": "aws-lambda", "time": "2019-08-20T20:12:55.902Z",
     "level": 30, "msg": "Hello"}
"""
import copy
import json
import sys
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, TextIO, Union


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


LOG_LEVEL_VALUES: Dict[str, int] = {
    LogLevel.TRACE.value: 10,
    LogLevel.DEBUG.value: 20,
    LogLevel.INFO.value: 30,
    LogLevel.WARN.value: 40,
    LogLevel.ERROR.value: 50,
    LogLevel.FATAL.value: 60,
}

HOSTNAME = "aws-lambda"
LAMBDA_PID = 1
LOG_VERSION = 0
DEFAULT_LOG_LEVEL = LogLevel.INFO.value


class ConfigurationError(TypeError):
    """Raised when a logger is constructed with invalid options."""
    pass


def _level_value(level: Union[str, int, LogLevel]) -> Optional[int]:
    """Numeric value of a level, None for unknown names."""
    if isinstance(level, LogLevel):
        return LOG_LEVEL_VALUES[level.value]
    if isinstance(level, int):
        return level
    return LOG_LEVEL_VALUES.get(level)


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _json_default(value: Any) -> Any:
    """Renders values the json module cannot encode on its own."""
    if isinstance(value, BaseException):
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        return {"name": type(value).__name__, "message": str(value)}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Logger:
    """
    Structured logger with inherited field sets.

    Args:
        name: Logger name, required. Only a root logger can set it.
        level: Minimum level to emit, defaults to "info".
        stream: Writable text sink. None means sys.stdout at write time.
        **options: Extra fields added to every record.

    Raises:
        ConfigurationError: If the name is missing or the level is unknown.
    """

    def __init__(self, name: Optional[str] = None, level: Optional[str] = None,
                 stream: Optional[TextIO] = None, **options: Any):
        if not name:
            raise ConfigurationError("name (string) is required")

        level = level.value if isinstance(level, LogLevel) else level
        if level is not None and level not in LOG_LEVEL_VALUES:
            raise ConfigurationError(f"invalid level: {level!r}")

        self.name = name
        self.level = level or DEFAULT_LOG_LEVEL
        self.stream = stream

        self.fields: Dict[str, Any] = {"name": name}
        if level is not None:
            self.fields["level"] = level
        self.fields.update(options)

    def child(self, **options: Any) -> "Logger":
        """
        Create a child logger that keeps this logger's name, level, sink and
        fields, and adds its own fields on top.
        """
        if "name" in options:
            raise ConfigurationError("invalid name: child cannot set logger name")

        child = copy.copy(self)
        child.fields = {**self.fields, **options}
        return child

    @staticmethod
    def prepare_log_object(obj: Dict[str, Any]) -> str:
        """
        Serializes a record to compact JSON and appends a newline. Records
        json cannot encode (non-string keys, circular references) are written
        with every top-level value rendered as a string instead.
        """
        try:
            line = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, default=_json_default)
        except (TypeError, ValueError):
            plain = {str(key): _plain(value) for key, value in obj.items()}
            line = json.dumps(plain, separators=(",", ":"), ensure_ascii=False)
        return line + "\n"

    def is_loggable(self, level: Union[str, int, LogLevel]) -> bool:
        value = _level_value(level)
        if value is None:
            return False
        return LOG_LEVEL_VALUES[self.level] <= value

    def write_log(self, level: Union[str, LogLevel], msg: str, fields: Optional[Dict[str, Any]] = None) -> None:
        if not self.is_loggable(level):
            return

        log_message_properties = {
            "v": LOG_VERSION,
            "pid": LAMBDA_PID,
            "hostname": HOSTNAME,
            "time": _iso_now(),
            "level": _level_value(level),
            "msg": msg,
        }
        log_record = {**(fields or {}), **self.fields, **log_message_properties}

        # Log x-rrid as rrid
        if "x-rrid" in log_record:
            log_record["rrid"] = log_record.pop("x-rrid")

        stream = self.stream or sys.stdout
        stream.write(self.prepare_log_object(log_record))
        stream.flush()

    def trace(self, msg: str, **fields: Any) -> None:
        self.write_log(LogLevel.TRACE, msg, fields)

    def debug(self, msg: str, **fields: Any) -> None:
        self.write_log(LogLevel.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self.write_log(LogLevel.INFO, msg, fields)

    def warn(self, msg: str, **fields: Any) -> None:
        self.write_log(LogLevel.WARN, msg, fields)

    def error(self, msg: str, **fields: Any) -> None:
        self.write_log(LogLevel.ERROR, msg, fields)

    def fatal(self, msg: str, **fields: Any) -> None:
        self.write_log(LogLevel.FATAL, msg, fields)
