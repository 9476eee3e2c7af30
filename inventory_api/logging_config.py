"""Logging configuration and redaction.

Logging is configured from an explicit LoggingConfig value at application
start and undone at shutdown; nothing here keeps a mutable process-wide level
of its own.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

# Bearer tokens, bare JWTs and password assignments.
SECRET_PATTERNS = [
    (re.compile(r'(Bearer\s+)[A-Za-z0-9\-_\.=]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*'), '[REDACTED]'),
    (re.compile(r'("password":\s*")[^"]*(")'), r'\1[REDACTED]\2'),
    (re.compile(r'(password=)\S+'), r'\1[REDACTED]'),
]


def redact(text: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Filter that redacts secret-like patterns from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)

        return True


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    fmt: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    redact: bool = True

    @classmethod
    def from_settings(cls, settings) -> "LoggingConfig":
        return cls(level=settings.LOG_LEVEL, fmt=settings.LOG_FORMAT, redact=settings.LOG_REDACT)


@dataclass
class LoggingHandle:
    """What configure_logging() installed, so reset_logging() can remove it."""
    handler: logging.Handler
    previous_level: int
    redaction_filter: Optional[SecretRedactionFilter] = None


def configure_logging(config: LoggingConfig, logger: Optional[logging.Logger] = None) -> LoggingHandle:
    """Install a stream handler (and redaction filter) on ``logger`` (root by default)."""
    target = logger or logging.getLogger()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.fmt))

    redaction_filter = None
    if config.redact:
        redaction_filter = SecretRedactionFilter()
        # Handler-level so records propagated from child loggers are covered too.
        handler.addFilter(redaction_filter)

    handle = LoggingHandle(handler=handler, previous_level=target.level, redaction_filter=redaction_filter)
    target.addHandler(handler)
    target.setLevel(config.level.upper())
    target.info("Logging configured (level=%s, redaction=%s)", config.level.upper(), config.redact)
    return handle


def reset_logging(handle: LoggingHandle, logger: Optional[logging.Logger] = None) -> None:
    target = logger or logging.getLogger()
    target.removeHandler(handle.handler)
    target.setLevel(handle.previous_level)
    handle.handler.close()
