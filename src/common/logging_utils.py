"""Centralized logging helpers.

Every module logs through ``logging.getLogger(__name__)``; this module only
configures the root handler and provides the small helpers used to attach
structured context (``extra=extra_context(...)``) and to keep credentials out
of log lines.
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_QUERY_KEYS = {"token", "access_token", "api_key", "apikey", "key", "password", "secret", "signature"}
_BEARER_RE = re.compile(r"(?i)(bearer\s+)[A-Za-z0-9\-._~+/]+=*")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    Level precedence: explicit argument, then ``APPGEN_LOG_LEVEL``, then INFO.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` payload, dropping unset fields.

    Keys that clash with ``LogRecord`` attributes are prefixed to avoid
    ``KeyError`` from the logging module.
    """
    reserved = {"message", "asctime", "args", "msg", "name", "levelname", "module", "filename", "lineno"}
    payload: Dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        payload[f"ctx_{key}" if key in reserved else key] = value
    return payload


def redact(text: str) -> str:
    """Mask bearer tokens inside arbitrary text."""
    if not text:
        return text
    return _BEARER_RE.sub(r"\1[REDACTED]", text)


def safe_url(url: str) -> str:
    """Strip user info and mask sensitive query values of a URL."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return url
    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]
    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = "&".join(
            f"{k}=[REDACTED]" if k.lower() in _SENSITIVE_QUERY_KEYS else f"{k}={v}"
            for k, v in pairs
        )
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 2)
