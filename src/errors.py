"""Error taxonomy shared by the resolution and update engines.

Failures are raised as a single ``ApplicationGeneratorError`` carrying a
category and a list of structured ``ErrorDetail`` records, so a batch of
offending registries, modules or dependencies can be reported in one shot.
The bulleted rendering is produced only when the exception is turned into
text at the process boundary.
"""
from __future__ import annotations

import socket
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import requests


class ErrorCategory(Enum):
    """Failure categories reported to callers."""

    NONE = "NONE"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorCategory":
        """Classify an arbitrary exception for boundary reporting."""
        if isinstance(exc, ApplicationGeneratorError):
            return exc.category
        if isinstance(exc, (requests.ConnectionError, requests.Timeout, socket.timeout, ConnectionError)):
            return cls.INFRASTRUCTURE
        if isinstance(exc, (OSError, ValueError)):
            return cls.CONFIGURATION_ERROR
        return cls.INFRASTRUCTURE


@dataclass(frozen=True)
class ErrorDetail:
    """A single offending item inside a (possibly batched) failure."""

    error_type: str
    source: Optional[str] = None
    artifact: Optional[str] = None
    url: Optional[str] = None
    http_status_code: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def module_not_found(cls, module_name: str, constraint: str, message: Optional[str] = None) -> "ErrorDetail":
        return cls(
            error_type=ErrorCategory.MODULE_NOT_FOUND.value,
            artifact=f"{module_name}-{constraint}",
            message=message or f"No version matching constraint '{constraint}' found",
        )

    @classmethod
    def module_not_found_by_id(cls, module_id: str) -> "ErrorDetail":
        return cls(
            error_type=ErrorCategory.MODULE_NOT_FOUND.value,
            artifact=module_id,
            message="Module descriptor not found in any registry",
        )

    @classmethod
    def artifact_not_found(cls, module_id: str, message: str) -> "ErrorDetail":
        return cls(error_type=ErrorCategory.ARTIFACT_NOT_FOUND.value, artifact=module_id, message=message)

    @classmethod
    def http_error(cls, url: str, status_code: int, message: str) -> "ErrorDetail":
        return cls(error_type="HTTP_ERROR", url=url, http_status_code=status_code, message=message)

    @classmethod
    def configuration_error(cls, source: str, message: str) -> "ErrorDetail":
        return cls(error_type=ErrorCategory.CONFIGURATION_ERROR.value, source=source, message=message)

    @classmethod
    def infrastructure_error(cls, url: Optional[str], message: str) -> "ErrorDetail":
        return cls(error_type=ErrorCategory.INFRASTRUCTURE.value, url=url, message=message)

    @classmethod
    def validation_error(cls, artifact: Optional[str], message: str) -> "ErrorDetail":
        return cls(error_type=ErrorCategory.VALIDATION_FAILED.value, artifact=artifact, message=message)

    def describe(self) -> str:
        """Return a one-line human description of this detail."""
        subject = self.artifact or self.source or self.url
        text = self.message or self.error_type
        if self.http_status_code is not None:
            text = f"{text} (HTTP {self.http_status_code})"
        return f"{subject}: {text}" if subject else text

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def collect_to_bulleted_list(items: Iterable[Any]) -> str:
    """Render items as an indented bulleted list (leading newline included)."""
    return "".join(f"\n  * {item}" for item in items)


class ApplicationGeneratorError(Exception):
    """Base exception for all resolution, validation and update failures."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        errors: Optional[Iterable[ErrorDetail]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.errors: List[ErrorDetail] = list(errors or [])

    def render(self) -> str:
        """Message followed by a bulleted list of every offending item."""
        if not self.errors:
            return self.message
        return self.message + collect_to_bulleted_list(e.describe() for e in self.errors)

    def __str__(self) -> str:
        return self.render()
