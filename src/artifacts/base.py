"""Shared plumbing for HTTP-backed artifact existence checkers."""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Optional

import requests

from common.http_client import send_with_retry
from constants import ArtifactRegistryType, Constants, ModuleType
from registry.artifact import ArtifactRegistry
from versioning.models import ModuleDefinition


class ArtifactExistenceChecker(ABC):
    """Confirms that a resolved module version was actually published."""

    def __init__(self, timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None):
        self.timeout = timeout if timeout is not None else Constants.ARTIFACT_REQUEST_TIMEOUT
        self.cancel_event = cancel_event

    @property
    @abstractmethod
    def module_type(self) -> ModuleType:
        """Module type whose artifacts live in this kind of registry."""

    @property
    @abstractmethod
    def registry_type(self) -> ArtifactRegistryType:
        """Artifact registry kind handled by this checker."""

    @abstractmethod
    def exists(self, module: ModuleDefinition, registry: ArtifactRegistry) -> bool:
        """Return True when ``module`` is published in ``registry``.

        Raises:
            ApplicationGeneratorError: INFRASTRUCTURE when the registry cannot
            answer after retries.
        """

    def get(self, url: str) -> requests.Response:
        """GET with the shared retry policy (429/502/503/504 and network errors)."""
        return send_with_retry("GET", url, timeout=self.timeout, cancel_event=self.cancel_event)

    @staticmethod
    def clean_url(url: str) -> str:
        return url[:-1] if url.endswith("/") else url
