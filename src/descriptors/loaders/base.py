"""Base class for per-registry-kind module descriptor loaders."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Optional

from constants import Constants, RegistryType
from registry.models import ModuleRegistry
from versioning.models import ModuleDefinition
from ..models import LoaderResult


class ModuleDescriptorLoader(ABC):
    """Fetches the full descriptor of one module from one registry."""

    def __init__(self, timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None):
        self.timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
        self.cancel_event = cancel_event

    @property
    @abstractmethod
    def registry_type(self) -> RegistryType:
        """Registry kind served by this loader."""

    @abstractmethod
    def find_descriptor(self, registry: ModuleRegistry, module: ModuleDefinition) -> Optional[LoaderResult]:
        """Return the descriptor and its source URL, or None when absent.

        ``module.version`` may be ``latest``; the newest descriptor is
        returned in that case.

        Raises:
            ApplicationGeneratorError: INFRASTRUCTURE on network or object
            store failure.
        """

    @staticmethod
    def source_url(registry: ModuleRegistry, module_id: str, default: str) -> str:
        return registry.public_url_for(module_id) or default
