"""Base class for per-registry-kind version resolvers."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from constants import ModuleType, RegistryType
from registry.models import ModuleRegistry
from ..cache import TTLCache
from ..models import Dependency, split_module_id


class VersionResolver(ABC):
    """Lists the versions of one module available in one registry."""

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize resolver.

        Args:
            cache: Optional cache for registry responses.
            timeout: Per-request timeout in seconds.
            cancel_event: Optional token aborting pending HTTP retries.
        """
        self.cache = cache
        self.timeout = timeout
        self.cancel_event = cancel_event

    @property
    @abstractmethod
    def registry_type(self) -> RegistryType:
        """Registry kind served by this resolver."""

    @abstractmethod
    def get_available_versions(
        self, registry: ModuleRegistry, dependency: Dependency, module_type: ModuleType
    ) -> Optional[List[str]]:
        """Return every version of ``dependency.name`` in ``registry``.

        Returns:
            Version strings sorted highest first, or None when the module has
            no entries or the response could not be used.

        Raises:
            ApplicationGeneratorError: INFRASTRUCTURE on network failure after
            retries.
        """

    @staticmethod
    def versions_for_name(module_ids: Iterable[str], name: str) -> List[str]:
        """Versions of the ids whose ``-<digit>`` split yields exactly ``name``."""
        versions = []
        for module_id in module_ids:
            parts = split_module_id(module_id)
            if parts is not None and parts[0] == name:
                versions.append(parts[1])
        return versions
