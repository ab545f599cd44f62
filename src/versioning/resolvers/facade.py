"""Dispatch version lookups to the resolver matching a registry's kind."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from constants import ModuleType, RegistryType
from registry.models import ModuleRegistry
from ..models import Dependency
from .base import VersionResolver

logger = logging.getLogger(__name__)


class VersionResolverFacade:
    """Lookup table from registry kind to resolver, built once."""

    def __init__(self, resolvers: Iterable[VersionResolver]):
        self._resolvers: Dict[RegistryType, VersionResolver] = {r.registry_type: r for r in resolvers}

    def supports(self, registry_type: RegistryType) -> bool:
        return registry_type in self._resolvers

    def get_available_versions(
        self, registry: ModuleRegistry, dependency: Dependency, module_type: ModuleType
    ) -> Optional[List[str]]:
        """Versions from the matching resolver; None when no resolver is registered."""
        resolver = self._resolvers.get(registry.type)
        if resolver is None:
            logger.warning(
                "Failed to find module version resolver for registry: %s", registry.__class__.__name__
            )
            return None
        return resolver.get_available_versions(registry, dependency, module_type)
