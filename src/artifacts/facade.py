"""Dispatch existence checks to the checker for an artifact registry's kind."""
from __future__ import annotations

import logging
from typing import Dict, Iterable

from constants import ArtifactRegistryType, ModuleType
from registry.artifact import ArtifactRegistry
from versioning.models import ModuleDefinition
from .base import ArtifactExistenceChecker

logger = logging.getLogger(__name__)


class ArtifactExistenceCheckerFacade:
    """Lookup table from artifact registry kind to checker."""

    def __init__(self, checkers: Iterable[ArtifactExistenceChecker]):
        self._checkers: Dict[ArtifactRegistryType, ArtifactExistenceChecker] = {
            c.registry_type: c for c in checkers
        }

    def exists(self, module: ModuleDefinition, registry: ArtifactRegistry, module_type: ModuleType) -> bool:
        """False when no checker serves this registry kind or module type."""
        checker = self._checkers.get(registry.type)
        if checker is None or checker.module_type != module_type:
            logger.warning(
                "Failed to find artifact existence checker for %s module in %s registry",
                module_type.value,
                registry.type.value,
            )
            return False
        return checker.exists(module, registry)
