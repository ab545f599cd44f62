"""Dispatch descriptor loading to the loader matching a registry's kind."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from constants import RegistryType
from registry.models import ModuleRegistry
from versioning.models import ModuleDefinition
from ..models import LoaderResult
from .base import ModuleDescriptorLoader

logger = logging.getLogger(__name__)


class ModuleDescriptorLoaderFacade:
    def __init__(self, loaders: Iterable[ModuleDescriptorLoader]):
        self._loaders: Dict[RegistryType, ModuleDescriptorLoader] = {loader.registry_type: loader for loader in loaders}

    def find_descriptor(self, registry: ModuleRegistry, module: ModuleDefinition) -> Optional[LoaderResult]:
        loader = self._loaders.get(registry.type)
        if loader is None:
            logger.warning("Failed to find module descriptor loader for registry: %s", registry.__class__.__name__)
            return None
        return loader.find_descriptor(registry, module)
