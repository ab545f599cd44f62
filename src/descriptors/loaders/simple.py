"""Descriptor loader for flat HTTP module catalogs."""

from __future__ import annotations

import logging
from typing import Optional

from common.http_client import get_json
from common.logging_utils import safe_url
from constants import RegistryType
from registry.models import ModuleRegistry
from versioning.models import ModuleDefinition
from ..models import LoaderResult
from .base import ModuleDescriptorLoader

logger = logging.getLogger(__name__)


class SimpleDescriptorLoader(ModuleDescriptorLoader):
    """GET ``<url>/<name>-<version>``; a flat catalog cannot answer ``latest``."""

    @property
    def registry_type(self) -> RegistryType:
        return RegistryType.SIMPLE

    def find_descriptor(self, registry: ModuleRegistry, module: ModuleDefinition) -> Optional[LoaderResult]:
        if module.is_latest:
            logger.debug("Simple registry %s cannot load latest descriptor for %s", registry.url, module.name)
            return None

        base = registry.url.rstrip("/")
        url = f"{base}/{module.id}"
        status_code, _, data = get_json(url, timeout=self.timeout, cancel_event=self.cancel_event)
        if status_code != 200 or not isinstance(data, dict) or not data:
            logger.debug("Module descriptor %s is not found in %s (HTTP %d)", module.id, safe_url(base), status_code)
            return None
        return LoaderResult(self.source_url(registry, module.id, url), data)
