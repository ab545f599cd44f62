"""Descriptor loader for proxy-style (Okapi) module registries."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from common.http_client import get_json
from common.logging_utils import safe_url
from constants import RegistryType
from registry.models import ModuleRegistry
from versioning.models import ModuleDefinition
from ..models import LoaderResult
from .base import ModuleDescriptorLoader

logger = logging.getLogger(__name__)


class OkapiDescriptorLoader(ModuleDescriptorLoader):
    """Queries ``/_/proxy/modules`` with ``full=true`` and takes the first hit."""

    @property
    def registry_type(self) -> RegistryType:
        return RegistryType.OKAPI

    @staticmethod
    def build_query(module: ModuleDefinition) -> Dict[str, Any]:
        return {
            "filter": module.name if module.is_latest else module.id,
            "latest": 1,
            "orderBy": "id",
            "order": "desc",
            "full": "true",
        }

    def find_descriptor(self, registry: ModuleRegistry, module: ModuleDefinition) -> Optional[LoaderResult]:
        base = registry.url.rstrip("/")
        url = f"{base}/_/proxy/modules"
        status_code, _, data = get_json(
            url, params=self.build_query(module), timeout=self.timeout, cancel_event=self.cancel_event
        )
        if status_code != 200:
            logger.warning(
                "Failed to load module descriptor %s from %s: HTTP %d", module.id, safe_url(base), status_code
            )
            return None
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            logger.debug("Module descriptor %s is not found in %s", module.id, safe_url(base))
            return None

        descriptor = data[0]
        descriptor_id = str(descriptor.get("id") or module.id)
        return LoaderResult(
            self.source_url(registry, descriptor_id, f"{base}/_/proxy/modules/{descriptor_id}"), descriptor
        )
