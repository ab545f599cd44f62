"""Version resolver for proxy-style (Okapi) module catalogs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from common.http_client import get_json
from common.logging_utils import extra_context, safe_url
from constants import ModuleType, RegistryType
from registry.models import ModuleRegistry
from ..models import Dependency, PreReleaseFilter
from ..semver import sort_descending
from .base import VersionResolver

logger = logging.getLogger(__name__)


class OkapiVersionResolver(VersionResolver):
    """Single filtered query against ``/_/proxy/modules``, ordered by id descending."""

    @property
    def registry_type(self) -> RegistryType:
        return RegistryType.OKAPI

    @staticmethod
    def build_query(dependency: Dependency, module_type: ModuleType) -> Dict[str, Any]:
        """Query parameters; UI modules filter on ``npmSnapshot``, BE modules on ``preRelease``."""
        pre_release = dependency.pre_release or PreReleaseFilter.TRUE
        flag = "npmSnapshot" if module_type == ModuleType.UI else "preRelease"
        return {
            "filter": dependency.name,
            flag: pre_release.value,
            "orderBy": "id",
            "order": "desc",
        }

    def get_available_versions(
        self, registry: ModuleRegistry, dependency: Dependency, module_type: ModuleType
    ) -> Optional[List[str]]:
        base_url = registry.url.rstrip("/")
        url = f"{base_url}/_/proxy/modules"
        status_code, _, data = get_json(
            url,
            params=self.build_query(dependency, module_type),
            timeout=self.timeout,
            cancel_event=self.cancel_event,
        )

        if status_code != 200:
            logger.warning(
                "Failed to fetch versions for module '%s' from %s: HTTP %d",
                dependency.name,
                safe_url(base_url),
                status_code,
            )
            return None
        if not isinstance(data, list):
            logger.warning("Unexpected module list from %s for '%s'", safe_url(base_url), dependency.name)
            return None

        ids = [str(md.get("id")) for md in data if isinstance(md, dict) and md.get("id")]
        versions = sort_descending(self.versions_for_name(ids, dependency.name))
        if not versions:
            logger.info("Module '%s' is not found in %s", dependency.name, safe_url(base_url))
            return None

        logger.debug(
            "Module versions fetched",
            extra=extra_context(
                event="resolve",
                component="okapi_resolver",
                target=safe_url(base_url),
                package_name=dependency.name,
                count=len(versions),
            ),
        )
        return versions
