"""Version resolver for flat HTTP module catalogs."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from common.http_client import get_json
from common.logging_utils import safe_url
from constants import Constants, ModuleType, RegistryType
from registry.models import ModuleRegistry
from ..models import Dependency, PreReleaseFilter
from ..semver import matches_prerelease_filter, parse_version, sort_descending
from .base import VersionResolver

logger = logging.getLogger(__name__)


class SimpleVersionResolver(VersionResolver):
    """Downloads the whole catalog once and filters it client-side.

    An unset prerelease filter excludes prereleases for this registry kind.
    """

    @property
    def registry_type(self) -> RegistryType:
        return RegistryType.SIMPLE

    def fetch_catalog_ids(self, url: str) -> Optional[List[str]]:
        """Return every descriptor id in the catalog, cached per URL."""
        cache_key = f"simple:{url}"
        if self.cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        status_code, _, data = get_json(url, timeout=self.timeout, cancel_event=self.cancel_event)
        if status_code != 200:
            logger.warning("Failed to fetch Simple registry catalog %s: HTTP %d", safe_url(url), status_code)
            return None
        if not isinstance(data, list):
            logger.warning("Unexpected catalog format from Simple registry %s", safe_url(url))
            return None

        ids = [str(md["id"]) for md in data if isinstance(md, dict) and md.get("id")]
        if self.cache:
            self.cache.set(cache_key, ids, Constants.CATALOG_CACHE_TTL_SEC)
        return ids

    def get_available_versions(
        self, registry: ModuleRegistry, dependency: Dependency, module_type: ModuleType
    ) -> Optional[List[str]]:
        url = registry.url.rstrip("/")
        ids = self.fetch_catalog_ids(url)
        if ids is None:
            return None

        candidates: List[Any] = []
        for version in self.versions_for_name(ids, dependency.name):
            parsed = parse_version(version)
            if parsed is None:
                continue
            if matches_prerelease_filter(parsed, dependency.pre_release, default=PreReleaseFilter.FALSE):
                candidates.append(version)

        versions = sort_descending(candidates)
        if not versions:
            logger.info("Module '%s' is not found in Simple registry %s", dependency.name, safe_url(url))
            return None

        logger.info("Found %d versions for module '%s' in Simple registry", len(versions), dependency.name)
        return versions
