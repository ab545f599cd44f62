"""npm package existence via the package manifest's ``versions`` map."""
from __future__ import annotations

import json
import logging

from constants import ArtifactRegistryType, Constants, ModuleType
from registry.artifact import ArtifactRegistry
from versioning.models import ModuleDefinition
from .base import ArtifactExistenceChecker

logger = logging.getLogger(__name__)


def to_package_name(module_name: str) -> str:
    """``folio_users`` -> ``@folio/users``; remaining underscores become hyphens."""
    name = module_name
    if name.startswith(Constants.FOLIO_MODULE_PREFIX):
        name = name[len(Constants.FOLIO_MODULE_PREFIX):]
    return Constants.FOLIO_NPM_SCOPE + name.replace("_", "-")


class FolioNpmExistenceChecker(ArtifactExistenceChecker):
    """``GET <base>/<repository>/@folio/<name>``; found iff 200 and the version is listed."""

    @property
    def module_type(self) -> ModuleType:
        return ModuleType.UI

    @property
    def registry_type(self) -> ArtifactRegistryType:
        return ArtifactRegistryType.FOLIO_NPM

    def build_url(self, registry: ArtifactRegistry, package_name: str) -> str:
        return f"{self.clean_url(registry.base_url)}/{registry.namespace}/{package_name}"

    def exists(self, module: ModuleDefinition, registry: ArtifactRegistry) -> bool:
        package_name = to_package_name(module.name)
        url = self.build_url(registry, package_name)
        logger.debug("Checking NPM package existence: %s", url)

        response = self.get(url)
        if response.status_code != 200:
            logger.debug("NPM package not found: %s (status: %d)", package_name, response.status_code)
            return False

        try:
            body = json.loads(response.text)
        except json.JSONDecodeError:
            logger.debug("NPM package manifest is not JSON: %s", url)
            return False

        versions = body.get("versions") if isinstance(body, dict) else None
        if not isinstance(versions, dict) or module.version not in versions:
            logger.debug("NPM package version not found: %s@%s", package_name, module.version)
            return False

        logger.debug("NPM package found: %s@%s", package_name, module.version)
        return True
