"""Container image existence via the Docker Hub tags endpoint."""
from __future__ import annotations

import logging

from constants import ArtifactRegistryType, ModuleType
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from registry.artifact import ArtifactRegistry
from versioning.models import ModuleDefinition
from .base import ArtifactExistenceChecker

logger = logging.getLogger(__name__)


class DockerHubExistenceChecker(ArtifactExistenceChecker):
    """``GET <base>/<namespace>/<image>/tags/<version>``: 200 found, 404 missing."""

    @property
    def module_type(self) -> ModuleType:
        return ModuleType.BE

    @property
    def registry_type(self) -> ArtifactRegistryType:
        return ArtifactRegistryType.DOCKER_HUB

    def build_url(self, registry: ArtifactRegistry, module: ModuleDefinition) -> str:
        return f"{self.clean_url(registry.base_url)}/{registry.namespace}/{module.name}/tags/{module.version}"

    def exists(self, module: ModuleDefinition, registry: ArtifactRegistry) -> bool:
        url = self.build_url(registry, module)
        logger.debug("Checking Docker image existence: %s", url)

        status_code = self.get(url).status_code
        if status_code == 200:
            logger.debug("Docker image found: %s:%s", module.name, module.version)
            return True
        if status_code == 404:
            logger.warning(
                "Docker image not found: %s:%s (status: %d, url: %s)", module.name, module.version, status_code, url
            )
            return False

        kind = "server" if status_code >= 500 else "access"
        raise ApplicationGeneratorError(
            f"Docker Hub {kind} error {status_code} for {module.name}:{module.version} (url: {url})",
            ErrorCategory.INFRASTRUCTURE,
            [ErrorDetail.http_error(url, status_code, f"Docker Hub {kind} error")],
        )
