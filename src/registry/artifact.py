"""Artifact registries: stores that confirm a built image or package exists."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from constants import ArtifactRegistryType, Constants, ModuleType
from registry.models import is_valid_url


@dataclass(frozen=True)
class ArtifactRegistry:
    """Base for artifact registries: ``base_url`` plus a namespace/repository."""

    namespace: str
    base_url: str = ""

    @property
    def type(self) -> ArtifactRegistryType:
        raise NotImplementedError

    def is_valid(self) -> bool:
        if not self.namespace or not self.namespace.strip():
            return False
        return is_valid_url(self.base_url)


@dataclass(frozen=True)
class DockerHubArtifactRegistry(ArtifactRegistry):
    """Container registry speaking the Docker Hub v2 repositories API."""

    base_url: str = Constants.DOCKER_HUB_DEFAULT_URL

    @property
    def type(self) -> ArtifactRegistryType:
        return ArtifactRegistryType.DOCKER_HUB


@dataclass(frozen=True)
class FolioNpmArtifactRegistry(ArtifactRegistry):
    """npm package repository; ``namespace`` is the repository name."""

    base_url: str = Constants.FOLIO_NPM_DEFAULT_URL

    @property
    def type(self) -> ArtifactRegistryType:
        return ArtifactRegistryType.FOLIO_NPM


@dataclass(frozen=True)
class ArtifactRegistries:
    """Artifact registries partitioned by module type and release channel."""

    be_registries: List[ArtifactRegistry] = field(default_factory=list)
    ui_registries: List[ArtifactRegistry] = field(default_factory=list)
    be_pre_release_registries: List[ArtifactRegistry] = field(default_factory=list)
    ui_pre_release_registries: List[ArtifactRegistry] = field(default_factory=list)
    unified_registries: List[ArtifactRegistry] = field(default_factory=list)

    def get_registries(self, module_type: ModuleType, is_pre_release: bool) -> List[ArtifactRegistry]:
        """Prerelease lists first (prerelease versions only), then type lists, then unified."""
        result: List[ArtifactRegistry] = []
        if is_pre_release:
            if module_type == ModuleType.BE:
                result.extend(self.be_pre_release_registries)
            else:
                result.extend(self.ui_pre_release_registries)
        result.extend(self.be_registries if module_type == ModuleType.BE else self.ui_registries)
        result.extend(self.unified_registries)
        return result
