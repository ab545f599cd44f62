"""Constraint resolution across ordered, heterogeneous module registries.

Every primary registry for a module type is queried and the matching
versions are pooled; the greatest one wins. Fallback registries are
consulted only when the primary pool is empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import semantic_version

from common.logging_utils import extra_context
from constants import ModuleType
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from registry.artifact import ArtifactRegistries
from registry.models import ModuleRegistries, ModuleRegistry
from .models import Dependency, ModuleDefinition, PreReleaseFilter
from .resolvers.facade import VersionResolverFacade
from .semver import VersionRange, build_range, is_exact_version, matches_prerelease_filter, parse_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionCandidate:
    """A matching version: the registry's original string, its parsed form and source."""

    original: str
    version: semantic_version.Version
    registry: ModuleRegistry


class ModuleVersionService:
    """Resolve version constraints to exact versions.

    Args:
        module_registries: Primary and fallback registries per module type.
        resolver_facade: Lists available versions per registry kind.
        artifact_registries: Registries consulted by the existence gate.
        artifact_checker: Facade answering ``exists(module, registry, type)``.
        validate_artifacts: Enable the artifact-existence gate.
    """

    def __init__(
        self,
        module_registries: ModuleRegistries,
        resolver_facade: VersionResolverFacade,
        artifact_registries: Optional[ArtifactRegistries] = None,
        artifact_checker=None,
        validate_artifacts: bool = False,
    ):
        self.module_registries = module_registries
        self.resolver_facade = resolver_facade
        self.artifact_registries = artifact_registries
        self.artifact_checker = artifact_checker
        self.validate_artifacts = validate_artifacts
        if validate_artifacts and (artifact_registries is None or artifact_checker is None):
            raise ValueError("Artifact validation requires artifact registries and a checker")

    def resolve_modules_constraints(
        self, dependencies: Sequence[Dependency], module_type: ModuleType
    ) -> List[Dependency]:
        """Resolve every dependency, reporting all failures in one error.

        Raises:
            ApplicationGeneratorError: INFRASTRUCTURE when every failure was
            infrastructural, MODULE_NOT_FOUND otherwise.
        """
        if not self.module_registries.get_registries(module_type):
            logger.warning("Module registries are empty for type: %s", module_type.name)

        resolved: List[Dependency] = []
        details: List[ErrorDetail] = []
        infrastructure_only = True
        for dependency in dependencies:
            try:
                resolved.append(self.resolve_module_constraint(dependency, module_type))
            except ApplicationGeneratorError as exc:
                details.extend(exc.errors or [ErrorDetail.module_not_found(dependency.name, dependency.version)])
                if exc.category != ErrorCategory.INFRASTRUCTURE:
                    infrastructure_only = False

        if details:
            category = ErrorCategory.INFRASTRUCTURE if infrastructure_only else ErrorCategory.MODULE_NOT_FOUND
            raise ApplicationGeneratorError(
                f"Failed to resolve {module_type.name} module version constraints", category, details
            )
        return resolved

    def resolve_module_constraint(self, dependency: Dependency, module_type: ModuleType) -> Dependency:
        """Resolve one dependency; exact versions are returned without any registry call."""
        name, constraint = dependency.name, dependency.version
        if is_exact_version(constraint):
            return dependency

        include_prerelease = dependency.pre_release is None or dependency.pre_release.is_pre_release()
        version_range = build_range(constraint, include_prerelease)
        if version_range is None:
            logger.warning("Invalid version constraint '%s' for module '%s'", constraint, name)
            raise ApplicationGeneratorError(
                f"Invalid version constraint '{constraint}' for module '{name}'",
                ErrorCategory.MODULE_NOT_FOUND,
                [ErrorDetail.module_not_found(name, constraint, f"Invalid version constraint '{constraint}'")],
            )

        primary = self.module_registries.get_registries(module_type)
        candidates, failures, queried = self._collect(primary, dependency, module_type, version_range)

        fallback = self.module_registries.get_fallback_registries(module_type)
        if not candidates and fallback:
            logger.info(
                "No version of %s module '%s' matches '%s' in primary registries, trying fallback registries",
                module_type.name,
                name,
                constraint,
            )
            candidates, fallback_failures, fallback_queried = self._collect(
                fallback, dependency, module_type, version_range
            )
            failures += fallback_failures
            queried += fallback_queried

        if not candidates:
            if queried and failures == queried:
                raise ApplicationGeneratorError(
                    f"All registries failed while resolving {module_type.name} module '{name}'",
                    ErrorCategory.INFRASTRUCTURE,
                    [ErrorDetail.infrastructure_error(None, f"All {queried} registries failed for module '{name}'")],
                )
            raise ApplicationGeneratorError(
                f"No version matching constraint '{constraint}' found for {module_type.name} "
                f"module '{name}' in any registry",
                ErrorCategory.MODULE_NOT_FOUND,
                [ErrorDetail.module_not_found(name, constraint)],
            )

        # stable sort keeps configured registry order among equal versions
        ordered = sorted(candidates, key=lambda c: c.version, reverse=True)
        selected = self._select_published(dependency, module_type, ordered) if self.validate_artifacts else ordered[0]

        logger.info(
            "Resolved %s module '%s' version constraint '%s' to '%s'",
            module_type.name,
            name,
            constraint,
            selected.original,
            extra=extra_context(
                event="resolve",
                component="version_service",
                outcome="resolved",
                package_name=name,
                target=selected.registry.registry_identifier,
            ),
        )
        return dependency.with_version(selected.original)

    def _collect(
        self,
        registries: Sequence[ModuleRegistry],
        dependency: Dependency,
        module_type: ModuleType,
        version_range: VersionRange,
    ) -> Tuple[List[VersionCandidate], int, int]:
        """Query every registry; returns (candidates, infrastructure failures, registries queried)."""
        candidates: List[VersionCandidate] = []
        failures = 0
        for registry in registries:
            try:
                versions = self.resolver_facade.get_available_versions(registry, dependency, module_type)
            except ApplicationGeneratorError as exc:
                if exc.category == ErrorCategory.INFRASTRUCTURE:
                    failures += 1
                logger.warning(
                    "Failed to resolve constraint '%s' for module '%s' from %s: %s",
                    dependency.version,
                    dependency.name,
                    registry.registry_identifier,
                    exc.message,
                )
                continue
            if not versions:
                logger.debug("No versions of '%s' in %s", dependency.name, registry.registry_identifier)
                continue
            candidates.extend(self._matching(versions, dependency.pre_release, version_range, registry))
        return candidates, failures, len(registries)

    @staticmethod
    def _matching(
        versions: Sequence[str],
        pre_release: Optional[PreReleaseFilter],
        version_range: VersionRange,
        registry: ModuleRegistry,
    ) -> List[VersionCandidate]:
        matching = []
        for original in versions:
            parsed = parse_version(original)
            if parsed is None:
                continue
            if not matches_prerelease_filter(parsed, pre_release):
                continue
            if version_range.match(parsed):
                matching.append(VersionCandidate(original, parsed, registry))
        return matching

    def _select_published(
        self, dependency: Dependency, module_type: ModuleType, ordered: Sequence[VersionCandidate]
    ) -> VersionCandidate:
        """First candidate, greatest to least, found in at least one artifact registry.

        A registry that cannot answer is skipped. INFRASTRUCTURE is raised
        only when no existence check got an answer at all.
        """
        details: List[ErrorDetail] = []
        checks = 0
        failures = 0
        for candidate in ordered:
            module = ModuleDefinition(dependency.name, candidate.original)
            registries = self.artifact_registries.get_registries(module_type, bool(candidate.version.prerelease))
            for artifact_registry in registries:
                checks += 1
                try:
                    if self.artifact_checker.exists(module, artifact_registry, module_type):
                        return candidate
                except ApplicationGeneratorError as exc:
                    if exc.category != ErrorCategory.INFRASTRUCTURE:
                        raise
                    failures += 1
                    logger.warning(
                        "Failed to check artifact %s in %s registry: %s",
                        module.id,
                        artifact_registry.type.value,
                        exc.message,
                    )
            logger.info("Artifact for %s is not published, trying the next candidate", module.id)
            details.append(
                ErrorDetail.artifact_not_found(module.id, "Not published in any configured artifact registry")
            )

        if checks and failures == checks:
            raise ApplicationGeneratorError(
                f"Artifact registries failed while checking {module_type.name} module '{dependency.name}'",
                ErrorCategory.INFRASTRUCTURE,
                [ErrorDetail.infrastructure_error(None, f"All {checks} artifact existence checks failed")],
            )
        raise ApplicationGeneratorError(
            f"No published artifact found for {module_type.name} module '{dependency.name}' "
            f"matching '{dependency.version}'",
            ErrorCategory.MODULE_NOT_FOUND,
            details,
        )
