"""Validation of dependency declarations in application templates."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import semantic_version

from constants import Constants
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from versioning.models import Dependency
from versioning.semver import build_range, parse_version
from .models import ApplicationDescriptorTemplate

logger = logging.getLogger(__name__)


class ApplicationDependencyValidator:
    """Checks that every dependency is well formed and fits the release kind.

    A stable application (no prerelease tag in its version) may only depend
    on stable versions; ``latest`` and prerelease versions are rejected.
    """

    def __init__(self, project_version: Optional[str] = None):
        self.project_version = project_version

    def validate_dependencies(
        self, template: ApplicationDescriptorTemplate, project_version: Optional[str] = None
    ) -> None:
        """Validate modules, UI modules and dependencies of ``template``.

        Raises:
            ApplicationGeneratorError: CONFIGURATION_ERROR when the application
            version is not semver, VALIDATION_FAILED listing every invalid
            dependency otherwise.
        """
        application_version = self._application_version(template, project_version or self.project_version)
        stable = not application_version.prerelease
        logger.debug("Validating dependencies of a %s application", "stable" if stable else "prerelease")

        details: List[ErrorDetail] = []
        for dependencies in (template.modules, template.ui_modules, template.dependencies):
            details.extend(self._validate_all(dependencies, stable))

        if details:
            raise ApplicationGeneratorError("Invalid dependencies found", ErrorCategory.VALIDATION_FAILED, details)

    @staticmethod
    def _application_version(
        template: ApplicationDescriptorTemplate, project_version: Optional[str]
    ) -> semantic_version.Version:
        if template.version is not None:
            source, version = "Template", template.version
        else:
            source, version = "Project", project_version
        parsed = parse_version(version)
        if parsed is None:
            raise ApplicationGeneratorError(
                f"{source} version must satisfy semver: {version}",
                ErrorCategory.CONFIGURATION_ERROR,
                [ErrorDetail.configuration_error(source.lower(), f"Version must satisfy semver: {version}")],
            )
        return parsed

    def _validate_all(self, dependencies: Optional[Sequence[Dependency]], stable: bool) -> List[ErrorDetail]:
        details = []
        for index, dependency in enumerate(dependencies or []):
            message = self._validate(dependency, index, stable)
            if message is not None:
                details.append(ErrorDetail.validation_error(dependency.name or None, message))
        return details

    @staticmethod
    def _validate(dependency: Dependency, index: int, stable: bool) -> Optional[str]:
        name, version = dependency.name, dependency.version
        if not name or not name.strip():
            return f"Dependency name cannot be empty at index: {index}"

        if version == Constants.LATEST_VERSION:
            if stable:
                return f"Dependency '{name}' version '{version}' must be stable for a stable release"
            return None

        parsed = parse_version(version)
        if parsed is None:
            if not version or build_range(version) is None:
                return f"Dependency '{name}' version '{version}' must satisfy semver"
            return None

        if stable and parsed.prerelease:
            return f"Dependency '{name}' version '{version}' must be stable for a stable release"
        return None
