"""Assemble application descriptors from templates."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from common.logging_utils import Timer, extra_context
from constants import ModuleType, ModuleUrlsMode
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from settings import GeneratorConfig
from versioning.models import Dependency, ModuleDefinition
from versioning.service import ModuleVersionService
from .json_provider import JsonProvider
from .models import (
    ApplicationDescriptor,
    ApplicationDescriptorTemplate,
    ResolvedApplicationDescriptor,
    build_application_id,
)
from .service import ModuleDescriptorService
from .validator import ApplicationDependencyValidator

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = "base"


def to_module_definitions(dependencies: Sequence[Dependency]) -> list:
    return [ModuleDefinition(d.name, d.version) for d in dependencies]


class ApplicationDescriptorService:
    """Create an application descriptor from a template and project metadata.

    Args:
        config: Build number, project metadata and module urls mode.
        version_service: Resolves module version constraints.
        descriptor_service: Loads full module descriptors.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        version_service: ModuleVersionService,
        descriptor_service: ModuleDescriptorService,
    ):
        self.config = config
        self.version_service = version_service
        self.descriptor_service = descriptor_service

    def create(self, template: ApplicationDescriptorTemplate) -> ApplicationDescriptor:
        """Resolve, load and assemble the descriptor rendered per ``module_urls_mode``.

        Raises:
            ApplicationGeneratorError: CONFIGURATION_ERROR for an id that does
            not match ``<name>-<version>``, or any resolution/loading failure.
        """
        return self.resolve(template).for_mode(ModuleUrlsMode.from_string(self.config.module_urls_mode))

    def resolve(self, template: ApplicationDescriptorTemplate) -> ResolvedApplicationDescriptor:
        base = self._base_descriptor(template)

        with Timer() as timer:
            modules = self.version_service.resolve_modules_constraints(template.modules, ModuleType.BE)
            ui_modules = self.version_service.resolve_modules_constraints(template.ui_modules, ModuleType.UI)
            be_result = self.descriptor_service.load_modules(ModuleType.BE, to_module_definitions(modules))
            ui_result = self.descriptor_service.load_modules(ModuleType.UI, to_module_definitions(ui_modules))

        logger.info(
            "Created application descriptor %s",
            base.id,
            extra=extra_context(
                event="create", component="application_service", outcome="created", duration_ms=timer.duration_ms()
            ),
        )
        return ResolvedApplicationDescriptor(base, be_result, ui_result)

    def _base_descriptor(self, template: ApplicationDescriptorTemplate) -> ApplicationDescriptor:
        if template.name is None and template.version is None:
            name = self.config.project_name
            version = self._with_build_number(self.config.project_version)
        else:
            name = template.name
            version = self._with_build_number(template.version)
            generated_id = build_application_id(name, template.version)
            if template.id is not None and template.id != generated_id:
                raise ApplicationGeneratorError(
                    "Invalid application id provided in template",
                    ErrorCategory.CONFIGURATION_ERROR,
                    [
                        ErrorDetail.configuration_error(
                            "template", f"Expected id '{generated_id}', found '{template.id}'"
                        )
                    ],
                )

        return ApplicationDescriptor(
            id=build_application_id(name, version),
            name=name,
            version=version,
            description=template.description if template.description and template.description.strip()
            else self.config.project_description,
            platform=template.platform if template.platform and template.platform.strip() else DEFAULT_PLATFORM,
            dependencies=list(template.dependencies or []),
        )

    def _with_build_number(self, version: Optional[str]) -> Optional[str]:
        build_number = self.config.build_number
        if version and version.endswith("SNAPSHOT") and build_number and build_number.strip():
            return f"{version}.{build_number}"
        return version


class ApplicationDescriptorGenerator:
    """Validate a template, create the descriptor and write ``<id>.json``."""

    def __init__(
        self,
        descriptor_service: ApplicationDescriptorService,
        validator: ApplicationDependencyValidator,
        json_provider: JsonProvider,
    ):
        self.descriptor_service = descriptor_service
        self.validator = validator
        self.json_provider = json_provider

    def generate(self, template: ApplicationDescriptorTemplate, output_dir: str) -> ApplicationDescriptor:
        self.validator.validate_dependencies(template)
        application = self.descriptor_service.create(template)
        self.json_provider.write_application(application, output_dir)
        return application
