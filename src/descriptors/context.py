"""Wire registries, resolvers, loaders and services from one configuration."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from artifacts.docker_hub import DockerHubExistenceChecker
from artifacts.facade import ArtifactExistenceCheckerFacade
from artifacts.folio_npm import FolioNpmExistenceChecker
from common.object_store import MinioObjectStorage, ObjectStorage
from constants import RegistryType
from registry.models import ModuleRegistries
from registry.provider import ArtifactRegistryProvider, ModuleRegistryProvider
from settings import GeneratorConfig
from versioning.cache import TTLCache
from versioning.resolvers import (
    OkapiVersionResolver,
    S3VersionResolver,
    SimpleVersionResolver,
    VersionResolverFacade,
)
from versioning.service import ModuleVersionService
from .application import ApplicationDescriptorGenerator, ApplicationDescriptorService
from .json_provider import JsonProvider
from .loaders import (
    ModuleDescriptorLoaderFacade,
    OkapiDescriptorLoader,
    S3DescriptorLoader,
    SimpleDescriptorLoader,
)
from .models import ApplicationDescriptor, ApplicationDescriptorTemplate, UpdateConfig, UpdateResult
from .service import ModuleDescriptorService
from .update import ApplicationDescriptorUpdateService
from .validator import ApplicationDependencyValidator

logger = logging.getLogger(__name__)


def _uses_object_storage(registries: ModuleRegistries) -> bool:
    every = (
        registries.be_registries
        + registries.ui_registries
        + registries.be_fallback_registries
        + registries.ui_fallback_registries
    )
    return any(r.type == RegistryType.AWS_S3 for r in every)


@dataclass
class GeneratorContext:  # pylint: disable=too-many-instance-attributes
    """Fully wired services for one generator run."""

    config: GeneratorConfig
    json_provider: JsonProvider
    version_service: ModuleVersionService
    descriptor_service: ModuleDescriptorService
    application_service: ApplicationDescriptorService
    generator: ApplicationDescriptorGenerator
    update_service: ApplicationDescriptorUpdateService

    @classmethod
    def from_config(
        cls,
        config: GeneratorConfig,
        storage: Optional[ObjectStorage] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "GeneratorContext":
        """Build every collaborator.

        Args:
            config: Generator configuration.
            storage: Object-store transport; created from the environment
                only when an S3 registry is configured and none is given.
            cancel_event: Token aborting pending HTTP retries and listings.

        Raises:
            ApplicationGeneratorError: CONFIGURATION_ERROR for invalid registries.
        """
        module_registries = ModuleRegistryProvider().get_module_registries(config)
        if storage is None and _uses_object_storage(module_registries):
            storage = MinioObjectStorage.from_env(config.s3_endpoint, config.s3_region)

        timeout = config.request_timeout
        resolvers = [
            OkapiVersionResolver(timeout=timeout, cancel_event=cancel_event),
            SimpleVersionResolver(cache=TTLCache(), timeout=timeout, cancel_event=cancel_event),
        ]
        loaders = [
            OkapiDescriptorLoader(timeout=timeout, cancel_event=cancel_event),
            SimpleDescriptorLoader(timeout=timeout, cancel_event=cancel_event),
        ]
        if storage is not None:
            resolvers.append(S3VersionResolver(storage, config.s3_batch_size, cancel_event=cancel_event))
            loaders.append(S3DescriptorLoader(storage, config.s3_batch_size, cancel_event=cancel_event))

        artifact_registries = None
        artifact_checker = None
        if config.validate_artifacts:
            artifact_registries = ArtifactRegistryProvider().get_artifact_registries(config)
            artifact_checker = ArtifactExistenceCheckerFacade(
                [DockerHubExistenceChecker(cancel_event=cancel_event), FolioNpmExistenceChecker(cancel_event=cancel_event)]
            )

        version_service = ModuleVersionService(
            module_registries,
            VersionResolverFacade(resolvers),
            artifact_registries,
            artifact_checker,
            config.validate_artifacts,
        )
        descriptor_service = ModuleDescriptorService(module_registries, ModuleDescriptorLoaderFacade(loaders))
        json_provider = JsonProvider(config.project_properties())
        application_service = ApplicationDescriptorService(config, version_service, descriptor_service)
        logger.debug("Generator services configured")
        return cls(
            config=config,
            json_provider=json_provider,
            version_service=version_service,
            descriptor_service=descriptor_service,
            application_service=application_service,
            generator=ApplicationDescriptorGenerator(
                application_service, ApplicationDependencyValidator(config.project_version), json_provider
            ),
            update_service=ApplicationDescriptorUpdateService(
                config, version_service, descriptor_service, json_provider
            ),
        )

    def generate_from_file(self, template_path: str, output_dir: str) -> ApplicationDescriptor:
        """Read a template (with ``${project.*}`` substitution) and write ``<id>.json``."""
        template = self.json_provider.read_json_from_file(
            template_path, ApplicationDescriptorTemplate.from_dict, use_substitution=True
        )
        return self.generator.generate(template, output_dir)

    def update_from_file(
        self,
        descriptor_path: str,
        module_ids: Optional[str],
        ui_module_ids: Optional[str],
        update_config: Optional[UpdateConfig] = None,
        output_dir: Optional[str] = None,
    ) -> Tuple[ApplicationDescriptor, UpdateResult]:
        application = self.json_provider.read_json_from_file(descriptor_path, ApplicationDescriptor.from_dict)
        return self.update_service.update(application, module_ids, ui_module_ids, update_config, output_dir)
