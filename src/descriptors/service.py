"""Load full module descriptors for resolved modules from ordered registries."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from common.logging_utils import extra_context
from constants import ModuleType
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from registry.models import ModuleRegistries
from versioning.models import ModuleDefinition
from .loaders.facade import ModuleDescriptorLoaderFacade
from .models import LoaderResult, ModulesLoadResult

logger = logging.getLogger(__name__)


class ModuleDescriptorService:
    """Walk registries in configured order; the first one to yield a descriptor wins.

    Fallback registries are consulted for modules still missing after every
    primary registry was tried.
    """

    def __init__(self, module_registries: ModuleRegistries, loader_facade: ModuleDescriptorLoaderFacade):
        self.module_registries = module_registries
        self.loader_facade = loader_facade

    def load_modules(self, module_type: ModuleType, modules: Sequence[ModuleDefinition]) -> ModulesLoadResult:
        """Load every module's descriptor.

        Raises:
            ApplicationGeneratorError: MODULE_NOT_FOUND listing every missing
            id, INFRASTRUCTURE when every registry lookup failed, or
            CONFIGURATION_ERROR when a loaded descriptor has a malformed id.
        """
        if not modules:
            return ModulesLoadResult()

        found: Dict[str, LoaderResult] = {}
        failures = 0
        queried = 0
        for registries in (
            self.module_registries.get_registries(module_type),
            self.module_registries.get_fallback_registries(module_type),
        ):
            for registry in registries:
                pending = [m for m in modules if m.id not in found]
                if not pending:
                    break
                for module in pending:
                    queried += 1
                    try:
                        result = self.loader_facade.find_descriptor(registry, module)
                    except ApplicationGeneratorError as exc:
                        if exc.category == ErrorCategory.INFRASTRUCTURE:
                            failures += 1
                        logger.warning(
                            "Failed to load module descriptor %s from %s: %s",
                            module.id,
                            registry.registry_identifier,
                            exc.message,
                        )
                        continue
                    if result is not None:
                        found[module.id] = result

        missing = [m for m in modules if m.id not in found]
        if missing:
            if queried and failures == queried:
                category = ErrorCategory.INFRASTRUCTURE
            else:
                category = ErrorCategory.MODULE_NOT_FOUND
            raise ApplicationGeneratorError(
                f"Failed to load {module_type.name} module descriptors",
                category,
                [ErrorDetail.module_not_found_by_id(m.id) for m in missing],
            )

        artifacts: List[ModuleDefinition] = []
        descriptors = []
        for module in modules:
            result = found[module.id]
            artifacts.append(self._to_module_definition(result))
            descriptors.append(result.descriptor)

        logger.info(
            "Loaded %d %s module descriptors",
            len(descriptors),
            module_type.name,
            extra=extra_context(event="load", component="descriptor_service", outcome="loaded", count=len(descriptors)),
        )
        return ModulesLoadResult(artifacts, descriptors)

    @staticmethod
    def _to_module_definition(result: LoaderResult) -> ModuleDefinition:
        descriptor_id = result.descriptor.get("id")
        definition = ModuleDefinition.from_id(str(descriptor_id), result.source_url) if descriptor_id else None
        if definition is None or definition.is_latest:
            raise ApplicationGeneratorError(
                f"Invalid module descriptor id: {descriptor_id}",
                ErrorCategory.CONFIGURATION_ERROR,
                [ErrorDetail.configuration_error(result.source_url or "descriptor", f"Invalid module id: {descriptor_id}")],
            )
        return definition
