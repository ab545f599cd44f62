"""Update an existing application descriptor with new module versions.

The update is a single pass over an immutable input: requested changes are
validated, ranges and ``latest`` are resolved, changed descriptors are
loaded and spliced in by module name, and the application version is
bumped. Every validation stage reports all offending modules at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from constants import Constants, ModuleType
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from settings import GeneratorConfig
from versioning.models import Dependency, ModuleDefinition, PreReleaseFilter
from versioning.semver import apply_build_number, increment_patch, parse_version
from versioning.service import ModuleVersionService
from .json_provider import JsonProvider
from .models import (
    ApplicationDescriptor,
    ApplicationDescriptorTemplate,
    Descriptor,
    ModulesLoadResult,
    UpdateConfig,
    UpdateResult,
    build_application_id,
)
from .service import ModuleDescriptorService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Change:
    requested: Dependency
    resolved: str
    existing: Optional[ModuleDefinition]

    @property
    def is_latest(self) -> bool:
        return self.requested.version == Constants.LATEST_VERSION


def parse_module_ids(value: Optional[str]) -> List[Dependency]:
    """Parse comma-separated ``name-version`` / ``name:latest`` ids.

    Raises:
        ApplicationGeneratorError: VALIDATION_FAILED listing every malformed id.
    """
    if not value or not value.strip():
        return []

    dependencies: List[Dependency] = []
    invalid: List[str] = []
    for raw in value.split(","):
        module_id = raw.strip()
        latest_suffix = ":" + Constants.LATEST_VERSION
        if latest_suffix in module_id:
            name = module_id[: module_id.index(":")]
            if name:
                dependencies.append(Dependency(name, Constants.LATEST_VERSION, PreReleaseFilter.TRUE))
                continue
        else:
            definition = ModuleDefinition.from_id(module_id)
            if definition is not None:
                dependencies.append(definition.to_dependency())
                continue
        invalid.append(module_id)

    if invalid:
        raise ApplicationGeneratorError(
            "Invalid module id format",
            ErrorCategory.VALIDATION_FAILED,
            [ErrorDetail.validation_error(i, f"Invalid module id format: {i}") for i in invalid],
        )
    return dependencies


class ApplicationDescriptorUpdateService:
    """Apply requested module version changes to an application descriptor.

    Args:
        config: Build number and project version used for version bumps.
        version_service: Resolves ``latest`` and range targets.
        descriptor_service: Loads descriptors of changed modules.
        json_provider: Writes results when an output directory is given.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        version_service: ModuleVersionService,
        descriptor_service: ModuleDescriptorService,
        json_provider: Optional[JsonProvider] = None,
    ):
        self.config = config
        self.version_service = version_service
        self.descriptor_service = descriptor_service
        self.json_provider = json_provider

    def update(
        self,
        application: ApplicationDescriptor,
        module_ids: Optional[str],
        ui_module_ids: Optional[str],
        update_config: Optional[UpdateConfig] = None,
        output_dir: Optional[str] = None,
    ) -> Tuple[ApplicationDescriptor, UpdateResult]:
        """Update from comma-separated module id strings."""
        if (not module_ids or not module_ids.strip()) and (not ui_module_ids or not ui_module_ids.strip()):
            raise ApplicationGeneratorError(
                "Update failed: both module and UI module lists are missing or empty",
                ErrorCategory.VALIDATION_FAILED,
            )
        return self.update_modules(
            application,
            parse_module_ids(module_ids),
            parse_module_ids(ui_module_ids),
            update_config,
            output_dir,
        )

    def update_from_template(
        self,
        application: ApplicationDescriptor,
        template: ApplicationDescriptorTemplate,
        update_config: Optional[UpdateConfig] = None,
        output_dir: Optional[str] = None,
    ) -> Tuple[ApplicationDescriptor, UpdateResult]:
        """Update from a template; its dependencies replace the descriptor's first."""
        if template.dependencies is not None:
            application = replace(application, dependencies=list(template.dependencies))
        return self.update_modules(application, template.modules, template.ui_modules, update_config, output_dir)

    def update_modules(
        self,
        application: ApplicationDescriptor,
        modules: Sequence[Dependency],
        ui_modules: Sequence[Dependency],
        update_config: Optional[UpdateConfig] = None,
        output_dir: Optional[str] = None,
    ) -> Tuple[ApplicationDescriptor, UpdateResult]:
        """Validate, resolve, load and splice; returns a new descriptor and the change record.

        Raises:
            ApplicationGeneratorError: VALIDATION_FAILED for unknown modules or
            disallowed downgrades, or any resolution/loading failure.
        """
        update_config = update_config or UpdateConfig()
        requested = {ModuleType.BE: _dedupe(modules), ModuleType.UI: _dedupe(ui_modules)}
        existing = {ModuleType.BE: application.modules, ModuleType.UI: application.ui_modules}

        self._validate_names(requested, existing, update_config)

        changes: Dict[ModuleType, List[_Change]] = {}
        for module_type in (ModuleType.BE, ModuleType.UI):
            resolved = self.version_service.resolve_modules_constraints(requested[module_type], module_type)
            by_name = {m.name: m for m in reversed(existing[module_type])}
            changes[module_type] = [
                _Change(request, dependency.version, by_name.get(request.name))
                for request, dependency in zip(requested[module_type], resolved)
            ]

        result = UpdateResult(previous_version=application.version)
        effective = self._classify(changes, update_config, result)

        be_loaded = self._load(ModuleType.BE, effective[ModuleType.BE])
        ui_loaded = self._load(ModuleType.UI, effective[ModuleType.UI])

        removed_be = self._unlisted(requested[ModuleType.BE], application.modules, update_config)
        removed_ui = self._unlisted(requested[ModuleType.UI], application.ui_modules, update_config)
        result.be_removed.extend(removed_be)
        result.ui_removed.extend(removed_ui)

        version = self._updated_version(application.version, update_config)
        result.new_version = version
        updated = replace(
            application,
            id=build_application_id(application.name, version),
            version=version,
            modules=_splice_modules(application.modules, be_loaded, removed_be, application.module_descriptors),
            ui_modules=_splice_modules(
                application.ui_modules, ui_loaded, removed_ui, application.ui_module_descriptors
            ),
            module_descriptors=_splice_descriptors(application.module_descriptors, be_loaded, removed_be),
            ui_module_descriptors=_splice_descriptors(application.ui_module_descriptors, ui_loaded, removed_ui),
        )

        logger.info("Application descriptor %s updated to %s", application.id, updated.id)
        if output_dir is not None and self.json_provider is not None:
            self.json_provider.write_application(updated, output_dir)
            self.json_provider.write_update_result(result, output_dir)
        return updated, result

    @staticmethod
    def _validate_names(
        requested: Dict[ModuleType, List[Dependency]],
        existing: Dict[ModuleType, List[ModuleDefinition]],
        update_config: UpdateConfig,
    ) -> None:
        details = []
        for module_type, dependencies in requested.items():
            names = {m.name for m in existing[module_type]}
            for dependency in dependencies:
                if dependency.name in names or dependency.version == Constants.LATEST_VERSION:
                    continue
                if update_config.allow_add_modules:
                    continue
                details.append(
                    ErrorDetail.validation_error(
                        dependency.name,
                        f"{module_type.name} module '{dependency.name}' is not present in the application descriptor",
                    )
                )
        if details:
            raise ApplicationGeneratorError("Invalid input modules to update", ErrorCategory.VALIDATION_FAILED, details)

    @staticmethod
    def _classify(
        changes: Dict[ModuleType, List[_Change]], update_config: UpdateConfig, result: UpdateResult
    ) -> Dict[ModuleType, List[_Change]]:
        """Drop unchanged modules, record the rest and batch disallowed downgrades."""
        effective: Dict[ModuleType, List[_Change]] = {}
        details = []
        for module_type, type_changes in changes.items():
            added, upgraded, downgraded = _result_lists(result, module_type)
            kept = []
            for change in type_changes:
                new_module = ModuleDefinition(change.requested.name, change.resolved)
                if change.existing is None:
                    added.append(new_module)
                    kept.append(change)
                    continue

                old_version = parse_version(change.existing.version)
                new_version = parse_version(change.resolved)
                if old_version is None or new_version is None:
                    logger.warning(
                        "Module %s has a non-semver version, leaving it unchanged", change.existing.id
                    )
                    continue

                entry = {
                    "name": change.requested.name,
                    "previousVersion": change.existing.version,
                    "newVersion": change.resolved,
                }
                if new_version > old_version:
                    upgraded.append(entry)
                    kept.append(change)
                elif new_version < old_version and update_config.allow_downgrade:
                    downgraded.append(entry)
                    kept.append(change)
                elif change.is_latest or update_config.allow_downgrade:
                    logger.info("Module %s is already at %s", change.requested.name, change.existing.version)
                else:
                    details.append(
                        ErrorDetail.validation_error(
                            change.existing.id,
                            f"{change.requested.name} version older or the same: {change.resolved}",
                        )
                    )
            effective[module_type] = kept

        if details:
            raise ApplicationGeneratorError("Invalid input modules to update", ErrorCategory.VALIDATION_FAILED, details)
        return effective

    def _load(self, module_type: ModuleType, changes: List[_Change]) -> ModulesLoadResult:
        modules = [ModuleDefinition(c.requested.name, c.resolved) for c in changes]
        return self.descriptor_service.load_modules(module_type, modules)

    @staticmethod
    def _unlisted(
        requested: List[Dependency], modules: List[ModuleDefinition], update_config: UpdateConfig
    ) -> List[ModuleDefinition]:
        if not update_config.remove_unlisted_modules:
            return []
        names = {d.name for d in requested}
        return [m for m in modules if m.name not in names]

    def _updated_version(self, version: Optional[str], update_config: UpdateConfig) -> Optional[str]:
        if update_config.use_project_version:
            return self.config.project_version
        if update_config.no_version_bump:
            return version

        parsed = parse_version(version)
        if parsed is None:
            logger.warning("Application version '%s' is not semver, leaving it unchanged", version)
            return version

        build_number = self.config.build_number
        if build_number and build_number.strip() and parsed.prerelease:
            return str(apply_build_number(parsed, build_number.strip()))
        return str(increment_patch(parsed))


def _dedupe(dependencies: Sequence[Dependency]) -> List[Dependency]:
    """Last request per module name wins."""
    by_name: Dict[str, Dependency] = {}
    for dependency in dependencies or []:
        by_name.pop(dependency.name, None)
        by_name[dependency.name] = dependency
    return list(by_name.values())


def _result_lists(result: UpdateResult, module_type: ModuleType):
    if module_type == ModuleType.BE:
        return result.be_added, result.be_upgraded, result.be_downgraded
    return result.ui_added, result.ui_upgraded, result.ui_downgraded


def _splice_modules(
    modules: List[ModuleDefinition],
    loaded: ModulesLoadResult,
    removed: List[ModuleDefinition],
    descriptors: Optional[List[Descriptor]],
) -> List[ModuleDefinition]:
    keep_urls = descriptors is None or any(m.url for m in modules)
    replacements: Dict[str, ModuleDefinition] = {}
    for artifact in loaded.artifacts:
        replacements.setdefault(artifact.name, artifact if keep_urls else artifact.without_url())

    removed_names = {m.name for m in removed}
    spliced = []
    for module in modules:
        if module.name in removed_names:
            continue
        spliced.append(replacements.pop(module.name, module))
    spliced.extend(replacements.values())
    return spliced


def _descriptor_name(descriptor: Descriptor) -> Optional[str]:
    definition = ModuleDefinition.from_id(str(descriptor.get("id") or ""))
    return definition.name if definition is not None else None


def _splice_descriptors(
    descriptors: Optional[List[Descriptor]], loaded: ModulesLoadResult, removed: List[ModuleDefinition]
) -> Optional[List[Descriptor]]:
    if descriptors is None:
        return None

    replacements: Dict[str, Descriptor] = {}
    for descriptor in loaded.descriptors:
        name = _descriptor_name(descriptor)
        if name is not None:
            replacements.setdefault(name, descriptor)

    removed_names = {m.name for m in removed}
    spliced = []
    for descriptor in descriptors:
        name = _descriptor_name(descriptor)
        if name in removed_names:
            continue
        spliced.append(replacements.pop(name, descriptor) if name is not None else descriptor)
    spliced.extend(replacements.values())
    return spliced
