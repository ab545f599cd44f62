"""Application descriptor, template and update-result models."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from constants import ModuleUrlsMode
from versioning.models import Dependency, ModuleDefinition

Descriptor = Dict[str, Any]


def _modules_from(items: Optional[List[Dict[str, Any]]]) -> List[ModuleDefinition]:
    return [ModuleDefinition.from_dict(item) for item in items or []]


def _dependencies_from(items: Optional[List[Dict[str, Any]]]) -> List[Dependency]:
    return [Dependency.from_dict(item) for item in items or []]


def build_application_id(name: Optional[str], version: Optional[str]) -> str:
    return f"{name}-{version}"


@dataclass(frozen=True)
class ApplicationDescriptor:  # pylint: disable=too-many-instance-attributes
    """The resolved manifest of every module composing one application release.

    ``module_descriptors`` and ``ui_module_descriptors`` are None when the
    descriptor was rendered in url-only mode.
    """

    id: str  # pylint: disable=invalid-name
    name: Optional[str]
    version: Optional[str]
    description: Optional[str] = None
    platform: Optional[str] = None
    modules: List[ModuleDefinition] = field(default_factory=list)
    ui_modules: List[ModuleDefinition] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)
    module_descriptors: Optional[List[Descriptor]] = None
    ui_module_descriptors: Optional[List[Descriptor]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationDescriptor":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            version=data.get("version"),
            description=data.get("description"),
            platform=data.get("platform"),
            modules=_modules_from(data.get("modules")),
            ui_modules=_modules_from(data.get("uiModules")),
            dependencies=_dependencies_from(data.get("dependencies")),
            module_descriptors=copy.deepcopy(data.get("moduleDescriptors")),
            ui_module_descriptors=copy.deepcopy(data.get("uiModuleDescriptors")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "name": self.name, "version": self.version}
        if self.description is not None:
            result["description"] = self.description
        if self.platform is not None:
            result["platform"] = self.platform
        result["modules"] = [m.to_dict() for m in self.modules]
        result["uiModules"] = [m.to_dict() for m in self.ui_modules]
        result["dependencies"] = [d.to_dict() for d in self.dependencies]
        if self.module_descriptors is not None:
            result["moduleDescriptors"] = self.module_descriptors
        if self.ui_module_descriptors is not None:
            result["uiModuleDescriptors"] = self.ui_module_descriptors
        return result


@dataclass(frozen=True)
class ApplicationDescriptorTemplate:
    """Unresolved application definition: module constraints, not versions."""

    id: Optional[str] = None  # pylint: disable=invalid-name
    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    platform: Optional[str] = None
    modules: List[Dependency] = field(default_factory=list)
    ui_modules: List[Dependency] = field(default_factory=list)
    dependencies: Optional[List[Dependency]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationDescriptorTemplate":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            version=data.get("version"),
            description=data.get("description"),
            platform=data.get("platform"),
            modules=_dependencies_from(data.get("modules")),
            ui_modules=_dependencies_from(data.get("uiModules")),
            dependencies=None if data.get("dependencies") is None else _dependencies_from(data["dependencies"]),
        )


@dataclass(frozen=True)
class ModulesLoadResult:
    """Module definitions paired with the full descriptors they were loaded from."""

    artifacts: List[ModuleDefinition] = field(default_factory=list)
    descriptors: List[Descriptor] = field(default_factory=list)


@dataclass(frozen=True)
class LoaderResult:
    source_url: Optional[str]
    descriptor: Descriptor


@dataclass(frozen=True)
class ResolvedApplicationDescriptor:
    """Everything needed to render a descriptor in any ``ModuleUrlsMode``."""

    descriptor: ApplicationDescriptor
    be_result: ModulesLoadResult
    ui_result: ModulesLoadResult

    def to_full_descriptor(self) -> ApplicationDescriptor:
        return replace(
            self.descriptor,
            modules=[m.without_url() for m in self.be_result.artifacts],
            ui_modules=[m.without_url() for m in self.ui_result.artifacts],
            module_descriptors=list(self.be_result.descriptors),
            ui_module_descriptors=list(self.ui_result.descriptors),
        )

    def to_url_only_descriptor(self) -> ApplicationDescriptor:
        return replace(
            self.descriptor,
            modules=list(self.be_result.artifacts),
            ui_modules=list(self.ui_result.artifacts),
            module_descriptors=None,
            ui_module_descriptors=None,
        )

    def for_mode(self, mode: ModuleUrlsMode) -> ApplicationDescriptor:
        rendered = self.to_url_only_descriptor() if mode.need_descriptor_url() else self.to_full_descriptor()
        if not mode.need_full_descriptor():
            return rendered
        return replace(
            rendered,
            module_descriptors=list(self.be_result.descriptors),
            ui_module_descriptors=list(self.ui_result.descriptors),
        )


@dataclass(frozen=True)
class UpdateConfig:
    allow_downgrade: bool = False
    allow_add_modules: bool = False
    remove_unlisted_modules: bool = False
    use_project_version: bool = False
    no_version_bump: bool = False


@dataclass
class UpdateResult:
    """Per module type record of what an update changed."""

    be_added: List[ModuleDefinition] = field(default_factory=list)
    be_upgraded: List[Dict[str, str]] = field(default_factory=list)
    be_downgraded: List[Dict[str, str]] = field(default_factory=list)
    be_removed: List[ModuleDefinition] = field(default_factory=list)
    ui_added: List[ModuleDefinition] = field(default_factory=list)
    ui_upgraded: List[Dict[str, str]] = field(default_factory=list)
    ui_downgraded: List[Dict[str, str]] = field(default_factory=list)
    ui_removed: List[ModuleDefinition] = field(default_factory=list)
    previous_version: Optional[str] = None
    new_version: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return any(
            (
                self.be_added, self.be_upgraded, self.be_downgraded, self.be_removed,
                self.ui_added, self.ui_upgraded, self.ui_downgraded, self.ui_removed,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        def section(added, upgraded, downgraded, removed):
            return {
                "added": [m.id for m in added],
                "upgraded": list(upgraded),
                "downgraded": list(downgraded),
                "removed": [m.id for m in removed],
            }

        return {
            "previousVersion": self.previous_version,
            "newVersion": self.new_version,
            "modules": section(self.be_added, self.be_upgraded, self.be_downgraded, self.be_removed),
            "uiModules": section(self.ui_added, self.ui_upgraded, self.ui_downgraded, self.ui_removed),
        }
