"""Build validated, defaulted registry collections from configuration.

Every invalid entry across every slot is collected first and reported in a
single CONFIGURATION_ERROR.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from constants import ArtifactRegistryType, Constants, RegistryType
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from registry.artifact import (
    ArtifactRegistries,
    ArtifactRegistry,
    DockerHubArtifactRegistry,
    FolioNpmArtifactRegistry,
)
from registry.models import (
    ModuleRegistries,
    ModuleRegistry,
    OkapiModuleRegistry,
    S3ModuleRegistry,
    SimpleModuleRegistry,
)
from registry.parser import normalize_s3_path, normalize_url, parse_artifact_registry, parse_module_registry
from settings import GeneratorConfig

logger = logging.getLogger(__name__)

_SUPPORTED_MODULE_TYPES = {t.value for t in RegistryType}
_DOCKER_TYPES = {ArtifactRegistryType.DOCKER_HUB.value}
_NPM_TYPES = {ArtifactRegistryType.FOLIO_NPM.value}

Processed = Tuple[List[Any], List[str]]


def _describe_config(entry: Mapping[str, Any]) -> str:
    fields = ", ".join(f"{k}={v}" for k, v in entry.items())
    return f"ConfigRegistry({fields})"


def _split_strings(value: Optional[str]) -> List[str]:
    if not value or not value.strip():
        return []
    return value.split(",")


def _raise_invalid(message: str, invalid: Sequence[str]) -> None:
    if not invalid:
        return
    raise ApplicationGeneratorError(
        message,
        ErrorCategory.CONFIGURATION_ERROR,
        [ErrorDetail.configuration_error(item, "invalid registry definition") for item in invalid],
    )


class ModuleRegistryProvider:
    """Merge command-line and configuration module registries per module type."""

    def get_module_registries(self, config: GeneratorConfig) -> ModuleRegistries:
        invalid: List[str] = []

        generic_cmd = self._collect(self._process_strings(config.registry_string), invalid)
        generic_cfg = self._collect(self._process_configs(config.registries), invalid)

        def merge(type_string: Optional[str], type_configs: List[Dict[str, Any]],
                  include_generic: bool) -> List[ModuleRegistry]:
            result = list(self._collect(self._process_strings(type_string), invalid))
            if include_generic:
                result.extend(generic_cmd)
            if not config.override_config_registries:
                result.extend(self._collect(self._process_configs(type_configs), invalid))
                if include_generic:
                    result.extend(generic_cfg)
            return result

        registries = ModuleRegistries(
            be_registries=merge(config.be_registry_string, config.be_registries, True),
            ui_registries=merge(config.ui_registry_string, config.ui_registries, True),
            be_fallback_registries=merge(config.be_fallback_registry_string, config.be_fallback_registries, False),
            ui_fallback_registries=merge(config.ui_fallback_registry_string, config.ui_fallback_registries, False),
        )
        _raise_invalid(
            "Invalid registries found, check the provided registry list", invalid
        )
        logger.debug(
            "Module registries: be=%d ui=%d be_fallback=%d ui_fallback=%d",
            len(registries.be_registries),
            len(registries.ui_registries),
            len(registries.be_fallback_registries),
            len(registries.ui_fallback_registries),
        )
        return registries

    @staticmethod
    def _collect(processed: Processed, invalid: List[str]) -> List[ModuleRegistry]:
        registries, bad = processed
        invalid.extend(bad)
        return registries

    @staticmethod
    def _process_strings(value: Optional[str]) -> Processed:
        registries: List[ModuleRegistry] = []
        invalid: List[str] = []
        for part in _split_strings(value):
            registry = parse_module_registry(part)
            if registry is None:
                invalid.append(f"CommandLineRegistry(stringValue={part})")
            else:
                registries.append(registry)
        return registries, invalid

    @staticmethod
    def _process_configs(entries: Optional[Iterable[Mapping[str, Any]]]) -> Processed:
        registries: List[ModuleRegistry] = []
        invalid: List[str] = []
        for entry in entries or []:
            kind = str(entry.get("type") or "").strip().lower()
            if kind not in _SUPPORTED_MODULE_TYPES:
                invalid.append(_describe_config(entry))
                continue
            registry = to_module_registry(kind, entry)
            if not registry.is_valid():
                invalid.append(_describe_config(entry))
                continue
            registries.append(registry.with_generated_fields())
        return registries, invalid


def to_module_registry(kind: str, entry: Mapping[str, Any]) -> ModuleRegistry:
    """Convert one configuration mapping to a module registry."""
    public_url = entry.get("public_url_template")
    public_url = public_url.strip() if isinstance(public_url, str) and public_url.strip() else None
    if kind == RegistryType.AWS_S3.value:
        return S3ModuleRegistry(
            bucket=str(entry.get("bucket") or "").strip(),
            path=normalize_s3_path(entry.get("path")),
            public_url=public_url,
        )
    registry_cls = OkapiModuleRegistry if kind == RegistryType.OKAPI.value else SimpleModuleRegistry
    return registry_cls(url=normalize_url(entry.get("url")), public_url=public_url)


def to_artifact_registry(entry: Mapping[str, Any]) -> ArtifactRegistry:
    """Convert one configuration mapping to an artifact registry."""
    namespace = str(entry.get("namespace") or "").strip()
    base_url = entry.get("base_url")
    registry_cls = DockerHubArtifactRegistry \
        if str(entry.get("type") or "").strip().lower() == ArtifactRegistryType.DOCKER_HUB.value \
        else FolioNpmArtifactRegistry
    if isinstance(base_url, str) and base_url.strip():
        return registry_cls(namespace=namespace, base_url=normalize_url(base_url))
    return registry_cls(namespace=namespace)


class ArtifactRegistryProvider:
    """Build artifact registries for the existence gate, with defaults."""

    def get_artifact_registries(self, config: GeneratorConfig) -> ArtifactRegistries:
        invalid: List[str] = []

        def build(string_value: Optional[str], kind: ArtifactRegistryType,
                  entries: Optional[List[Dict[str, Any]]], supported: Iterable[str]) -> List[ArtifactRegistry]:
            result = self._process_strings(string_value, kind, invalid)
            result.extend(self._process_configs(entries, set(supported), invalid))
            return result

        unified = build(config.artifact_registries_string, ArtifactRegistryType.DOCKER_HUB,
                        config.artifact_registries, _DOCKER_TYPES | _NPM_TYPES)
        be = build(config.be_artifact_registries_string, ArtifactRegistryType.DOCKER_HUB,
                   config.be_artifact_registries, _DOCKER_TYPES)
        ui = build(config.ui_artifact_registries_string, ArtifactRegistryType.FOLIO_NPM,
                   config.ui_artifact_registries, _NPM_TYPES)
        be_pre = build(config.be_pre_release_artifact_registries_string, ArtifactRegistryType.DOCKER_HUB,
                       config.be_pre_release_artifact_registries, _DOCKER_TYPES)
        ui_pre = build(config.ui_pre_release_artifact_registries_string, ArtifactRegistryType.FOLIO_NPM,
                       config.ui_pre_release_artifact_registries, _NPM_TYPES)

        _raise_invalid("Invalid artifact registries found", invalid)

        if not unified:
            if not be and not be_pre:
                be = [DockerHubArtifactRegistry(namespace=Constants.DEFAULT_BE_RELEASE_NAMESPACE)]
                be_pre = [DockerHubArtifactRegistry(namespace=Constants.DEFAULT_BE_PRE_RELEASE_NAMESPACE)]
            if not ui and not ui_pre:
                ui = [FolioNpmArtifactRegistry(namespace=Constants.DEFAULT_UI_RELEASE_NAMESPACE)]
                ui_pre = [FolioNpmArtifactRegistry(namespace=Constants.DEFAULT_UI_PRE_RELEASE_NAMESPACE)]

        return ArtifactRegistries(
            be_registries=be,
            ui_registries=ui,
            be_pre_release_registries=be_pre,
            ui_pre_release_registries=ui_pre,
            unified_registries=unified,
        )

    @staticmethod
    def _process_strings(value: Optional[str], kind: ArtifactRegistryType,
                         invalid: List[str]) -> List[ArtifactRegistry]:
        result: List[ArtifactRegistry] = []
        for part in _split_strings(value):
            registry = parse_artifact_registry(part, kind)
            if registry is None:
                continue
            if registry.is_valid():
                result.append(registry)
            else:
                invalid.append(f"CommandLineArtifactRegistry(stringValue={part.strip()})")
        return result

    @staticmethod
    def _process_configs(entries: Optional[Iterable[Mapping[str, Any]]], supported: set,
                         invalid: List[str]) -> List[ArtifactRegistry]:
        result: List[ArtifactRegistry] = []
        for entry in entries or []:
            if str(entry.get("type") or "").strip().lower() not in supported:
                invalid.append(_describe_config(entry))
                continue
            registry = to_artifact_registry(entry)
            if registry.is_valid():
                result.append(registry)
            else:
                invalid.append(_describe_config(entry))
        return result
