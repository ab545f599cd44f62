"""Generator configuration loaded from YAML and the environment.

Precedence: explicit keyword arguments to ``GeneratorConfig`` (used by
tests and embedding callers), then ``APPGEN_*`` environment variables, then
the YAML file.
"""
from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from constants import Constants, ModuleUrlsMode
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail

logger = logging.getLogger(__name__)

ENV_BUILD_NUMBER = "APPGEN_BUILD_NUMBER"
ENV_VALIDATE_ARTIFACTS = "APPGEN_VALIDATE_ARTIFACTS"
ENV_S3_BATCH_SIZE = "APPGEN_S3_BATCH_SIZE"
ENV_REQUEST_TIMEOUT = "APPGEN_REQUEST_TIMEOUT"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class GeneratorConfig:  # pylint: disable=too-many-instance-attributes
    """Behavior flags and registry sources for one generator run."""

    build_number: Optional[str] = None

    registries: List[Dict[str, Any]] = field(default_factory=list)
    be_registries: List[Dict[str, Any]] = field(default_factory=list)
    ui_registries: List[Dict[str, Any]] = field(default_factory=list)
    be_fallback_registries: List[Dict[str, Any]] = field(default_factory=list)
    ui_fallback_registries: List[Dict[str, Any]] = field(default_factory=list)

    registry_string: Optional[str] = None
    be_registry_string: Optional[str] = None
    ui_registry_string: Optional[str] = None
    be_fallback_registry_string: Optional[str] = None
    ui_fallback_registry_string: Optional[str] = None
    override_config_registries: bool = False

    artifact_registries: List[Dict[str, Any]] = field(default_factory=list)
    be_artifact_registries: List[Dict[str, Any]] = field(default_factory=list)
    ui_artifact_registries: List[Dict[str, Any]] = field(default_factory=list)
    be_pre_release_artifact_registries: List[Dict[str, Any]] = field(default_factory=list)
    ui_pre_release_artifact_registries: List[Dict[str, Any]] = field(default_factory=list)

    artifact_registries_string: Optional[str] = None
    be_artifact_registries_string: Optional[str] = None
    ui_artifact_registries_string: Optional[str] = None
    be_pre_release_artifact_registries_string: Optional[str] = None
    ui_pre_release_artifact_registries_string: Optional[str] = None

    validate_artifacts: bool = False
    module_urls_mode: ModuleUrlsMode = ModuleUrlsMode.FALSE
    s3_batch_size: int = Constants.S3_BATCH_SIZE
    s3_endpoint: Optional[str] = None
    s3_region: Optional[str] = None
    request_timeout: float = Constants.REQUEST_TIMEOUT

    project_name: Optional[str] = None
    project_version: Optional[str] = None
    project_description: Optional[str] = None
    project_group_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GeneratorConfig":
        """Build a config from a mapping, ignoring unknown keys with a warning."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key: %s", key)
                continue
            kwargs[key] = value
        if "module_urls_mode" in kwargs:
            kwargs["module_urls_mode"] = ModuleUrlsMode.from_string(kwargs["module_urls_mode"])
        if "build_number" in kwargs and kwargs["build_number"] is not None:
            kwargs["build_number"] = str(kwargs["build_number"])
        return cls(**kwargs)

    def project_properties(self) -> Dict[str, Optional[str]]:
        """Values substituted for ``${project.*}`` placeholders in templates."""
        return {
            "project.name": self.project_name,
            "project.version": self.project_version,
            "project.groupId": self.project_group_id,
            "project.description": self.project_description,
        }


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _config_error(source: str, message: str) -> ApplicationGeneratorError:
    return ApplicationGeneratorError(
        f"Invalid configuration: {message}",
        ErrorCategory.CONFIGURATION_ERROR,
        [ErrorDetail.configuration_error(source, message)],
    )


def apply_env_overrides(config: GeneratorConfig, environ: Optional[Mapping[str, str]] = None) -> GeneratorConfig:
    """Return a copy of ``config`` with ``APPGEN_*`` environment overrides applied."""
    env = os.environ if environ is None else environ
    changes: Dict[str, Any] = {}
    if env.get(ENV_BUILD_NUMBER):
        changes["build_number"] = env[ENV_BUILD_NUMBER].strip()
    if env.get(ENV_VALIDATE_ARTIFACTS):
        changes["validate_artifacts"] = _parse_bool(env[ENV_VALIDATE_ARTIFACTS])
    try:
        if env.get(ENV_S3_BATCH_SIZE):
            changes["s3_batch_size"] = int(env[ENV_S3_BATCH_SIZE])
        if env.get(ENV_REQUEST_TIMEOUT):
            changes["request_timeout"] = float(env[ENV_REQUEST_TIMEOUT])
    except ValueError as exc:
        raise _config_error("environment", str(exc)) from exc
    return dataclasses.replace(config, **changes) if changes else config


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> GeneratorConfig:
    """Load configuration from a YAML file (optional) and the environment.

    Args:
        path: YAML file path; when None only defaults and env overrides apply.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        GeneratorConfig: the resolved configuration.

    Raises:
        ApplicationGeneratorError: CONFIGURATION_ERROR when the file is
        missing, unreadable or not a YAML mapping.
    """
    data: Dict[str, Any] = {}
    if path:
        if not os.path.isfile(path):
            raise _config_error(path, "configuration file not found")
        try:
            with open(path, "r", encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            raise _config_error(path, f"failed to read configuration: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise _config_error(path, "top-level YAML value must be a mapping")
        data = loaded
        logger.debug("Loaded configuration from %s", path)
    try:
        config = GeneratorConfig.from_mapping(data)
    except TypeError as exc:
        raise _config_error(path or "defaults", str(exc)) from exc
    config = apply_env_overrides(config, environ)
    if config.s3_batch_size <= 0:
        raise _config_error(path or "defaults", "s3_batch_size must be positive")
    return config
