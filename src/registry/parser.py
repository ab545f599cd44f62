"""Parsers for registry strings supplied on the command line or in env.

Module registries::

    okapi::<url>[::<publicUrlTemplate>]
    simple::<url>[::<publicUrlTemplate>]
    s3::<bucket>::<path>[::<publicUrlTemplate>]

Artifact registries::

    <namespace>
    <baseUrl>::<namespace>
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from constants import ArtifactRegistryType, Constants
from registry.artifact import ArtifactRegistry, DockerHubArtifactRegistry, FolioNpmArtifactRegistry
from registry.models import (
    ModuleRegistry,
    OkapiModuleRegistry,
    S3ModuleRegistry,
    SimpleModuleRegistry,
    is_valid_url,
)

logger = logging.getLogger(__name__)

_HTTP_PATTERN = re.compile(r"^(okapi|simple)::(.{1,1024}?)(?:::(.{1,1024}))?$")
_S3_PATTERN = re.compile(r"^(s3)::(.{1,1024}?)::(.{1,1024}?)(?:::(.{1,1024}))?$")


def normalize_s3_path(path: Optional[str]) -> str:
    """Strip leading/trailing slashes and re-append one trailing slash when non-empty."""
    value = (path or "").strip().strip(Constants.PATH_DELIMITER)
    return value + Constants.PATH_DELIMITER if value else value


def normalize_url(url: Optional[str]) -> str:
    return (url or "").strip().rstrip(Constants.PATH_DELIMITER)


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_module_registry(value: str) -> Optional[ModuleRegistry]:
    """Parse one module registry string; None when the string is not recognized.

    A recognized string with a malformed URL also yields None so that the
    caller can report it alongside every other invalid entry.
    """
    if not value or not value.strip():
        return None
    text = value.strip()

    match = _HTTP_PATTERN.match(text)
    if match:
        kind, url, public_url = match.group(1), normalize_url(match.group(2)), _strip_optional(match.group(3))
        if not is_valid_url(url):
            logger.debug("Invalid url in registry string: %s", text)
            return None
        registry_cls = OkapiModuleRegistry if kind == "okapi" else SimpleModuleRegistry
        return registry_cls(url=url, public_url=public_url).with_generated_fields()

    match = _S3_PATTERN.match(text)
    if match:
        bucket = match.group(2).strip()
        registry = S3ModuleRegistry(
            bucket=bucket,
            path=normalize_s3_path(match.group(3)),
            public_url=_strip_optional(match.group(4)),
        )
        return registry.with_generated_fields() if registry.is_valid() else None

    return None


def parse_artifact_registry(value: str, registry_type: ArtifactRegistryType) -> Optional[ArtifactRegistry]:
    """Parse ``<namespace>`` or ``<baseUrl>::<namespace>`` for the given kind."""
    if not value or not value.strip():
        return None
    text = value.strip()
    registry_cls = DockerHubArtifactRegistry if registry_type == ArtifactRegistryType.DOCKER_HUB \
        else FolioNpmArtifactRegistry

    index = text.find(Constants.REGISTRY_DELIMITER)
    if index > 0:
        base_url = normalize_url(text[:index])
        namespace = text[index + len(Constants.REGISTRY_DELIMITER):].strip()
        return registry_cls(namespace=namespace, base_url=base_url)
    return registry_cls(namespace=text)
