"""Module registry model: where module versions and descriptors live."""
from __future__ import annotations

import dataclasses
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from constants import ModuleType, RegistryType


def is_valid_url(value: Optional[str]) -> bool:
    """Return True for a non-blank absolute URL with a scheme and a host."""
    if not value or not value.strip():
        return False
    try:
        parts = urllib.parse.urlsplit(value.strip())
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


class ModuleRegistry(ABC):
    """A source that lists module versions and serves module descriptors."""

    public_url: Optional[str]

    @property
    @abstractmethod
    def type(self) -> RegistryType:
        """Registry kind used for resolver and loader dispatch."""

    @abstractmethod
    def is_valid(self) -> bool:
        """Self-check performed before the registry is used."""

    @abstractmethod
    def with_generated_fields(self) -> "ModuleRegistry":
        """Return a copy with derived fields filled in; explicit values are kept."""

    @property
    @abstractmethod
    def registry_identifier(self) -> str:
        """Human-readable identity used in logs."""

    def public_url_for(self, module_id: str) -> Optional[str]:
        """Substitute ``module_id`` into the public URL template."""
        if self.public_url is None:
            return None
        return self.public_url.replace("{id}", module_id)


@dataclass(frozen=True)
class OkapiModuleRegistry(ModuleRegistry):
    """Proxy-style HTTP catalog exposing ``/_/proxy/modules``."""

    url: str
    public_url: Optional[str] = None

    @property
    def type(self) -> RegistryType:
        return RegistryType.OKAPI

    def is_valid(self) -> bool:
        return is_valid_url(self.url)

    def with_generated_fields(self) -> "OkapiModuleRegistry":
        if self.public_url is not None:
            return self
        return dataclasses.replace(self, public_url=self.url + "/_/proxy/modules/{id}")

    @property
    def registry_identifier(self) -> str:
        return self.url


@dataclass(frozen=True)
class SimpleModuleRegistry(ModuleRegistry):
    """Flat HTTP catalog: the base URL returns every descriptor, ``<url>/<id>`` one."""

    url: str
    public_url: Optional[str] = None

    @property
    def type(self) -> RegistryType:
        return RegistryType.SIMPLE

    def is_valid(self) -> bool:
        return is_valid_url(self.url)

    def with_generated_fields(self) -> "SimpleModuleRegistry":
        if self.public_url is not None:
            return self
        return dataclasses.replace(self, public_url=self.url + "/{id}")

    @property
    def registry_identifier(self) -> str:
        return self.url


@dataclass(frozen=True)
class S3ModuleRegistry(ModuleRegistry):
    """Object-storage prefix holding ``<name>-<version>.json`` descriptors.

    ``path`` is either empty or ends with ``/`` and never starts with one.
    """

    bucket: str
    path: Optional[str] = ""
    public_url: Optional[str] = None

    @property
    def type(self) -> RegistryType:
        return RegistryType.AWS_S3

    def is_valid(self) -> bool:
        return bool(self.bucket and self.bucket.strip()) and self.path is not None

    def with_generated_fields(self) -> "S3ModuleRegistry":
        if self.public_url and self.public_url.strip():
            return self
        if self.path:
            template = f"https://{self.bucket}.s3.amazonaws.com/{self.path}{{id}}"
        else:
            template = f"https://{self.bucket}.s3.amazonaws.com/{{id}}"
        return dataclasses.replace(self, public_url=template)

    @property
    def registry_identifier(self) -> str:
        return f"{self.bucket}/{self.path or ''}"


@dataclass(frozen=True)
class ModuleRegistries:
    """Ordered primary and fallback registries per module type."""

    be_registries: List[ModuleRegistry] = field(default_factory=list)
    ui_registries: List[ModuleRegistry] = field(default_factory=list)
    be_fallback_registries: List[ModuleRegistry] = field(default_factory=list)
    ui_fallback_registries: List[ModuleRegistry] = field(default_factory=list)

    def get_registries(self, module_type: ModuleType) -> List[ModuleRegistry]:
        return self.be_registries if module_type == ModuleType.BE else self.ui_registries

    def get_fallback_registries(self, module_type: ModuleType) -> List[ModuleRegistry]:
        return self.be_fallback_registries if module_type == ModuleType.BE else self.ui_fallback_registries
