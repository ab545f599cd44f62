"""Data models for versioning and dependency resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from constants import Constants


class PreReleaseFilter(Enum):
    """Policy controlling whether prerelease versions are eligible matches."""
    ONLY = "only"
    TRUE = "true"
    FALSE = "false"

    @classmethod
    def from_value(cls, value: Any) -> Optional["PreReleaseFilter"]:
        """Parse case-insensitively; None stays None (unset)."""
        if value is None:
            return None
        if isinstance(value, PreReleaseFilter):
            return value
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        text = str(value).strip().lower()
        for item in cls:
            if item.value == text:
                return item
        raise ValueError(
            f"Invalid preRelease value: '{value}'. Allowed values: 'only', 'true', 'false'"
        )

    def is_pre_release(self) -> bool:
        return self in (PreReleaseFilter.ONLY, PreReleaseFilter.TRUE)


class ResolutionMode(Enum):
    """Resolution strategy derived from a version spec."""
    EXACT = "exact"
    RANGE = "range"
    LATEST = "latest"


@dataclass(frozen=True)
class Dependency:
    """A declared module dependency: name, version spec and prerelease policy."""
    name: str
    version: str
    pre_release: Optional[PreReleaseFilter] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dependency":
        return cls(
            name=data.get("name"),
            version=data.get("version"),
            pre_release=PreReleaseFilter.from_value(data.get("preRelease")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "version": self.version}
        if self.pre_release is not None:
            result["preRelease"] = self.pre_release.value
        return result

    def with_version(self, version: str) -> "Dependency":
        return Dependency(self.name, version, self.pre_release)


def split_module_id(module_id: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split ``<name>-<version>`` at the first ``-`` followed by a digit.

    Returns:
        (name, version) or None when no such boundary exists.
    """
    if not module_id:
        return None
    for i in range(len(module_id) - 1):
        if module_id[i] == "-" and module_id[i + 1].isdigit():
            return module_id[:i], module_id[i + 1:]
    return None


@dataclass(frozen=True)
class ModuleDefinition:
    """A concrete module reference; ``id`` is derived from name and version.

    The irregular ``name:latest`` form is used for modules requested at the
    newest available version.
    """
    name: str
    version: str
    url: Optional[str] = field(default=None, compare=False)

    @property
    def id(self) -> str:  # pylint: disable=invalid-name
        if self.version == Constants.LATEST_VERSION:
            return f"{self.name}:{Constants.LATEST_VERSION}"
        return f"{self.name}-{self.version}"

    @property
    def is_latest(self) -> bool:
        return self.version == Constants.LATEST_VERSION

    @classmethod
    def from_id(cls, module_id: str, url: Optional[str] = None) -> Optional["ModuleDefinition"]:
        """Parse ``name-version`` or ``name:latest``; None when neither form matches."""
        if not module_id:
            return None
        latest_suffix = ":" + Constants.LATEST_VERSION
        if module_id.endswith(latest_suffix) and len(module_id) > len(latest_suffix):
            return cls(module_id[: -len(latest_suffix)], Constants.LATEST_VERSION, url)
        parts = split_module_id(module_id)
        if parts is None:
            return None
        return cls(parts[0], parts[1], url)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModuleDefinition":
        name, version = data.get("name"), data.get("version")
        if (not name or not version) and data.get("id"):
            parsed = cls.from_id(data["id"])
            if parsed is not None:
                name, version = parsed.name, parsed.version
        return cls(name, version, data.get("url"))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "name": self.name, "version": self.version}
        if self.url is not None:
            result["url"] = self.url
        return result

    def without_url(self) -> "ModuleDefinition":
        return ModuleDefinition(self.name, self.version)

    def to_dependency(self, pre_release: Optional[PreReleaseFilter] = None) -> Dependency:
        return Dependency(self.name, self.version, pre_release)
