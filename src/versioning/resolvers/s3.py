"""Version resolver for object-storage (S3-style) module registries."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

import semantic_version

from common.object_store import ObjectStorage, ObjectStoreError
from constants import Constants, ModuleType, RegistryType
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from registry.models import ModuleRegistry
from ..models import Dependency, split_module_id
from ..semver import matches_prerelease_filter, parse_version
from .base import VersionResolver

logger = logging.getLogger(__name__)


def strip_descriptor_key(key: str, path_prefix: str) -> str:
    """Key without the registry path prefix and descriptor extension."""
    file_name = key[len(path_prefix):] if path_prefix and key.startswith(path_prefix) else key
    for extension in Constants.MODULE_DESCRIPTOR_EXTENSIONS:
        suffix = "." + extension
        if file_name.endswith(suffix):
            return file_name[: -len(suffix)]
    return file_name


class S3VersionResolver(VersionResolver):
    """Paginated prefix listing of ``<path><name>-`` keys.

    Keys whose parsed name differs from the requested one are dropped, so
    ``mod-foo`` never picks up ``mod-foo-storage`` descriptors.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        page_size: int = Constants.S3_BATCH_SIZE,
        cancel_event: Optional[threading.Event] = None,
    ):
        super().__init__(cancel_event=cancel_event)
        self.storage = storage
        self.page_size = page_size

    @property
    def registry_type(self) -> RegistryType:
        return RegistryType.AWS_S3

    def get_available_versions(
        self, registry: ModuleRegistry, dependency: Dependency, module_type: ModuleType
    ) -> Optional[List[str]]:
        path = registry.path or ""
        prefix = f"{path}{dependency.name}-"
        location = f"{registry.bucket}/{path}"
        collected: List[Tuple[semantic_version.Version, str]] = []

        token: Optional[str] = None
        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise ApplicationGeneratorError(
                    f"Listing of s3 bucket {location} was cancelled",
                    ErrorCategory.INFRASTRUCTURE,
                    [ErrorDetail.infrastructure_error(location, "cancelled")],
                )
            try:
                page = self.storage.list_page(registry.bucket, prefix, self.page_size, token)
            except ObjectStoreError as exc:
                logger.warning(
                    "Failed to list versions for module '%s' in s3 bucket: %s", dependency.name, location
                )
                raise ApplicationGeneratorError(
                    f"Failed to list versions for module '{dependency.name}' in s3 bucket {location}",
                    ErrorCategory.INFRASTRUCTURE,
                    [ErrorDetail.infrastructure_error(location, str(exc))],
                ) from exc

            for key in page.keys:
                parts = split_module_id(strip_descriptor_key(key, path))
                if parts is None or parts[0] != dependency.name:
                    continue
                parsed = parse_version(parts[1])
                if parsed is None:
                    continue
                if matches_prerelease_filter(parsed, dependency.pre_release):
                    collected.append((parsed, parts[1]))

            if not page.is_truncated:
                break
            token = page.next_token

        if not collected:
            logger.info("Module '%s' is not found in s3 bucket: %s", dependency.name, location)
            return None

        logger.debug("Found %d versions for module '%s' in s3 bucket: %s", len(collected), dependency.name, location)
        collected.sort(key=lambda pair: pair[0], reverse=True)
        return [original for _, original in collected]
