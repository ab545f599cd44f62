"""Descriptor loader for object-storage (S3-style) module registries."""

from __future__ import annotations

import json
import logging
import threading
from typing import Optional, Tuple

import semantic_version

from common.object_store import ObjectStorage, ObjectStoreError
from constants import Constants, RegistryType
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from registry.models import ModuleRegistry
from versioning.models import ModuleDefinition, split_module_id
from versioning.resolvers.s3 import strip_descriptor_key
from versioning.semver import parse_version
from ..models import LoaderResult
from .base import ModuleDescriptorLoader

logger = logging.getLogger(__name__)


class S3DescriptorLoader(ModuleDescriptorLoader):
    """Lists ``<path><id>`` (or ``<path><name>`` for latest) and reads the chosen key.

    A key whose name and parsed version equal the requested module always
    wins. Without one, stable requests fail and prerelease or latest requests
    take the greatest same-named version under the prefix.
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

    def find_descriptor(self, registry: ModuleRegistry, module: ModuleDefinition) -> Optional[LoaderResult]:
        path = registry.path or ""
        location = f"{registry.bucket}/{path}"
        prefix = path + (module.name if module.is_latest else module.id)
        try:
            keys = self.storage.list_keys(registry.bucket, prefix, self.page_size)
        except ObjectStoreError as exc:
            logger.warning("Failed to find module descriptor '%s' in s3 bucket: %s", module.id, location)
            raise ApplicationGeneratorError(
                f"Failed to list module descriptors in s3 bucket {location}",
                ErrorCategory.INFRASTRUCTURE,
                [ErrorDetail.infrastructure_error(location, str(exc))],
            ) from exc

        selected = self._select_key(module, keys, path)
        if selected is None:
            logger.info("Module '%s' is not found in s3 bucket: %s", module.id, location)
            return None

        key, file_name = selected
        try:
            content = self.storage.get_object(registry.bucket, key)
        except ObjectStoreError as exc:
            raise ApplicationGeneratorError(
                f"Failed to read module descriptor '{module.id}' from s3 bucket {location}",
                ErrorCategory.INFRASTRUCTURE,
                [ErrorDetail.infrastructure_error(location, str(exc))],
            ) from exc

        try:
            descriptor = json.loads(content)
        except (ValueError, UnicodeDecodeError):
            logger.warning("Failed to parse module descriptor '%s' from s3 bucket: %s", key, location)
            return None
        if not isinstance(descriptor, dict):
            logger.warning("Module descriptor '%s' in s3 bucket %s is not an object", key, location)
            return None

        logger.info("Module descriptor '%s' loaded from s3 bucket: %s", file_name, location)
        return LoaderResult(
            self.source_url(registry, file_name, f"https://{registry.bucket}.s3.amazonaws.com/{key}"),
            descriptor,
        )

    @staticmethod
    def _select_key(module: ModuleDefinition, keys, path: str) -> Optional[Tuple[str, str]]:
        requested = None if module.is_latest else parse_version(module.version)
        best: Optional[Tuple[semantic_version.Version, str, str]] = None
        for key in keys:
            file_name = strip_descriptor_key(key, path)
            parts = split_module_id(file_name)
            if parts is None or parts[0] != module.name:
                continue
            parsed = parse_version(parts[1])
            if parsed is None:
                continue
            if requested is not None and parsed == requested:
                return key, file_name
            if best is None or parsed > best[0]:
                best = (parsed, key, file_name)

        if requested is not None and not requested.prerelease:
            return None
        return (best[1], best[2]) if best else None
