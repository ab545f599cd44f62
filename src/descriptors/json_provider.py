"""Read templates/descriptors from disk and write generated results."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

from constants import Constants
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from .models import ApplicationDescriptor, UpdateResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z0-9_.]+)\}")


def _config_error(source: str, message: str) -> ApplicationGeneratorError:
    return ApplicationGeneratorError(
        message, ErrorCategory.CONFIGURATION_ERROR, [ErrorDetail.configuration_error(source, message)]
    )


class JsonProvider:
    """JSON file I/O with ``${project.*}`` placeholder substitution."""

    def __init__(self, properties: Optional[Mapping[str, Optional[str]]] = None):
        self.properties: Dict[str, str] = {k: v for k, v in (properties or {}).items() if v is not None}

    def substitute(self, content: str) -> str:
        """Replace known ``${key}`` placeholders; unknown ones are left as is."""
        return _PLACEHOLDER_RE.sub(lambda m: self.properties.get(m.group(1), m.group(0)), content)

    def read_json_from_file(
        self, path: str, factory: Callable[[Dict[str, Any]], T], use_substitution: bool = False
    ) -> T:
        """Read ``path`` and build an object with ``factory`` (e.g. ``ApplicationDescriptor.from_dict``).

        Raises:
            ApplicationGeneratorError: CONFIGURATION_ERROR when the file is
            missing, unreadable or not a JSON object.
        """
        absolute = os.path.abspath(path)
        logger.debug("Reading JSON file: %s", absolute)
        if not os.path.isfile(absolute):
            raise _config_error(absolute, f"File is not found: {absolute}")

        try:
            with open(absolute, "r", encoding="utf-8") as handle:
                content = handle.read()
        except OSError as exc:
            raise _config_error(absolute, f"Failed to read file: {absolute}") from exc

        content = content.replace("\r\n", "\n").replace("\r", "\n")
        if use_substitution:
            content = self.substitute(content)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise _config_error(absolute, f"Failed to parse JSON file {absolute}: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise _config_error(absolute, f"JSON file must contain an object: {absolute}")
        return factory(data)

    def write_application(self, application: ApplicationDescriptor, directory: str) -> str:
        target = os.path.join(self._ensure_directory(directory), f"{application.id}.json")
        self._write(target, application.to_dict())
        logger.info("Application descriptor saved to: %s", target)
        return target

    def write_update_result(self, update_result: UpdateResult, directory: str) -> str:
        target = os.path.join(self._ensure_directory(directory), Constants.UPDATE_RESULT_FILE)
        self._write(target, update_result.to_dict())
        logger.info("Update result saved to: %s", target)
        return target

    @staticmethod
    def _ensure_directory(directory: str) -> str:
        absolute = os.path.abspath(directory)
        try:
            os.makedirs(absolute, exist_ok=True)
        except OSError as exc:
            raise _config_error(absolute, f"Could not create target directory: {absolute}") from exc
        if not os.access(absolute, os.W_OK):
            raise _config_error(absolute, f"Target directory is not writable: {absolute}")
        return absolute

    @staticmethod
    def _write(path: str, data: Dict[str, Any]) -> None:
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
            handle.write("\n")
