"""Constants used in the project."""

from enum import Enum


class ModuleType(Enum):
    """Module types an application descriptor is partitioned by.

    Args:
        Enum (string): Module type name.
    """

    BE = "be"
    UI = "ui"


class RegistryType(Enum):
    """Module registry kinds.

    Args:
        Enum (string): Registry type as used in configuration strings.
    """

    OKAPI = "okapi"
    SIMPLE = "simple"
    AWS_S3 = "s3"


class ArtifactRegistryType(Enum):
    """Artifact registry kinds.

    Args:
        Enum (string): Artifact registry type as used in configuration.
    """

    DOCKER_HUB = "docker-hub"
    FOLIO_NPM = "folio-npm"


class ModuleUrlsMode(Enum):
    """Controls whether modules carry descriptor URLs, full descriptors or both."""

    FALSE = "false"
    TRUE = "true"
    BOTH = "both"

    @classmethod
    def from_string(cls, value):
        """Parse a mode leniently; unknown values fall back to FALSE."""
        if value is None:
            return cls.FALSE
        if isinstance(value, ModuleUrlsMode):
            return value
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        text = str(value).strip().lower()
        for mode in cls:
            if mode.value == text:
                return mode
        return cls.FALSE

    def need_descriptor_url(self) -> bool:
        return self in (ModuleUrlsMode.TRUE, ModuleUrlsMode.BOTH)

    def need_full_descriptor(self) -> bool:
        return self in (ModuleUrlsMode.FALSE, ModuleUrlsMode.BOTH)


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "APPGEN_LOG_LEVEL"
    USER_AGENT = "app-descriptor-generator/1.0"

    REQUEST_TIMEOUT = 300  # Timeout in seconds for registry catalog requests
    ARTIFACT_REQUEST_TIMEOUT = 60  # Timeout in seconds for artifact existence checks
    HTTP_RETRY_MAX = 5
    HTTP_RETRY_BASE_DELAY_SEC = 1.0
    HTTP_RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})

    LATEST_VERSION = "latest"
    UI_SNAPSHOT_THRESHOLD = 5  # patch components with this many digits are snapshots
    MODULE_DESCRIPTOR_EXTENSIONS = ("json",)
    S3_BATCH_SIZE = 1000
    CATALOG_CACHE_TTL_SEC = 600

    REGISTRY_DELIMITER = "::"
    PATH_DELIMITER = "/"

    DOCKER_HUB_DEFAULT_URL = "https://hub.docker.com/v2/repositories"
    FOLIO_NPM_DEFAULT_URL = "https://repository.folio.org/repository"
    FOLIO_NPM_SCOPE = "@folio/"
    FOLIO_MODULE_PREFIX = "folio_"

    DEFAULT_BE_RELEASE_NAMESPACE = "folioorg"
    DEFAULT_BE_PRE_RELEASE_NAMESPACE = "folioci"
    DEFAULT_UI_RELEASE_NAMESPACE = "npm-folio"
    DEFAULT_UI_PRE_RELEASE_NAMESPACE = "npm-folioci"

    INTEGRITY_VALIDATOR_PATH = "/applications/validate-descriptors"
    UPDATE_RESULT_FILE = "update-result.json"
