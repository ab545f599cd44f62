"""Submit application descriptors to a remote integrity validator."""

from __future__ import annotations

import logging
from typing import Optional

from common.http_client import safe_post
from common.logging_utils import extra_context, redact, safe_url
from constants import Constants
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail
from .models import ApplicationDescriptor

logger = logging.getLogger(__name__)

ACCEPTED = 202


class ApplicationModulesIntegrityValidator:
    """POSTs ``{"applicationDescriptors": [descriptor]}``; only HTTP 202 is success."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else Constants.ARTIFACT_REQUEST_TIMEOUT

    def validate_application(self, descriptor: ApplicationDescriptor, base_url: str, token: str) -> None:
        """Validate one descriptor against the service at ``base_url``.

        Raises:
            ValueError: If the descriptor or its id is missing.
            ApplicationGeneratorError: VALIDATION_FAILED for any status other
            than 202, INFRASTRUCTURE when the request cannot be sent.
        """
        if descriptor is None or not descriptor.id or not descriptor.id.strip():
            raise ValueError("Application descriptor or its ID cannot be null or empty")

        url = base_url.rstrip("/") + Constants.INTEGRITY_VALIDATOR_PATH
        logger.info("Starting validation for application descriptor: %s", descriptor.id)
        response = safe_post(
            url,
            context="integrity",
            payload={"applicationDescriptors": [descriptor.to_dict()]},
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        logger.info(
            "Received response with status code: %d",
            response.status_code,
            extra=extra_context(event="validate", component="integrity", status_code=response.status_code,
                                target=safe_url(url)),
        )

        if response.status_code != ACCEPTED:
            logger.error(
                "Failed to validate application descriptor '%s'. Status code: %d",
                descriptor.id,
                response.status_code,
            )
            if response.text and response.text.strip():
                logger.error(redact(response.text))
            raise ApplicationGeneratorError(
                f"Failed to validate application descriptor '{descriptor.id}'",
                ErrorCategory.VALIDATION_FAILED,
                [ErrorDetail.http_error(safe_url(url), response.status_code, response.text or "validation failed")],
            )

        logger.info("Application descriptor '%s' validated successfully.", descriptor.id)
