"""Tests for the error taxonomy."""

import requests

from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail


def test_render_lists_every_detail():
    error = ApplicationGeneratorError(
        "Failed to resolve modules",
        ErrorCategory.MODULE_NOT_FOUND,
        [ErrorDetail.module_not_found("mod-a", "^1.0.0"), ErrorDetail.module_not_found_by_id("mod-b-2.0.0")],
    )
    assert str(error) == (
        "Failed to resolve modules"
        "\n  * mod-a-^1.0.0: No version matching constraint '^1.0.0' found"
        "\n  * mod-b-2.0.0: Module descriptor not found in any registry"
    )


def test_render_without_details():
    assert str(ApplicationGeneratorError("boom", ErrorCategory.INFRASTRUCTURE)) == "boom"


def test_http_error_detail():
    detail = ErrorDetail.http_error("https://hub/x", 503, "unavailable")
    assert detail.describe() == "https://hub/x: unavailable (HTTP 503)"
    assert detail.to_dict() == {
        "error_type": "HTTP_ERROR",
        "url": "https://hub/x",
        "http_status_code": 503,
        "message": "unavailable",
    }


def test_category_from_exception():
    error = ApplicationGeneratorError("x", ErrorCategory.VALIDATION_FAILED)
    assert ErrorCategory.from_exception(error) == ErrorCategory.VALIDATION_FAILED
    assert ErrorCategory.from_exception(requests.ConnectionError()) == ErrorCategory.INFRASTRUCTURE
    assert ErrorCategory.from_exception(ValueError()) == ErrorCategory.CONFIGURATION_ERROR
