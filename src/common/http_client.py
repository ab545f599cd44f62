"""Shared HTTP helpers used by version resolvers, descriptor loaders and
artifact existence checkers.

Encapsulates the retry policy so callers avoid duplicating try/except
blocks: HTTP 429/502/503/504 and transient network exceptions (connection
reset, timeout) are retried with a linear backoff up to
``Constants.HTTP_RETRY_MAX`` attempts, after which the failure is raised as
INFRASTRUCTURE. Any other status is returned to the caller as-is and any
other exception is final.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import ApplicationGeneratorError, ErrorCategory, ErrorDetail

logger = logging.getLogger(__name__)

_TRANSIENT_EXCEPTIONS = (requests.ConnectionError, requests.Timeout)


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _cancelled(url: str) -> ApplicationGeneratorError:
    return ApplicationGeneratorError(
        f"Request to {safe_url(url)} was cancelled",
        ErrorCategory.INFRASTRUCTURE,
        [ErrorDetail.infrastructure_error(safe_url(url), "cancelled")],
    )


def _backoff(attempt: int, cancel_event: Optional[threading.Event], url: str) -> None:
    delay = Constants.HTTP_RETRY_BASE_DELAY_SEC * attempt
    if cancel_event is None:
        time.sleep(delay)
        return
    if cancel_event.wait(delay):
        raise _cancelled(url)


def send_with_retry(
    method: str,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    json_body: Any = None,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> requests.Response:
    """Send a request, retrying transient failures.

    Args:
        method: HTTP method.
        url: Target URL.
        params: Optional query parameters.
        headers: Optional request headers.
        json_body: Optional JSON payload.
        timeout: Per-request timeout in seconds (defaults to REQUEST_TIMEOUT).
        cancel_event: Optional token; when set, pending retries are aborted.

    Returns:
        requests.Response: the first non-retryable response.

    Raises:
        ApplicationGeneratorError: INFRASTRUCTURE once the attempt budget is
        spent on retryable statuses or network exceptions. Also raised on
        non-transient request errors and on cancellation.
    """
    safe_target = safe_url(url)
    request_timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    last_response: Optional[requests.Response] = None
    last_exception: Optional[BaseException] = None

    for attempt in range(1, Constants.HTTP_RETRY_MAX + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise _cancelled(url)
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action=method,
                            target=safe_target,
                            attempt=attempt,
                        ),
                    )
                response = requests.request(
                    method,
                    url,
                    params=params,
                    headers=_default_headers(headers),
                    json=json_body,
                    timeout=request_timeout,
                )
            except _TRANSIENT_EXCEPTIONS as exc:
                last_exception, last_response = exc, None
                logger.warning(
                    "Network error, retrying (attempt %d): %s",
                    attempt,
                    _error_message(exc),
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action=method,
                        outcome="transient",
                        attempt=attempt,
                        target=safe_target,
                    ),
                )
            except requests.RequestException as exc:
                raise ApplicationGeneratorError(
                    f"Request to {safe_target} failed: {_error_message(exc)}",
                    ErrorCategory.INFRASTRUCTURE,
                    [ErrorDetail.infrastructure_error(safe_target, _error_message(exc))],
                ) from exc
            else:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action=method,
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target,
                        ),
                    )
                if response.status_code not in Constants.HTTP_RETRYABLE_STATUS_CODES:
                    return response
                last_exception, last_response = None, response
                logger.debug(
                    "Retrying request due to status code %d (attempt %d)", response.status_code, attempt
                )
        if attempt < Constants.HTTP_RETRY_MAX:
            _backoff(attempt, cancel_event, url)

    if last_response is not None:
        status_code = last_response.status_code
        logger.warning(
            "Request to %s still failing with HTTP %d after %d attempts",
            safe_target,
            status_code,
            Constants.HTTP_RETRY_MAX,
        )
        raise ApplicationGeneratorError(
            f"Request to {safe_target} failed after {Constants.HTTP_RETRY_MAX} attempts: HTTP {status_code}",
            ErrorCategory.INFRASTRUCTURE,
            [ErrorDetail.http_error(safe_target, status_code, "Registry unavailable after retries")],
        )
    message = _error_message(last_exception) if last_exception else "no response"
    raise ApplicationGeneratorError(
        f"Request to {safe_target} failed after {Constants.HTTP_RETRY_MAX} attempts: {message}",
        ErrorCategory.INFRASTRUCTURE,
        [ErrorDetail.infrastructure_error(safe_target, message)],
    ) from last_exception


def robust_get(
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Tuple[int, Dict[str, str], str]:
    """Perform a retried GET and return (status_code, headers, text)."""
    response = send_with_retry(
        "GET", url, params=params, headers=headers, timeout=timeout, cancel_event=cancel_event
    )
    return response.status_code, dict(response.headers), response.text


def get_json(
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform a retried GET and parse a JSON body.

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none). The parsed
        value is None for non-200 responses and undecodable bodies.
    """
    status_code, response_headers, text = robust_get(
        url, params=params, headers=headers, timeout=timeout, cancel_event=cancel_event
    )
    if status_code == 200 and text:
        try:
            return status_code, response_headers, json.loads(text)
        except json.JSONDecodeError:
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=status_code,
                    target=safe_url(url),
                ),
            )
    return status_code, response_headers, None


def safe_post(
    url: str,
    *,
    context: str,
    payload: Any,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """Perform a single JSON POST with consistent error handling.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "integrity").
        payload: JSON-serializable body.
        headers: Optional extra headers.
        timeout: Request timeout in seconds.

    Returns:
        requests.Response: The HTTP response object.
    """
    request_headers = _default_headers({"Content-Type": "application/json", **(headers or {})})
    try:
        return requests.post(
            url,
            data=json.dumps(payload),
            headers=request_headers,
            timeout=timeout if timeout is not None else Constants.ARTIFACT_REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.error("%s request to %s failed: %s", context, safe_url(url), exc)
        raise ApplicationGeneratorError(
            f"{context} request to {safe_url(url)} failed: {_error_message(exc)}",
            ErrorCategory.INFRASTRUCTURE,
            [ErrorDetail.infrastructure_error(safe_url(url), _error_message(exc))],
        ) from exc
