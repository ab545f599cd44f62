"""Tests for the shared HTTP retry policy."""

import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from common.http_client import get_json, robust_get, safe_post, send_with_retry
from constants import Constants
from errors import ApplicationGeneratorError, ErrorCategory


def make_response(status_code, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.headers = {"Content-Type": "application/json"}
    return response


class TestSendWithRetry:
    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_success_on_first_attempt(self, mock_request, mock_sleep):
        mock_request.return_value = make_response(200, "{}")
        assert send_with_retry("GET", "http://registry/x").status_code == 200
        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_retries_retryable_status(self, mock_request, mock_sleep):
        mock_request.side_effect = [make_response(503), make_response(429), make_response(200)]
        assert send_with_retry("GET", "http://registry/x").status_code == 200
        assert mock_request.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_retryable_status_after_budget_spent_is_infrastructure(self, mock_request, mock_sleep):
        mock_request.return_value = make_response(502)
        with pytest.raises(ApplicationGeneratorError) as exc_info:
            send_with_retry("GET", "http://registry/x")
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE
        assert exc_info.value.errors[0].http_status_code == 502
        assert mock_request.call_count == Constants.HTTP_RETRY_MAX
        assert mock_sleep.call_count == Constants.HTTP_RETRY_MAX - 1

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_non_retryable_status_is_final(self, mock_request, mock_sleep):
        mock_request.return_value = make_response(404)
        assert send_with_retry("GET", "http://registry/x").status_code == 404
        assert mock_request.call_count == 1

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_transient_exception_then_success(self, mock_request, mock_sleep):
        mock_request.side_effect = [requests.ConnectionError("reset"), requests.Timeout(), make_response(200)]
        assert send_with_retry("GET", "http://registry/x").status_code == 200

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_persistent_network_failure_is_infrastructure(self, mock_request, mock_sleep):
        mock_request.side_effect = requests.ConnectionError("connection reset by peer")
        with pytest.raises(ApplicationGeneratorError) as exc_info:
            send_with_retry("GET", "http://registry/x")
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE
        assert mock_request.call_count == Constants.HTTP_RETRY_MAX

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_other_request_errors_are_not_retried(self, mock_request, mock_sleep):
        mock_request.side_effect = requests.exceptions.InvalidURL("bad url")
        with pytest.raises(ApplicationGeneratorError):
            send_with_retry("GET", "http://registry/x")
        assert mock_request.call_count == 1

    @patch("common.http_client.requests.request")
    def test_cancel_before_request(self, mock_request):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ApplicationGeneratorError, match="cancelled"):
            send_with_retry("GET", "http://registry/x", cancel_event=cancel)
        mock_request.assert_not_called()

    @patch("common.http_client.requests.request")
    def test_cancel_during_backoff(self, mock_request):
        cancel = MagicMock(spec=threading.Event)
        cancel.is_set.return_value = False
        cancel.wait.return_value = True
        mock_request.return_value = make_response(503)

        with pytest.raises(ApplicationGeneratorError) as exc_info:
            send_with_retry("GET", "http://registry/x", cancel_event=cancel)

        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE
        assert mock_request.call_count == 1
        cancel.wait.assert_called_once_with(Constants.HTTP_RETRY_BASE_DELAY_SEC)

    @patch("common.http_client.requests.request")
    def test_user_agent_header(self, mock_request):
        mock_request.return_value = make_response(200)
        send_with_retry("GET", "http://registry/x", headers={"Accept": "application/json"})
        headers = mock_request.call_args.kwargs["headers"]
        assert headers["User-Agent"] == Constants.USER_AGENT
        assert headers["Accept"] == "application/json"


class TestJsonHelpers:
    @patch("common.http_client.requests.request")
    def test_get_json_parses_200(self, mock_request):
        mock_request.return_value = make_response(200, '[{"id": "mod-a-1.0.0"}]')
        status, _, data = get_json("http://registry/x")
        assert status == 200
        assert data == [{"id": "mod-a-1.0.0"}]

    @patch("common.http_client.requests.request")
    def test_get_json_invalid_body(self, mock_request):
        mock_request.return_value = make_response(200, "<html>")
        assert get_json("http://registry/x")[2] is None

    @patch("common.http_client.requests.request")
    def test_get_json_non_200(self, mock_request):
        mock_request.return_value = make_response(404, '{"error": "missing"}')
        status, _, data = get_json("http://registry/x")
        assert (status, data) == (404, None)

    @patch("common.http_client.requests.request")
    def test_robust_get(self, mock_request):
        mock_request.return_value = make_response(200, "ok")
        status, headers, text = robust_get("http://registry/x")
        assert (status, text) == (200, "ok")
        assert headers["Content-Type"] == "application/json"


class TestSafePost:
    @patch("common.http_client.requests.post")
    def test_posts_json(self, mock_post):
        mock_post.return_value = make_response(202)
        response = safe_post("http://validator/x", context="integrity", payload={"a": 1})
        assert response.status_code == 202
        assert mock_post.call_args.kwargs["data"] == '{"a": 1}'
        assert mock_post.call_args.kwargs["headers"]["Content-Type"] == "application/json"

    @patch("common.http_client.requests.post")
    def test_network_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ApplicationGeneratorError) as exc_info:
            safe_post("http://validator/x", context="integrity", payload={})
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE
