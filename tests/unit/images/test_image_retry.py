"""Unit tests for images.retry_logic module."""

from unittest.mock import MagicMock, call, patch

import pytest
import requests

from notes_markdown.error_handling.errors import ImageTooLargeError, NetworkError
from notes_markdown.images.retry_logic import is_retryable_error, retry_with_backoff


class TestIsRetryableError:
    """Test cases for is_retryable_error function."""

    @pytest.mark.parametrize("status", [None, 500, 503, 408, 429])
    def test_transient_statuses(self, status):
        assert is_retryable_error(NetworkError("x", status_code=status)) is True

    @pytest.mark.parametrize("status", [400, 403, 404])
    def test_client_errors_fail_fast(self, status):
        assert is_retryable_error(NetworkError("x", status_code=status)) is False

    def test_too_large_fails_fast(self):
        assert is_retryable_error(ImageTooLargeError("https://x", 9, 8)) is False

    def test_requests_timeouts(self):
        assert is_retryable_error(requests.Timeout()) is True
        assert is_retryable_error(requests.ConnectionError()) is True

    def test_other_exceptions(self):
        assert is_retryable_error(ValueError("x")) is False


class TestRetryWithBackoff:
    """Test cases for retry_with_backoff function."""

    def test_success_on_first_attempt(self):
        mock_func = MagicMock(return_value="ok")

        assert retry_with_backoff(mock_func, "arg1", key="value") == "ok"
        mock_func.assert_called_once_with("arg1", key="value")

    @patch("notes_markdown.images.retry_logic.time.sleep")
    def test_retries_with_exponential_backoff(self, mock_sleep):
        """Two transient failures then success sleeps 1s then 2s."""
        error = NetworkError("HTTP 503", status_code=503)
        mock_func = MagicMock(side_effect=[error, error, "ok"])

        assert retry_with_backoff(mock_func, max_attempts=3, base_delay=1.0) == "ok"
        assert mock_func.call_count == 3
        assert mock_sleep.call_args_list == [call(1.0), call(2.0)]

    @patch("notes_markdown.images.retry_logic.time.sleep")
    def test_raises_after_last_attempt(self, mock_sleep):
        error = requests.Timeout("slow")
        mock_func = MagicMock(side_effect=error)

        with pytest.raises(requests.Timeout):
            retry_with_backoff(mock_func, max_attempts=3, base_delay=0.5)

        assert mock_func.call_count == 3
        assert mock_sleep.call_args_list == [call(0.5), call(1.0)]

    @patch("notes_markdown.images.retry_logic.time.sleep")
    def test_non_retryable_raises_immediately(self, mock_sleep):
        mock_func = MagicMock(side_effect=NetworkError("HTTP 404", status_code=404))

        with pytest.raises(NetworkError):
            retry_with_backoff(mock_func, max_attempts=5)

        mock_func.assert_called_once()
        mock_sleep.assert_not_called()

    def test_single_attempt(self):
        mock_func = MagicMock(side_effect=NetworkError("HTTP 500", status_code=500))

        with pytest.raises(NetworkError):
            retry_with_backoff(mock_func, max_attempts=1)
        mock_func.assert_called_once()
