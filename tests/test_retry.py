"""Tests for storage retry utilities."""

from unittest.mock import Mock, patch

import pytest

from yaks.core.storage import (
    GitError,
    RetryConfig,
    StorageError,
    TransientGitError,
    TransientStorageError,
    call_with_retry,
)


class TestRetryConfig:
    """Test suite for RetryConfig."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.base_delay == 0.5
        assert config.multiplier == 2.0
        assert config.jitter is True
        assert config.jitter_ratio == 0.2

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_retries": -1},
            {"base_delay": -0.1},
            {"multiplier": 0.5},
            {"jitter_ratio": 1.5},
        ],
    )
    def test_invalid_values(self, kwargs) -> None:
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)

    def test_calculate_delay_no_jitter(self) -> None:
        """Delay grows exponentially without jitter."""
        config = RetryConfig(base_delay=1.0, multiplier=2.0, jitter=False)
        assert [config.calculate_delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_calculate_delay_with_jitter(self) -> None:
        """Jittered delays stay within the configured ratio."""
        config = RetryConfig(base_delay=1.0, jitter=True, jitter_ratio=0.2)
        for _ in range(50):
            assert 0.8 <= config.calculate_delay(0) <= 1.2

    def test_zero_delay(self) -> None:
        assert RetryConfig(base_delay=0).calculate_delay(3) == 0.0


class TestCallWithRetry:
    """Test suite for call_with_retry."""

    def test_success_on_first_attempt(self) -> None:
        func = Mock(return_value="ok")
        assert call_with_retry(RetryConfig(), func, "a", key="b") == "ok"
        func.assert_called_once_with("a", key="b")

    @patch("yaks.core.storage.retry.time.sleep")
    def test_success_after_retries(self, mock_sleep: Mock) -> None:
        """Transient failures are retried with backoff."""
        func = Mock(side_effect=[TransientStorageError("down"), TransientStorageError("down"), 42])
        config = RetryConfig(max_retries=3, base_delay=1.0, jitter=False)

        assert call_with_retry(config, func) == 42
        assert func.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch("yaks.core.storage.retry.time.sleep")
    def test_gives_up_after_max_retries(self, mock_sleep: Mock) -> None:
        func = Mock(side_effect=TransientGitError("fetch failed"))

        with pytest.raises(TransientGitError):
            call_with_retry(RetryConfig(max_retries=2, jitter=False), func)
        assert func.call_count == 3
        assert mock_sleep.call_count == 2

    @pytest.mark.parametrize("error", [StorageError("bad"), GitError("bad"), KeyError("bad")])
    def test_non_transient_errors_propagate_immediately(self, error: Exception) -> None:
        func = Mock(side_effect=error)

        with pytest.raises(type(error)):
            call_with_retry(RetryConfig(max_retries=5), func)
        func.assert_called_once()

    def test_no_retries(self) -> None:
        func = Mock(side_effect=TransientStorageError("down"))
        with pytest.raises(TransientStorageError):
            call_with_retry(RetryConfig(max_retries=0), func)
        func.assert_called_once()
