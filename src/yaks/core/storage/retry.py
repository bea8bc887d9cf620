"""
Retry with exponential backoff for transient storage failures.

Only ``TransientStorageError`` is retried; every other exception propagates
on the first attempt.

Example:
    >>> config = RetryConfig(max_retries=3, base_delay=0.5)
    >>> snapshot = call_with_retry(config, store.read, "refs/notes/yaks")
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import Any, TypeVar

from .exceptions import TransientStorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds before first retry (default: 0.5)
        multiplier: Exponential backoff multiplier (default: 2.0)
        jitter: Whether to add jitter to delays (default: True)
        jitter_ratio: Random variance ratio for jitter (default: 0.2 = ±20%)
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 0.5,
        multiplier: float = 2.0,
        jitter: bool = True,
        jitter_ratio: float = 0.2,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if not 0.0 <= jitter_ratio <= 1.0:
            raise ValueError("jitter_ratio must be between 0.0 and 1.0")

        self.max_retries = max_retries
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.jitter = jitter
        self.jitter_ratio = jitter_ratio

    def calculate_delay(self, attempt: int) -> float:
        """
        Delay in seconds before retry number *attempt* (0-indexed).

        delay = base_delay * multiplier ** attempt, plus optional jitter.
        """
        delay = self.base_delay * (self.multiplier**attempt)

        if self.jitter:
            variance = delay * self.jitter_ratio
            delay = delay + random.uniform(-variance, variance)

        return max(0.0, delay)


def call_with_retry(config: RetryConfig, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call *func*, retrying on ``TransientStorageError`` per *config*."""
    func_name = getattr(func, "__name__", repr(func))

    for attempt in range(config.max_retries + 1):
        try:
            return func(*args, **kwargs)
        except TransientStorageError as e:
            if attempt >= config.max_retries:
                logger.warning(
                    "%s: max retries (%d) exceeded: %s", func_name, config.max_retries, e
                )
                raise

            delay = config.calculate_delay(attempt)
            logger.info(
                "%s: retry attempt %d/%d after %.2fs due to: %s",
                func_name,
                attempt + 1,
                config.max_retries,
                delay,
                e,
            )
            time.sleep(delay)

    raise RuntimeError("Retry loop completed without success or exception")

