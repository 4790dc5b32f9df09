"""Retry handling for Search Job API calls.

Transient failures (rate limiting, server errors, transport errors and request
timeouts) are retried with exponential backoff and jitter. Client errors are
raised immediately.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .exceptions import APIError, RateLimitError, TimeoutError


logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry logic."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True

    def __post_init__(self):
        """Validate retry configuration."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1:
            raise ValueError("exponential_base must be >= 1")


def is_retryable(error: Exception) -> bool:
    """Decide whether ``error`` is worth another attempt."""
    if isinstance(error, TimeoutError):
        return True
    if isinstance(error, APIError):
        return error.is_retryable
    return False


class RetryableOperation:
    """Runs a coroutine function, retrying it on transient failures."""

    def __init__(self, config: RetryConfig, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        """Initialize retryable operation.

        Args:
            config: Retry configuration
            sleep: Coroutine used to wait between attempts
        """
        self.config = config
        self._sleep = sleep

    async def execute(self, func: Callable[..., Awaitable[Any]], *args, operation: str = "api", **kwargs) -> Any:
        """Execute ``func`` with retry logic.

        Args:
            func: Coroutine function to execute
            *args: Positional arguments for function
            operation: Name used in log messages
            **kwargs: Keyword arguments for function

        Returns:
            Function result

        Raises:
            Exception: The last exception once retries are exhausted, or the
                first non-retryable one
        """
        for attempt in range(self.config.max_attempts):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not is_retryable(e):
                    raise

                if attempt == self.config.max_attempts - 1:
                    logger.error(
                        f"{operation} failed after {self.config.max_attempts} attempts",
                        extra={
                            "operation": operation,
                            "max_attempts": self.config.max_attempts,
                            "final_exception": str(e)
                        }
                    )
                    raise

                delay = self._calculate_delay(attempt, e)
                logger.warning(
                    f"{operation} failed (attempt {attempt + 1}/{self.config.max_attempts}), "
                    f"retrying in {delay:.2f}s: {e}",
                    extra={
                        "operation": operation,
                        "attempt": attempt + 1,
                        "delay": delay,
                        "exception_type": type(e).__name__
                    }
                )
                await self._sleep(delay)

    def _calculate_delay(self, attempt: int, error: Exception) -> float:
        """Calculate delay for retry attempt.

        Args:
            attempt: Current attempt number (0-based)
            error: The failure that triggered the retry

        Returns:
            Delay in seconds
        """
        if isinstance(error, RateLimitError) and error.retry_after:
            return min(float(error.retry_after), self.config.max_delay)

        delay = self.config.base_delay * (self.config.exponential_base ** attempt)
        delay = min(delay, self.config.max_delay)

        if self.config.jitter:
            jitter_range = delay * 0.1  # 10% jitter
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)
