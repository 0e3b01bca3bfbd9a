"""Retry and backoff policy for remote calls."""

import logging
import random
import time
from typing import Callable, Optional, TypeVar

from ..exceptions import ApiErrorKind, RemoteApiError
from ..models.migration import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Decides whether a failed remote call is retried and how long to wait.

    Rate limited calls and failures without an application error code are
    retried with exponential backoff. Any other application error code is a
    deterministic rejection and is raised right away.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delta_backoff: float = 1.0,
        add_jitter: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        rand: Callable[[], float] = random.random
    ):
        """
        Initialize the policy.

        Args:
            max_attempts: Maximum number of calls, including the first one
            delta_backoff: Base delay in seconds
            add_jitter: Add a random delay of up to delta_backoff seconds
            sleep: Sleep function
            rand: Random number generator returning values in [0, 1)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delta_backoff = delta_backoff
        self.add_jitter = add_jitter
        self._sleep = sleep
        self._rand = rand

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            delta_backoff=config.delta_backoff,
            add_jitter=config.add_jitter,
        )

    def should_retry(self, error: BaseException) -> bool:
        """Check whether an error is worth retrying."""
        if not isinstance(error, RemoteApiError):
            return True
        if error.kind == ApiErrorKind.REJECTED:
            return False
        if error.kind == ApiErrorKind.NOT_FOUND:
            # A 404 without a code comes from a plain HTTP endpoint such as the asset CDN
            return error.error_code is None
        return True

    def get_delay(self, attempt: int) -> float:
        """Get the delay in seconds before the retry following the given attempt (1-based)."""
        delay = self.delta_backoff * (2 ** (attempt - 1))
        if self.add_jitter:
            delay += self._rand() * self.delta_backoff
        return delay

    def execute(self, func: Callable[[], T], description: Optional[str] = None) -> T:
        """
        Call func, retrying retryable failures.

        Args:
            func: Zero-argument callable performing the remote call
            description: What is being called, for logging

        Returns:
            Result of func

        Raises:
            The last error, once it is not retryable or attempts are exhausted
        """
        attempt = 1
        while True:
            try:
                return func()
            except Exception as e:
                if attempt >= self.max_attempts or not self.should_retry(e):
                    raise
                delay = self.get_delay(attempt)
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} of {description or 'remote call'} failed: {e}. "
                    f"Retrying in {delay:.2f}s"
                )
                self._sleep(delay)
                attempt += 1
