# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import random
from collections.abc import Callable
from dataclasses import dataclass, field

from .exceptions import NetworkError, RateLimitedError

DEFAULT_BASE_DELAY = 0.25
DEFAULT_MAX_ATTEMPTS = 3

# Jitter scales a delay by a uniform factor in [1.0, 1.0 + MAX_JITTER).
MAX_JITTER = 0.5


def retry_on_transient_errors(error: Exception) -> bool:
    """Default retry predicate: network failures and rate limiting only.

    Authentication, validation and provider failures cannot be fixed by waiting.
    """
    return isinstance(error, NetworkError | RateLimitedError)


def _never_retry(error: Exception) -> bool:
    return False


@dataclass(kw_only=True, frozen=True)
class RetryPolicy:
    """Bounded exponential backoff with optional jitter.

    :param max_attempts: Upper limit on total attempts, including the first one.
    :param base_delay: Delay in seconds before the first retry, before jitter.
    :param jitter: Whether to scale each delay by a random factor in ``[1.0, 1.5)``.
    :param retry_on: Predicate deciding which failures may be retried.
    :param honor_retry_after: Whether a provider-suggested ``retry_after`` raises the
        delay before a retry.
    :param random: A callable that returns random numbers in ``[0, 1)``. Use the
        default ``random.random`` unless you require an alternate source of
        randomness.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    jitter: bool = True
    retry_on: Callable[[Exception], bool] = retry_on_transient_errors
    honor_retry_after: bool = False
    random: Callable[[], float] = field(default=random.random, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(
                f"max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.base_delay < 0:
            raise ValueError(f"base_delay must not be negative, got {self.base_delay}")

    @classmethod
    def exponential_jitter(
        cls, max_attempts: int = DEFAULT_MAX_ATTEMPTS
    ) -> "RetryPolicy":
        """Retry transient failures with 250ms jittered exponential backoff."""
        return cls(
            max_attempts=max_attempts, base_delay=DEFAULT_BASE_DELAY, jitter=True
        )

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """Make exactly one attempt."""
        return cls(max_attempts=1, base_delay=0, jitter=False, retry_on=_never_retry)

    def delay_for_attempt(self, retry_attempt: int) -> float:
        """Calculate timespan in seconds to delay before a retry.

        :param retry_attempt: The index of the retry attempt that is about to be made
            after the delay. The initial attempt, before any retries, is index ``0``,
            and will return a delay of ``0``. The first retry attempt after a failed
            initial attempt is index ``1``, and so on.
        """
        if retry_attempt <= 0:
            return 0
        delay = self.base_delay * (2.0 ** (retry_attempt - 1))
        if self.jitter:
            delay *= 1.0 + self.random() * MAX_JITTER
        return delay

    def delay_for_error(self, retry_attempt: int, error: Exception) -> float:
        """Like :py:meth:`delay_for_attempt`, but honors a rate limit's
        ``retry_after`` when :py:attr:`honor_retry_after` is set."""
        delay = self.delay_for_attempt(retry_attempt)
        if self.honor_retry_after and isinstance(error, RateLimitedError):
            if error.retry_after is not None:
                return max(delay, error.retry_after)
        return delay

    def is_retryable(self, error: Exception) -> bool:
        return self.retry_on(error)
