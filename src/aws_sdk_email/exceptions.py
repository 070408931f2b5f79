# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .models import Provider


class EmailSDKError(Exception):
    """Base exception type for all exceptions raised by aws-sdk-email."""


class ConfigurationError(EmailSDKError, ValueError):
    """Raised when client or transport configuration is missing or invalid."""


class MissingDependencyError(EmailSDKError):
    """Exception type raised when a feature that requires a missing optional dependency
    is called."""


class FailureKind(Enum):
    """The closed set of ways a send can fail."""

    INVALID_MESSAGE = "invalid-message"
    """The message failed local validation. Never retried."""

    AUTH_FAILED = "auth-failed"
    """The provider rejected the credentials (HTTP 401 or 403)."""

    RATE_LIMITED = "rate-limited"
    """The provider asked the client to back off (HTTP 429)."""

    NETWORK = "network"
    """A local I/O failure, a timeout, or a malformed response."""

    PROVIDER = "provider"
    """Any other non-2xx response from the provider."""

    INTERPOLATION_FAILED = "interpolation-failed"
    """A template in the message could not be parsed."""


@dataclass(kw_only=True)
class EmailError(EmailSDKError):
    """Base exception for every failure a send can end with.

    Each subclass corresponds to exactly one :py:class:`FailureKind` and carries only
    the fields relevant to that kind. The retry fields mirror the retry-info contract
    used by retry strategies: they describe whether a retry is allowed, not whether one
    will occur.
    """

    kind: ClassVar[FailureKind]

    message: str = field(default="", kw_only=False)
    """The message of the error."""

    is_retry_safe: ClassVar[bool] = False
    """Whether the error is safe to retry."""

    is_throttling_error: ClassVar[bool] = False
    """Whether the error is a throttling error."""

    retry_after: float | None = None
    """The amount of time, in seconds, the provider asked to wait before a retry."""

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


@dataclass(kw_only=True)
class InvalidMessageError(EmailError):
    kind: ClassVar[FailureKind] = FailureKind.INVALID_MESSAGE

    def __str__(self) -> str:
        return f"Invalid message: {self.message}"


@dataclass(kw_only=True)
class InterpolationFailedError(EmailError):
    kind: ClassVar[FailureKind] = FailureKind.INTERPOLATION_FAILED

    def __str__(self) -> str:
        return f"Parameter interpolation failed: {self.message}"


@dataclass(kw_only=True)
class AuthFailedError(EmailError):
    kind: ClassVar[FailureKind] = FailureKind.AUTH_FAILED

    provider: "Provider"
    status_code: int | None = None

    def __str__(self) -> str:
        detail = self.message or "unknown error"
        return f"Authentication failed for {self.provider}: {detail}"


@dataclass(kw_only=True)
class RateLimitedError(EmailError):
    kind: ClassVar[FailureKind] = FailureKind.RATE_LIMITED
    is_retry_safe: ClassVar[bool] = True
    is_throttling_error: ClassVar[bool] = True

    provider: "Provider"

    def __str__(self) -> str:
        if self.retry_after is not None:
            return f"Rate limited by {self.provider}, retry after {self.retry_after}s"
        return f"Rate limited by {self.provider}"


@dataclass(kw_only=True)
class NetworkError(EmailError):
    kind: ClassVar[FailureKind] = FailureKind.NETWORK
    is_retry_safe: ClassVar[bool] = True

    is_timeout_error: bool = False
    """Whether the attempt ran past its deadline."""

    def __str__(self) -> str:
        return f"Network error: {self.message}"


@dataclass(kw_only=True)
class ProviderError(EmailError):
    kind: ClassVar[FailureKind] = FailureKind.PROVIDER

    provider: "Provider"
    code: str | None = None
    description: str | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        return (
            f"Provider error ({self.provider}): "
            f"[{self.code or 'unknown'}] {self.description or 'no description'}"
        )
