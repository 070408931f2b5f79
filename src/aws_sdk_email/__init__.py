# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Send email through Amazon SES v2 with SigV4 signing and bounded retries."""

from ._identity import AWSCredentialIdentity
from .client import SimpleEmailClient
from .exceptions import (
    AuthFailedError,
    ConfigurationError,
    EmailError,
    EmailSDKError,
    FailureKind,
    InterpolationFailedError,
    InvalidMessageError,
    MissingDependencyError,
    NetworkError,
    ProviderError,
    RateLimitedError,
)
from .interpolation import interpolate
from .models import EmailAddress, EmailMessage, Provider, SendContext, SendResult
from .observability import HTTPLogLevel, HTTPLoggingConfig, LoggingMiddleware
from .retries import RetryPolicy

__version__ = "0.1.0"
__license__: str = "Apache-2.0"

__all__ = (
    "AWSCredentialIdentity",
    "AuthFailedError",
    "ConfigurationError",
    "EmailAddress",
    "EmailError",
    "EmailMessage",
    "EmailSDKError",
    "FailureKind",
    "HTTPLogLevel",
    "HTTPLoggingConfig",
    "InterpolationFailedError",
    "InvalidMessageError",
    "LoggingMiddleware",
    "MissingDependencyError",
    "NetworkError",
    "Provider",
    "ProviderError",
    "RateLimitedError",
    "RetryPolicy",
    "SendContext",
    "SendResult",
    "SimpleEmailClient",
    "interpolate",
)
