# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from typing import Protocol

from .._http import HTTPRequest, HTTPResponse


@dataclass(kw_only=True)
class HTTPClientConfiguration:
    """Client-level HTTP configuration.

    :param connect_timeout: How long, in seconds, to wait for a connection to be
        established. ``None`` leaves the client's default in place.
    """

    connect_timeout: float | None = None


@dataclass(kw_only=True)
class HTTPRequestConfiguration:
    """Request-level HTTP configuration.

    :param read_timeout: How long, in seconds, the client will attempt to read the first
        byte over an established, open connection before timing out.
    """

    read_timeout: float | None = None


@dataclass(kw_only=True, frozen=True)
class ClientErrorInfo:
    """Information about an error raised by an HTTP client."""

    is_timeout_error: bool
    """Whether this error represents a timeout condition."""


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface."""

    TIMEOUT_EXCEPTIONS: tuple[type[Exception], ...]
    """Exception types the client raises when a request runs out of time."""

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request over the wire and return the response.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        ...

    def get_error_info(self, exception: Exception) -> ClientErrorInfo:
        """Classify an exception raised by :py:meth:`send`."""
        return ClientErrorInfo(
            is_timeout_error=isinstance(exception, self.TIMEOUT_EXCEPTIONS)
        )
