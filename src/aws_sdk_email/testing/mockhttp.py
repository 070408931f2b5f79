# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
from collections import deque
from copy import copy
from dataclasses import dataclass, field
from typing import Any

from .._http import HTTPRequest, HTTPResponse, tuples_to_fields
from ..interfaces.http import HTTPClient, HTTPRequestConfiguration


@dataclass(kw_only=True)
class _CannedResponse:
    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def to_response(self) -> HTTPResponse:
        return HTTPResponse(
            status=self.status, fields=tuples_to_fields(self.headers), body=self.body
        )


class MockHTTPClient(HTTPClient):
    """An :py:class:`~aws_sdk_email.interfaces.http.HTTPClient` that replays canned
    responses instead of touching the network.

    Responses and exceptions are handed out in the order they were queued. Every
    request is recorded so tests can assert on the signed headers and body.
    """

    TIMEOUT_EXCEPTIONS = (TimeoutError,)

    def __init__(self) -> None:
        self._queue: deque[_CannedResponse | Exception] = deque()
        self._requests: list[HTTPRequest] = []

    def add_response(
        self,
        status: int = 200,
        headers: list[tuple[str, str]] | None = None,
        body: bytes = b"",
    ) -> None:
        """Queue a raw response for the next request."""
        self._queue.append(
            _CannedResponse(status=status, headers=list(headers or []), body=body)
        )

    def add_json_response(
        self,
        document: Any,
        *,
        status: int = 200,
        request_id: str | None = None,
    ) -> None:
        """Queue a JSON response shaped like an SES reply.

        :param document: The object serialized into the response body.
        :param status: HTTP status code.
        :param request_id: Sent back as ``x-amzn-RequestId`` when given.
        """
        headers = [("Content-Type", "application/json")]
        if request_id is not None:
            headers.append(("x-amzn-RequestId", request_id))
        self.add_response(status, headers, json.dumps(document).encode("utf-8"))

    def add_exception(self, exception: Exception) -> None:
        """Queue an exception to be raised by the next request."""
        self._queue.append(exception)

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        self._requests.append(copy(request))
        if not self._queue:
            raise MockHTTPClientError(
                f"Request #{len(self._requests)} to {request.destination.host} has no "
                "queued response. Queue one with add_response() first."
            )

        queued = self._queue.popleft()
        if isinstance(queued, Exception):
            raise queued
        return queued.to_response()

    @property
    def call_count(self) -> int:
        return len(self._requests)

    @property
    def captured_requests(self) -> list[HTTPRequest]:
        """Copies of every request sent so far, oldest first."""
        return list(self._requests)


class MockHTTPClientError(Exception):
    """Raised when :py:class:`MockHTTPClient` runs out of queued responses."""
