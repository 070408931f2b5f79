# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import parse_qsl, urlunsplit

if TYPE_CHECKING:
    # pyright doesn't like optional imports. This is reasonable because if we use these
    # in type hints then they'd result in runtime errors.
    import aiohttp

try:
    import aiohttp  # noqa: F811

    HAS_AIOHTTP = True
except ImportError:
    HAS_AIOHTTP = False  # type: ignore

from .._http import URI, HTTPRequest, HTTPResponse, tuples_to_fields
from ..exceptions import MissingDependencyError
from ..interfaces.http import (
    HTTPClient,
    HTTPClientConfiguration,
    HTTPRequestConfiguration,
)


def _assert_aiohttp() -> None:
    if not HAS_AIOHTTP:
        raise MissingDependencyError(
            "Attempted to use aiohttp component, but aiohttp is not installed."
        )


@dataclass(kw_only=True)
class AIOHTTPClientConfig(HTTPClientConfiguration):
    def __post_init__(self) -> None:
        _assert_aiohttp()


class AIOHTTPClient(HTTPClient):
    """Implementation of :py:class:`.interfaces.http.HTTPClient` using aiohttp.

    The underlying session is opened on first use, so the client may be constructed
    outside of a running event loop. Close it with :py:meth:`close` or use it as an
    async context manager.
    """

    # aiohttp's timeout errors all derive from the builtin TimeoutError.
    TIMEOUT_EXCEPTIONS = (TimeoutError,)

    def __init__(
        self,
        *,
        client_config: AIOHTTPClientConfig | None = None,
        _session: "aiohttp.ClientSession | None" = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        _assert_aiohttp()
        self._config = client_config or AIOHTTPClientConfig()
        self._session = _session

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        request_config = request_config or HTTPRequestConfiguration()

        headers_list = [tup for fld in request.fields for tup in fld.as_tuples()]
        timeout = aiohttp.ClientTimeout(
            connect=self._config.connect_timeout,
            sock_read=request_config.read_timeout,
        )

        async with self._get_session().request(
            method=request.method,
            url=self._serialize_uri_without_query(request.destination),
            params=parse_qsl(request.destination.query or "", keep_blank_values=True),
            headers=headers_list,
            data=request.body,
            timeout=timeout,
        ) as resp:
            return await self._marshal_response(resp)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_session(self) -> "aiohttp.ClientSession":
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _serialize_uri_without_query(self, uri: URI) -> str:
        """Serialize all parts of the URI up to and including the path."""
        return urlunsplit((uri.scheme, uri.netloc, uri.path or "", "", ""))

    async def _marshal_response(
        self, aiohttp_resp: "aiohttp.ClientResponse"
    ) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to a buffered ``HTTPResponse``."""
        return HTTPResponse(
            status=aiohttp_resp.status,
            fields=tuples_to_fields(aiohttp_resp.headers.items()),
            body=await aiohttp_resp.read(),
            reason=aiohttp_resp.reason,
        )
