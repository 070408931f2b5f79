# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
import time
from typing import Any, Self

from .._http import HTTPRequest, HTTPResponse, tuples_to_fields
from ..aio.aiohttp import AIOHTTPClient
from ..crypto import get_crypto_provider
from ..exceptions import AuthFailedError, EmailError, NetworkError
from ..interfaces.http import HTTPClient
from ..models import EmailMessage, Provider, SendContext, SendResult
from ..observability import HTTPLogger
from ..signers import SigV4Signer, SigV4SigningProperties
from .config import SESConfig
from .deserializers import deserialize_send_email
from .serializers import serialize_send_email

_LOGGER = logging.getLogger(__name__)

SIGNING_SERVICE = "ses"
IDEMPOTENCY_TOKEN_HEADER = "X-Amzn-Idempotency-Token"


class SESTransport:
    """Delivers messages through the Amazon SES v2 ``SendEmail`` API.

    Each call to :py:meth:`send` makes exactly one signed HTTPS request.

    :param config: Region, credentials, endpoint and logging settings.
    :param http_client: The client used to send requests. Defaults to an
        :py:class:`~aws_sdk_email.aio.aiohttp.AIOHTTPClient`, which requires aiohttp.
    :param signer: Overrides the signer built from ``config.crypto``.

    A default client is owned by the transport and released by :py:meth:`close` or
    by leaving an ``async with`` block. A client passed in is left open.
    """

    def __init__(
        self,
        config: SESConfig,
        *,
        http_client: HTTPClient | None = None,
        signer: SigV4Signer | None = None,
    ) -> None:
        self._config = config
        self._owned_http_client: AIOHTTPClient | None = None
        if http_client is None:
            http_client = self._owned_http_client = AIOHTTPClient()
        self._http_client = http_client
        self._signer = signer or SigV4Signer(
            crypto=get_crypto_provider(config.crypto)
        )
        self._http_logger = HTTPLogger(config.http_logging)
        self._signing_properties = SigV4SigningProperties(
            region=config.region, service=SIGNING_SERVICE
        )

    @property
    def provider(self) -> Provider:
        return Provider.SES

    @property
    def config(self) -> SESConfig:
        return self._config

    @property
    def signer(self) -> SigV4Signer:
        return self._signer

    @property
    def http_client(self) -> HTTPClient:
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owned_http_client is not None:
            await self._owned_http_client.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def send(
        self, message: EmailMessage, context: SendContext | None = None
    ) -> SendResult:
        timeout = context.timeout if context is not None else None
        request = self._build_request(message)

        started = time.monotonic()
        try:
            async with asyncio.timeout(timeout):
                response = await self._http_client.send(request)
        except EmailError:
            raise
        except Exception as e:
            is_timeout = isinstance(e, TimeoutError) or (
                self._http_client.get_error_info(e).is_timeout_error
            )
            _LOGGER.debug(
                "Request to %s failed: %r", request.destination.host, e, exc_info=True
            )
            raise NetworkError(
                str(e) or type(e).__name__, is_timeout_error=is_timeout
            ) from e

        self._log_response(response, duration=time.monotonic() - started)
        return deserialize_send_email(response, provider=self.provider)

    def _build_request(self, message: EmailMessage) -> HTTPRequest:
        body = serialize_send_email(message)
        destination = self._config.destination

        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        }
        if message.idempotency_key is not None:
            headers[IDEMPOTENCY_TOKEN_HEADER] = message.idempotency_key

        credentials = self._config.credentials
        if credentials.is_expired:
            raise AuthFailedError(
                f"Credentials expired at {credentials.expiration}",
                provider=self.provider,
            )

        signed_headers = self._signer.sign(
            method="POST",
            url=destination,
            headers=headers,
            payload=body,
            identity=credentials,
            signing_properties=self._signing_properties,
        )
        self._http_logger.log_request(
            method="POST",
            url=destination.build(),
            headers=signed_headers,
            body=body,
        )
        return HTTPRequest(
            method="POST",
            destination=destination,
            fields=tuples_to_fields(signed_headers.items()),
            body=body,
        )

    def _log_response(self, response: HTTPResponse, *, duration: float) -> None:
        self._http_logger.log_response(
            status=response.status,
            headers=response.fields.to_dict(),
            body=response.body,
            duration=duration,
        )
