# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
import math
import uuid
from typing import Any

from .._http import HTTPResponse
from ..exceptions import (
    AuthFailedError,
    EmailError,
    NetworkError,
    ProviderError,
    RateLimitedError,
)
from ..models import Provider, SendResult

REQUEST_ID_HEADER = "x-amzn-RequestId"
ERROR_TYPE_HEADER = "x-amzn-ErrorType"
RETRY_AFTER_HEADER = "Retry-After"
UNKNOWN_ERROR = "Unknown error"


def deserialize_send_email(
    response: HTTPResponse, *, provider: Provider = Provider.SES
) -> SendResult:
    """Turn a SendEmail response into a result.

    :raises EmailError: For any response other than a 2xx.
    """
    status = response.status
    if not 100 <= status <= 599:
        raise NetworkError(f"Received invalid HTTP status code {status}")

    if 200 <= status < 300:
        document = _parse_document(response.body)
        message_id = document.get("MessageId") if document is not None else None
        return SendResult(
            provider=provider,
            provider_message_id=message_id if isinstance(message_id, str) else None,
            accepted=True,
            remote_status=str(status),
            request_id=response.fields.get_value(REQUEST_ID_HEADER)
            or str(uuid.uuid4()),
        )

    raise deserialize_error(response, provider=provider)


def deserialize_error(response: HTTPResponse, *, provider: Provider) -> EmailError:
    """Classify a non-2xx response into exactly one failure kind."""
    status = response.status
    if status in (401, 403):
        return AuthFailedError(
            _parse_error_message(response.body),
            provider=provider,
            status_code=status,
        )
    if status == 429:
        return RateLimitedError(
            _parse_error_message(response.body),
            provider=provider,
            retry_after=parse_retry_after(
                response.fields.get_value(RETRY_AFTER_HEADER)
            ),
        )

    description = _parse_error_message(response.body)
    return ProviderError(
        description,
        provider=provider,
        code=_parse_error_code(response),
        description=description,
        status_code=status,
    )


def parse_retry_after(value: str | None) -> float | None:
    """Parse a ``Retry-After`` header given in seconds.

    HTTP-dates, negative and non-numeric values are ignored.
    """
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


def _parse_document(body: bytes) -> dict[str, Any] | None:
    try:
        document = json.loads(body)
    except ValueError:
        return None
    return document if isinstance(document, dict) else None


def _parse_error_message(body: bytes) -> str:
    document = _parse_document(body)
    if document is None:
        text = body.decode("utf-8", errors="replace")
        return text or UNKNOWN_ERROR
    for key in ("message", "Message"):
        if isinstance(message := document.get(key), str):
            return message
    return UNKNOWN_ERROR


def _parse_error_code(response: HTTPResponse) -> str | None:
    document = _parse_document(response.body)
    if document is not None:
        for key in ("__type", "Code"):
            if isinstance(code := document.get(key), str):
                return code
    # The header may carry a trailing ":<url>" component.
    if (header := response.fields.get_value(ERROR_TYPE_HEADER)) is not None:
        return header.split(":", 1)[0] or None
    return None
