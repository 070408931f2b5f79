# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Wire logging for HTTP exchanges and a logging middleware for sends.

Everything here writes through :py:mod:`logging`. The library never configures
handlers, so nothing is emitted until the application does.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import IntEnum

from .interfaces import SendOutcome
from .models import EmailMessage, Provider

_LOGGER = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
DEFAULT_REDACTED_HEADERS = frozenset({"Authorization", "x-amz-security-token"})
DEFAULT_MAX_BODY_BYTES = 10_000


class HTTPLogLevel(IntEnum):
    """How much of each HTTP exchange to log. Each tier includes the ones below it."""

    NONE = 0
    """Log nothing."""

    MINIMAL = 1
    """Method, URL and status code."""

    HEADERS = 2
    """Adds request and response headers."""

    BODY = 3
    """Adds request and response bodies."""

    VERBOSE = 4
    """Adds the duration of the exchange."""


@dataclass(kw_only=True, frozen=True)
class HTTPLoggingConfig:
    """Settings for :py:class:`HTTPLogger`.

    :param level: The logging tier.
    :param redacted_headers: Header names whose values are replaced with
        ``[REDACTED]``. Matched case-insensitively.
    :param max_body_bytes: Bodies longer than this are truncated before logging.
    """

    level: HTTPLogLevel = HTTPLogLevel.NONE
    redacted_headers: frozenset[str] = DEFAULT_REDACTED_HEADERS
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    def __post_init__(self) -> None:
        object.__setattr__(self, "redacted_headers", frozenset(self.redacted_headers))
        if self.max_body_bytes < 0:
            raise ValueError(
                f"max_body_bytes must not be negative, got {self.max_body_bytes}"
            )

    def is_redacted(self, header_name: str) -> bool:
        lowered = header_name.lower()
        return any(lowered == name.lower() for name in self.redacted_headers)


class HTTPLogger:
    """Formats HTTP requests and responses according to an
    :py:class:`HTTPLoggingConfig`. Each exchange half is a single INFO record."""

    def __init__(
        self,
        config: HTTPLoggingConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or HTTPLoggingConfig()
        self._logger = logger or _LOGGER

    @property
    def config(self) -> HTTPLoggingConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.level > HTTPLogLevel.NONE

    def log_request(
        self,
        *,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> None:
        if not self.enabled:
            return
        lines = ["[HTTP Request]", f"  {method} {url}"]
        self._append_details(lines, headers.items(), body)
        self._logger.info("\n".join(lines))

    def log_response(
        self,
        *,
        status: int,
        headers: Mapping[str, str],
        body: bytes | None = None,
        duration: float | None = None,
    ) -> None:
        if not self.enabled:
            return
        lines = ["[HTTP Response]", f"  Status: {status}"]
        if duration is not None and self._config.level >= HTTPLogLevel.VERBOSE:
            lines.append(f"  Duration: {duration:.3f}s")
        self._append_details(lines, headers.items(), body)
        self._logger.info("\n".join(lines))

    def _append_details(
        self,
        lines: list[str],
        headers: Iterable[tuple[str, str]],
        body: bytes | None,
    ) -> None:
        level = self._config.level
        if level >= HTTPLogLevel.HEADERS:
            lines.append("  Headers:")
            for name, value in sorted(headers):
                shown = REDACTED if self._config.is_redacted(name) else value
                lines.append(f"    {name}: {shown}")
        if level >= HTTPLogLevel.BODY and body is not None:
            lines.append(f"  Body ({len(body)} bytes):")
            lines.append(f"    {self.format_body(body)}")

    def format_body(self, body: bytes) -> str:
        """Render a body for logging, truncating it past ``max_body_bytes``."""
        limit = self._config.max_body_bytes
        if len(body) <= limit:
            try:
                return body.decode("utf-8")
            except UnicodeDecodeError:
                return "[Binary data]"
        truncated = body[:limit].decode("utf-8", errors="replace")
        return f"[Body too large, showing first {limit} bytes] {truncated}..."


class LoggingMiddleware:
    """A :py:class:`~aws_sdk_email.interfaces.Middleware` that logs each send."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _LOGGER

    async def before_send(self, message: EmailMessage, provider: Provider) -> None:
        self._logger.info(
            "Sending email via %s: from=%s to=%s subject=%r",
            provider,
            message.sender.email,
            ", ".join(address.email for address in message.to),
            message.subject,
        )

    async def after_send(self, outcome: SendOutcome) -> None:
        if isinstance(outcome, Exception):
            self._logger.warning("Email send failed: %s", outcome)
            return
        self._logger.info(
            "Email sent via %s: message_id=%s request_id=%s",
            outcome.provider,
            outcome.provider_message_id or "N/A",
            outcome.request_id,
        )
