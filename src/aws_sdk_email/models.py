# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from .exceptions import InvalidMessageError

_EMAIL_PATTERN = re.compile(r"^[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class Provider(StrEnum):
    """Identifies the service a transport delivers through."""

    SES = "ses"
    """Amazon Simple Email Service (v2 API)."""

    MOCK = "mock"
    """The in-memory test double."""


@dataclass(frozen=True)
class EmailAddress:
    """An email address with an optional display name."""

    email: str
    name: str | None = None

    @property
    def is_valid(self) -> bool:
        return _EMAIL_PATTERN.fullmatch(self.email) is not None

    def format(self) -> str:
        """Render as ``"Name" <email>``, or the bare address without a name."""
        if self.name is None:
            return self.email
        escaped = self.name.replace('"', '\\"')
        return f'"{escaped}" <{self.email}>'

    def __str__(self) -> str:
        return self.format()


@dataclass(kw_only=True, frozen=True)
class EmailMessage:
    """A single email to deliver. Attachments and templates are not supported."""

    sender: EmailAddress
    to: tuple[EmailAddress, ...]
    subject: str
    text: str | None = None
    html: str | None = None
    cc: tuple[EmailAddress, ...] = ()
    bcc: tuple[EmailAddress, ...] = ()
    reply_to: EmailAddress | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    """Custom headers. The SES transport sends these as message tags."""

    idempotency_key: str | None = None
    """Lets the provider deduplicate retried sends. Advisory only."""

    def __post_init__(self) -> None:
        # Address lists may be given as any iterable; headers are copied.
        object.__setattr__(self, "to", tuple(self.to))
        object.__setattr__(self, "cc", tuple(self.cc))
        object.__setattr__(self, "bcc", tuple(self.bcc))
        object.__setattr__(self, "headers", dict(self.headers))

    def validate(self) -> None:
        """Check that the message can be sent.

        :raises InvalidMessageError: On the first problem found.
        """
        if not self.sender.is_valid:
            raise InvalidMessageError(
                f"Invalid 'from' email address: {self.sender.email}"
            )

        if not self.to:
            raise InvalidMessageError("At least one recipient is required")

        for label, addresses in (("to", self.to), ("cc", self.cc), ("bcc", self.bcc)):
            for address in addresses:
                if not address.is_valid:
                    raise InvalidMessageError(
                        f"Invalid '{label}' email address: {address.email}"
                    )

        if self.reply_to is not None and not self.reply_to.is_valid:
            raise InvalidMessageError(
                f"Invalid 'reply_to' email address: {self.reply_to.email}"
            )

        if not self.subject:
            raise InvalidMessageError("Subject cannot be empty")

        if self.text is None and self.html is None:
            raise InvalidMessageError("Either text or html body must be provided")


@dataclass(kw_only=True, frozen=True)
class SendResult:
    """The provider's acknowledgement of an accepted message."""

    provider: Provider
    provider_message_id: str | None
    accepted: bool
    remote_status: str | None
    request_id: str
    """Provider-issued request id, or a locally generated one if none was returned."""


@dataclass(kw_only=True, frozen=True)
class SendContext:
    """Per-call options for a send."""

    timeout: float | None = None
    """Upper bound, in seconds, on a single transport attempt."""

    trace_id: str | None = None
    """Caller-supplied correlation id. Included in log records."""
