# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from typing import Protocol, runtime_checkable

from ..models import EmailMessage, Provider, SendContext, SendResult

type SendOutcome = SendResult | Exception
"""What a send ended with: the provider's acknowledgement or the final failure."""


@runtime_checkable
class Transport(Protocol):
    """Delivers a single message to one provider.

    Implementations make exactly one delivery attempt per call. Retries are the
    caller's concern.
    """

    @property
    def provider(self) -> Provider:
        """The provider tag attached to results and middleware notifications."""
        ...

    async def send(
        self, message: EmailMessage, context: SendContext | None = None
    ) -> SendResult:
        """Attempt delivery of ``message``.

        :param message: A validated message.
        :param context: Per-call options such as the attempt timeout.
        :raises ~aws_sdk_email.exceptions.EmailError: The failure, classified into
            exactly one kind.
        """
        ...


class Middleware(Protocol):
    """Observes sends without being able to alter them.

    Exceptions raised by either hook are logged and otherwise ignored.
    """

    async def before_send(self, message: EmailMessage, provider: Provider) -> None:
        """Called once per send, before the first attempt."""
        ...

    async def after_send(self, outcome: SendOutcome) -> None:
        """Called once per send, after the last attempt."""
        ...
