# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from asyncio import sleep
from collections.abc import Iterable, Mapping

from .interfaces import Middleware, SendOutcome, Transport
from .interpolation import Interpolator, interpolate
from .models import EmailMessage, Provider, SendContext, SendResult
from .retries import RetryPolicy

_LOGGER = logging.getLogger(__name__)


class SimpleEmailClient:
    """Sends messages through a transport with validation, interpolation, middleware
    notification and retries.

    :param transport: Delivers each attempt. Its ``provider`` tags middleware calls.
    :param retry_policy: Decides how often and how long to retry. Defaults to
        :py:meth:`RetryPolicy.exponential_jitter`.
    :param middlewares: Observers notified before the first attempt and after the
        last one, in registration order.
    :param interpolate: Substitutes ``params`` into the message.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        retry_policy: RetryPolicy | None = None,
        middlewares: Iterable[Middleware] = (),
        interpolate: Interpolator = interpolate,
    ) -> None:
        self._transport = transport
        self._retry_policy = retry_policy or RetryPolicy.exponential_jitter()
        self._middlewares = tuple(middlewares)
        self._interpolate = interpolate

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    async def send(
        self,
        message: EmailMessage,
        params: Mapping[str, str] | None = None,
        context: SendContext | None = None,
    ) -> SendResult:
        """Validate, interpolate and deliver ``message``.

        :param message: The message to send.
        :param params: Values for ``{{key}}`` placeholders.
        :param context: Per-call options, passed to every attempt.
        :raises InvalidMessageError: If the message fails validation. The transport
            is not called.
        :raises InterpolationFailedError: If a template is malformed.
        :raises EmailError: The last failure once retries are exhausted or the failure
            is not retryable.
        """
        message.validate()
        prepared = self._interpolate(message, params)
        provider = self._transport.provider

        for middleware in self._middlewares:
            await self._notify_before_send(middleware, prepared, provider)

        outcome: SendOutcome
        try:
            outcome = await self._retry(prepared, context)
        except Exception as e:
            outcome = e

        for middleware in self._middlewares:
            await self._notify_after_send(middleware, outcome)

        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def _retry(
        self, message: EmailMessage, context: SendContext | None
    ) -> SendResult:
        policy = self._retry_policy
        trace_id = context.trace_id if context is not None else None
        attempt = 1
        while True:
            try:
                return await self._transport.send(message, context)
            except Exception as e:
                if attempt >= policy.max_attempts or not policy.is_retryable(e):
                    _LOGGER.debug(
                        "Send failed on attempt #%s, not retrying (trace_id=%s): %r",
                        attempt,
                        trace_id,
                        e,
                    )
                    raise
                delay = policy.delay_for_error(attempt, e)
                _LOGGER.debug(
                    "Retry needed. Attempting send #%s in %.4f seconds "
                    "(trace_id=%s): %r",
                    attempt + 1,
                    delay,
                    trace_id,
                    e,
                )
            if delay:
                await sleep(delay)
            attempt += 1

    async def _notify_before_send(
        self, middleware: Middleware, message: EmailMessage, provider: Provider
    ) -> None:
        try:
            await middleware.before_send(message, provider)
        except Exception:
            _LOGGER.exception("Middleware %r failed in before_send", middleware)

    async def _notify_after_send(
        self, middleware: Middleware, outcome: SendOutcome
    ) -> None:
        try:
            await middleware.after_send(outcome)
        except Exception:
            _LOGGER.exception("Middleware %r failed in after_send", middleware)
