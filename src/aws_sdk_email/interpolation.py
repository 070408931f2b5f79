# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""``{{placeholder}}`` substitution for message subjects and bodies."""

import re
from collections.abc import Callable, Mapping
from dataclasses import replace

from .exceptions import InterpolationFailedError
from .models import EmailMessage

type Interpolator = Callable[[EmailMessage, Mapping[str, str] | None], EmailMessage]

_PLACEHOLDER = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")
_EMPTY_PLACEHOLDER = re.compile(r"\{\{\s*\}\}")


def interpolate(
    message: EmailMessage, params: Mapping[str, str] | None = None
) -> EmailMessage:
    """Replace ``{{key}}`` tokens in the subject, text and html of ``message``.

    Whitespace inside the braces is ignored. Tokens whose key is not in ``params`` are
    left verbatim. Without params the message is returned unchanged.

    :raises InterpolationFailedError: If a template contains an unterminated ``{{``
        or an empty ``{{ }}`` placeholder.
    """
    if not params:
        return message

    return replace(
        message,
        subject=interpolate_string(message.subject, params, field_name="subject"),
        text=(
            interpolate_string(message.text, params, field_name="text")
            if message.text is not None
            else None
        ),
        html=(
            interpolate_string(message.html, params, field_name="html")
            if message.html is not None
            else None
        ),
    )


def interpolate_string(
    template: str, params: Mapping[str, str], *, field_name: str = "template"
) -> str:
    _check_syntax(template, field_name)

    def _substitute(match: re.Match[str]) -> str:
        return params.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(_substitute, template)


def _check_syntax(template: str, field_name: str) -> None:
    if (match := _EMPTY_PLACEHOLDER.search(template)) is not None:
        raise InterpolationFailedError(
            f"Empty placeholder in {field_name} at position {match.start()}"
        )
    # Each "{{" must close before the next one opens.
    opening = template.find("{{")
    while opening != -1:
        closing = template.find("}}", opening + 2)
        next_opening = template.find("{{", opening + 2)
        if closing == -1 or -1 < next_opening < closing:
            raise InterpolationFailedError(
                f"Unterminated placeholder in {field_name} at position {opening}"
            )
        opening = template.find("{{", closing + 2)
