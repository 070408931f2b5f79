# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
from typing import Any

from ..models import EmailMessage

CHARSET = "UTF-8"


def _content(data: str) -> dict[str, str]:
    return {"Data": data, "Charset": CHARSET}


def build_send_email_body(message: EmailMessage) -> dict[str, Any]:
    """Build the SES v2 ``SendEmail`` request document for a simple message."""
    body: dict[str, Any] = {}
    if message.text is not None:
        body["Text"] = _content(message.text)
    if message.html is not None:
        body["Html"] = _content(message.html)

    destination: dict[str, list[str]] = {
        "ToAddresses": [address.format() for address in message.to]
    }
    if message.cc:
        destination["CcAddresses"] = [address.format() for address in message.cc]
    if message.bcc:
        destination["BccAddresses"] = [address.format() for address in message.bcc]

    document: dict[str, Any] = {
        "FromEmailAddress": message.sender.format(),
        "Destination": destination,
        "Content": {"Simple": {"Subject": _content(message.subject), "Body": body}},
    }
    if message.reply_to is not None:
        document["ReplyToAddresses"] = [message.reply_to.format()]
    if message.headers:
        document["EmailTags"] = [
            {"Name": name, "Value": value} for name, value in message.headers.items()
        ]
    return document


def serialize_send_email(message: EmailMessage) -> bytes:
    return json.dumps(build_send_email_body(message), separators=(",", ":")).encode(
        "utf-8"
    )
