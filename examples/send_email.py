# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Send a single message through SES using credentials from the environment.

Usage: python send_email.py <from> <to>
"""

import asyncio
import logging
import sys

from aws_sdk_email import (
    EmailAddress,
    EmailMessage,
    HTTPLoggingConfig,
    HTTPLogLevel,
    LoggingMiddleware,
    SimpleEmailClient,
)
from aws_sdk_email.aio.aiohttp import AIOHTTPClient
from aws_sdk_email.ses import SESConfig, SESTransport


async def main(sender: str, recipient: str) -> None:
    config = SESConfig.from_environment(
        http_logging=HTTPLoggingConfig(level=HTTPLogLevel.HEADERS)
    )
    async with AIOHTTPClient() as http_client:
        client = SimpleEmailClient(
            SESTransport(config, http_client=http_client),
            middlewares=[LoggingMiddleware()],
        )
        result = await client.send(
            EmailMessage(
                sender=EmailAddress(sender),
                to=[EmailAddress(recipient)],
                subject="Hello from {{library}}",
                text="This message was sent by {{library}}.",
            ),
            params={"library": "aws-sdk-email"},
        )
    print(f"Sent {result.provider_message_id} (request {result.request_id})")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(*sys.argv[1:3]))
