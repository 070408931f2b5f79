# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from .._http import URI
from .._identity import AWSCredentialIdentity
from ..exceptions import ConfigurationError
from ..observability import HTTPLoggingConfig

DEFAULT_REGION = "us-east-1"
SEND_EMAIL_PATH = "/v2/email/outbound-emails"
DNS_SUFFIX = "amazonaws.com"


@dataclass(kw_only=True, frozen=True)
class SESConfig:
    """Settings for :py:class:`~aws_sdk_email.ses.SESTransport`.

    :param access_key_id: AWS access key id.
    :param secret_access_key: AWS secret access key. Never included in ``repr``.
    :param region: The region to send through and to scope signatures to.
    :param session_token: Token for temporary credentials.
    :param expiration: When temporary credentials stop working, in UTC. Sends after
        this point fail with :py:class:`~aws_sdk_email.exceptions.AuthFailedError`
        without reaching the network.
    :param endpoint: Full URL of the SendEmail operation. Overrides the regional
        endpoint, for example to target a local stub.
    :param http_logging: Wire logging settings.
    :param crypto: Name of the hashing provider used for signing. One of
        ``hashlib``, ``crt`` or ``pure``.
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str = DEFAULT_REGION
    session_token: str | None = field(default=None, repr=False)
    expiration: datetime | None = None
    endpoint: str | None = None
    http_logging: HTTPLoggingConfig = field(default_factory=HTTPLoggingConfig)
    crypto: str = "hashlib"

    def __post_init__(self) -> None:
        if not self.region:
            raise ConfigurationError("A region is required to send through SES.")
        if self.endpoint is not None:
            URI.from_string(self.endpoint)

    @classmethod
    def from_environment(
        cls, environ: Mapping[str, str] | None = None, **overrides: object
    ) -> "SESConfig":
        """Load configuration from environment variables.

        Reads ``AWS_ACCESS_KEY_ID``, ``AWS_SECRET_ACCESS_KEY``, ``AWS_SESSION_TOKEN``,
        ``AWS_REGION`` and ``AWS_SES_ENDPOINT``.

        :param environ: The mapping to read. Defaults to ``os.environ``.
        :param overrides: Other constructor arguments, such as ``http_logging``.
        :raises ConfigurationError: If either credential variable is unset.
        """
        environ = os.environ if environ is None else environ

        access_key_id = environ.get("AWS_ACCESS_KEY_ID")
        if access_key_id is None:
            raise ConfigurationError("Missing AWS_ACCESS_KEY_ID environment variable")
        secret_access_key = environ.get("AWS_SECRET_ACCESS_KEY")
        if secret_access_key is None:
            raise ConfigurationError(
                "Missing AWS_SECRET_ACCESS_KEY environment variable"
            )

        return cls(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            region=environ.get("AWS_REGION") or DEFAULT_REGION,
            session_token=environ.get("AWS_SESSION_TOKEN"),
            endpoint=environ.get("AWS_SES_ENDPOINT"),
            **overrides,  # type: ignore
        )

    @property
    def credentials(self) -> AWSCredentialIdentity:
        return AWSCredentialIdentity(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            expiration=self.expiration,
        )

    @property
    def destination(self) -> URI:
        """The SendEmail URL: the endpoint override, or the regional endpoint."""
        if self.endpoint is not None:
            return URI.from_string(self.endpoint)
        return URI(
            host=f"email.{self.region}.{DNS_SUFFIX}",
            path=SEND_EMAIL_PATH,
        )
