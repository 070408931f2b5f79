# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(kw_only=True, frozen=True)
class AWSCredentialIdentity:
    """The key pair, and optional session token, that requests are signed with.

    Secrets are excluded from ``repr`` so that identities can be logged safely.
    """

    access_key_id: str
    """Appears in the ``Credential`` scope of every signature."""

    secret_access_key: str = field(repr=False)
    """Seeds the signing key derivation. Never sent over the wire."""

    session_token: str | None = field(default=None, repr=False)
    """Sent and signed as ``X-Amz-Security-Token`` for temporary credentials."""

    expiration: datetime | None = None
    """When temporary credentials stop working. Must be timezone-aware UTC."""

    @property
    def is_expired(self) -> bool:
        if self.expiration is None:
            return False
        return datetime.now(tz=UTC) >= self.expiration
