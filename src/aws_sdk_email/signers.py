# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Required, TypedDict
from urllib.parse import parse_qsl, quote

from ._http import URI, Field, Fields
from ._identity import AWSCredentialIdentity
from .crypto import CryptoProvider, HashlibCryptoProvider

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_DATE_FORMAT: str = "%Y%m%d"
SIGNING_ALGORITHM: str = "AWS4-HMAC-SHA256"
SCOPE_TERMINATOR: str = "aws4_request"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class SigV4SigningProperties(TypedDict):
    region: Required[str]
    service: Required[str]


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


@dataclass(kw_only=True, frozen=True)
class SigningContext:
    """Everything that goes into a single signature. Built once per attempt."""

    method: str
    destination: URI
    fields: Fields
    payload: bytes
    payload_hash: str
    timestamp: datetime.datetime

    @property
    def amz_date(self) -> str:
        return self.timestamp.strftime(SIGV4_TIMESTAMP_FORMAT)

    @property
    def date_stamp(self) -> str:
        return self.timestamp.strftime(SIGV4_DATE_FORMAT)


@dataclass(kw_only=True, frozen=True)
class CanonicalRequest:
    """The normalized text form of a request used as signing input.

    Rendered with ``str()`` as::

        <HTTPMethod>\\n
        <CanonicalURI>\\n
        <CanonicalQueryString>\\n
        <CanonicalHeaders>\\n
        \\n
        <SignedHeaders>\\n
        <HashedPayload>
    """

    method: str
    canonical_uri: str
    canonical_query: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str

    def __str__(self) -> str:
        return "\n".join(
            (
                self.method,
                self.canonical_uri,
                self.canonical_query,
                self.canonical_headers,
                "",
                self.signed_headers,
                self.payload_hash,
            )
        )


def derive_signing_key(
    *,
    secret_key: str,
    date_stamp: str,
    region: str,
    service: str,
    crypto: CryptoProvider,
) -> bytes:
    """Narrow a secret key to a single day, region and service.

    DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
    DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
    DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
    SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
    """
    k_date = crypto.hmac_sha256(f"AWS4{secret_key}".encode(), date_stamp.encode())
    k_region = crypto.hmac_sha256(k_date, region.encode())
    k_service = crypto.hmac_sha256(k_region, service.encode())
    return crypto.hmac_sha256(k_service, SCOPE_TERMINATOR.encode())


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm.

    :param crypto: The hashing primitives to use. Defaults to
        :py:class:`~aws_sdk_email.crypto.HashlibCryptoProvider`.
    :param clock: Returns the signing time. Override it to make signatures
        reproducible. Naive datetimes are read as UTC.
    """

    def __init__(
        self,
        *,
        crypto: CryptoProvider | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self._crypto = crypto or HashlibCryptoProvider()
        self._clock = clock or _utc_now

    @property
    def crypto(self) -> CryptoProvider:
        return self._crypto

    def sign(
        self,
        *,
        method: str,
        url: str | URI,
        headers: Mapping[str, str],
        payload: bytes | None,
        identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> dict[str, str]:
        """Return ``headers`` plus the date, host, token, payload hash and
        ``Authorization`` headers needed to authenticate the request.

        The supplied mapping is not modified.

        :param method: The HTTP method.
        :param url: The full request URL.
        :param headers: Headers that will be sent and signed.
        :param payload: The exact request body bytes.
        :param identity: The credentials to sign with.
        :param signing_properties: The region and service the signature is scoped to.
        """
        self._validate_identity(identity=identity)
        context = self.signing_context(
            method=method,
            url=url,
            headers=headers,
            payload=payload,
            identity=identity,
        )

        canonical_request = self.canonical_request(context)
        string_to_sign = self.string_to_sign(
            canonical_request=str(canonical_request),
            timestamp=context.timestamp,
            signing_properties=signing_properties,
        )
        signing_key = derive_signing_key(
            secret_key=identity.secret_access_key,
            date_stamp=context.date_stamp,
            region=signing_properties["region"],
            service=signing_properties["service"],
            crypto=self._crypto,
        )
        signature = self._crypto.hmac_sha256(
            signing_key, string_to_sign.encode()
        ).hex()

        scope = self._scope(
            date_stamp=context.date_stamp, signing_properties=signing_properties
        )
        authorization = self.generate_authorization_field(
            credential=f"{identity.access_key_id}/{scope}",
            signed_headers=canonical_request.signed_headers,
            signature=signature,
        )
        context.fields.set_field(authorization)
        return context.fields.to_dict()

    def signing_context(
        self,
        *,
        method: str,
        url: str | URI,
        headers: Mapping[str, str],
        payload: bytes | None,
        identity: AWSCredentialIdentity,
    ) -> SigningContext:
        """Stamp the request and apply the headers every signature requires."""
        destination = url if isinstance(url, URI) else URI.from_string(url)
        timestamp = self._clock()
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=datetime.UTC)
        timestamp = timestamp.astimezone(datetime.UTC).replace(microsecond=0)
        body = payload or b""
        payload_hash = self._crypto.sha256(body).hex()

        fields = Fields.from_mapping(headers)
        amz_date = timestamp.strftime(SIGV4_TIMESTAMP_FORMAT)
        fields.set_field(Field(name="x-amz-date", values=[amz_date]))
        fields.set_field(Field(name="host", values=[destination.authority]))
        if identity.session_token is not None:
            fields.set_field(
                Field(name="x-amz-security-token", values=[identity.session_token])
            )
        fields.set_field(Field(name="x-amz-content-sha256", values=[payload_hash]))

        return SigningContext(
            method=method,
            destination=destination,
            fields=fields,
            payload=body,
            payload_hash=payload_hash,
            timestamp=timestamp,
        )

    def generate_authorization_field(
        self, *, credential: str, signed_headers: str, signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/<request_type>
        :param signed_headers:
            Semicolon-separated field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        auth_str = (
            f"{SIGNING_ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def _validate_identity(self, *, identity: AWSCredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, AWSCredentialIdentity):  # pyright: ignore
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise ValueError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def canonical_request(self, context: SigningContext) -> CanonicalRequest:
        """Build the canonical request for a signing context.

        This is useful to quickly compare inputs to find signature mismatches and
        unintended variances.
        """
        normalized_fields = self._normalize_signing_fields(fields=context.fields)
        return CanonicalRequest(
            method=context.method.upper(),
            canonical_uri=self._format_canonical_path(path=context.destination.path),
            canonical_query=self._format_canonical_query(
                query=context.destination.query
            ),
            canonical_headers="\n".join(
                f"{key}:{value}" for key, value in normalized_fields.items()
            ),
            signed_headers=";".join(normalized_fields),
            payload_hash=context.payload_hash,
        )

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        timestamp: datetime.datetime,
        signing_properties: SigV4SigningProperties,
    ) -> str:
        """The string to sign concatenates the algorithm identifier, the signing
        DateTime, the scope of our credentials, and a hash of the canonical request.

            Algorithm \\n
            RequestDateTime \\n
            CredentialScope  \\n
            HashedCanonicalRequest
        """
        scope = self._scope(
            date_stamp=timestamp.strftime(SIGV4_DATE_FORMAT),
            signing_properties=signing_properties,
        )
        hashed_request = self._crypto.sha256(canonical_request.encode()).hex()
        return (
            f"{SIGNING_ALGORITHM}\n"
            f"{timestamp.strftime(SIGV4_TIMESTAMP_FORMAT)}\n"
            f"{scope}\n"
            f"{hashed_request}"
        )

    def _scope(
        self, *, date_stamp: str, signing_properties: SigV4SigningProperties
    ) -> str:
        region = signing_properties["region"]
        service = signing_properties["service"]
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{date_stamp}/{region}/{service}/{SCOPE_TERMINATOR}"

    def _format_canonical_path(self, *, path: str | None) -> str:
        if not path:
            return "/"
        return "/".join(quote(segment, safe="") for segment in path.split("/"))

    def _format_canonical_query(self, *, query: str | None) -> str:
        if not query:
            return ""

        query_params = parse_qsl(qs=query, keep_blank_values=True)
        query_parts = (
            (quote(string=key, safe=""), quote(string=value, safe=""))
            for key, value in query_params
        )
        # key-value pairs must be in sorted order for their encoded forms.
        return "&".join(f"{key}={value}" for key, value in sorted(query_parts))

    def _normalize_signing_fields(self, *, fields: Fields) -> dict[str, str]:
        normalized_fields = {
            fld.name.lower(): " ".join(fld.as_string().split()) for fld in fields
        }
        return dict(sorted(normalized_fields.items()))
