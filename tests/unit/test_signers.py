# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import re
from datetime import UTC, datetime, timedelta, timezone

import pytest
from aws_sdk_email._http import URI, Fields
from aws_sdk_email._identity import AWSCredentialIdentity
from aws_sdk_email.crypto import HashlibCryptoProvider, PureCryptoProvider
from aws_sdk_email.signers import (
    EMPTY_SHA256_HASH,
    SIGV4_TIMESTAMP_FORMAT,
    SigningContext,
    SigV4Signer,
    SigV4SigningProperties,
    derive_signing_key,
)
from freezegun import freeze_time

SECRET_KEY: str = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
ACCESS_KEY: str = "AKIDEXAMPLE"
REGION: str = "us-east-1"

DATE: datetime = datetime(
    year=2015, month=8, day=30, hour=12, minute=36, second=0, tzinfo=UTC
)
DATE_STR: str = DATE.strftime(SIGV4_TIMESTAMP_FORMAT)

SIGV4_RE = re.compile(
    r"AWS4-HMAC-SHA256 "
    r"Credential=(?P<access_key>\w+)/(?P<date>\d{8})/"
    r"(?P<region>[a-z0-9-]+)/(?P<service>[a-z0-9-]+)/aws4_request, "
    r"SignedHeaders=(?P<signed_headers>[a-z0-9;-]+), "
    r"Signature=(?P<signature>[0-9a-f]{64})$"
)


@pytest.fixture(scope="module")
def aws_identity() -> AWSCredentialIdentity:
    return AWSCredentialIdentity(
        access_key_id=ACCESS_KEY,
        secret_access_key=SECRET_KEY,
    )


@pytest.fixture(scope="module")
def signing_properties() -> SigV4SigningProperties:
    return SigV4SigningProperties(region=REGION, service="ses")


def test_derive_signing_key() -> None:
    key = derive_signing_key(
        secret_key=SECRET_KEY,
        date_stamp="20150830",
        region="us-east-1",
        service="iam",
        crypto=HashlibCryptoProvider(),
    )
    assert key.hex() == (
        "c4afb1cc5771d871763a393e44b703571b55cc28424d1a5e86da6ed3c154a4b9"
    )


class TestPublishedExamples:
    """Canonical requests and signatures published in the SigV4 documentation."""

    def _sign(
        self, signer: SigV4Signer, context: SigningContext, service: str
    ) -> tuple[str, str, str]:
        properties = SigV4SigningProperties(region=REGION, service=service)
        canonical_request = str(signer.canonical_request(context))
        string_to_sign = signer.string_to_sign(
            canonical_request=canonical_request,
            timestamp=context.timestamp,
            signing_properties=properties,
        )
        key = derive_signing_key(
            secret_key=SECRET_KEY,
            date_stamp=context.date_stamp,
            region=REGION,
            service=service,
            crypto=signer.crypto,
        )
        signature = signer.crypto.hmac_sha256(key, string_to_sign.encode()).hex()
        return canonical_request, string_to_sign, signature

    @pytest.mark.parametrize(
        "signer",
        [
            SigV4Signer(crypto=HashlibCryptoProvider()),
            SigV4Signer(crypto=PureCryptoProvider()),
        ],
        ids=["hashlib", "pure"],
    )
    def test_iam_list_users(self, signer: SigV4Signer) -> None:
        context = SigningContext(
            method="GET",
            destination=URI(
                host="iam.amazonaws.com",
                path="/",
                query="Action=ListUsers&Version=2010-05-08",
            ),
            fields=Fields.from_mapping(
                {
                    "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
                    "Host": "iam.amazonaws.com",
                    "X-Amz-Date": DATE_STR,
                }
            ),
            payload=b"",
            payload_hash=EMPTY_SHA256_HASH,
            timestamp=DATE,
        )

        canonical_request, string_to_sign, signature = self._sign(
            signer, context, "iam"
        )

        assert canonical_request == (
            "GET\n"
            "/\n"
            "Action=ListUsers&Version=2010-05-08\n"
            "content-type:application/x-www-form-urlencoded; charset=utf-8\n"
            "host:iam.amazonaws.com\n"
            "x-amz-date:20150830T123600Z\n"
            "\n"
            "content-type;host;x-amz-date\n"
            f"{EMPTY_SHA256_HASH}"
        )
        assert string_to_sign == (
            "AWS4-HMAC-SHA256\n"
            "20150830T123600Z\n"
            "20150830/us-east-1/iam/aws4_request\n"
            "f536975d06c0309214f805bb90ccff089219ecd68b2577efef23edd43b7e1a59"
        )
        assert signature == (
            "5d672d79c15b13162d9279b0855cfba6789a8edb4c82c400e06b5924a6f2b5d7"
        )

    def test_get_vanilla(self) -> None:
        signer = SigV4Signer()
        context = SigningContext(
            method="GET",
            destination=URI(host="example.amazonaws.com", path="/"),
            fields=Fields.from_mapping(
                {"Host": "example.amazonaws.com", "X-Amz-Date": DATE_STR}
            ),
            payload=b"",
            payload_hash=EMPTY_SHA256_HASH,
            timestamp=DATE,
        )

        canonical_request, _, signature = self._sign(signer, context, "service")

        assert canonical_request == (
            "GET\n"
            "/\n"
            "\n"
            "host:example.amazonaws.com\n"
            "x-amz-date:20150830T123600Z\n"
            "\n"
            "host;x-amz-date\n"
            f"{EMPTY_SHA256_HASH}"
        )
        assert signature == (
            "5fa00fa31553b73ebf1942676e86291e8372ff2a2260956d9b8aae1d763fbf31"
        )


class TestSigV4Signer:
    SIGV4_SIGNER = SigV4Signer()

    @freeze_time(DATE)
    def test_sign(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        signed = self.SIGV4_SIGNER.sign(
            method="POST",
            url="https://email.us-east-1.amazonaws.com/v2/email/outbound-emails",
            headers=headers,
            payload=b"{}",
            identity=aws_identity,
            signing_properties=signing_properties,
        )

        assert headers == {"Content-Type": "application/json"}
        assert signed["Content-Type"] == "application/json"
        assert signed["x-amz-date"] == DATE_STR
        assert signed["host"] == "email.us-east-1.amazonaws.com"
        assert signed["x-amz-content-sha256"] == (
            HashlibCryptoProvider().sha256(b"{}").hex()
        )
        assert "x-amz-security-token" not in signed

        match = SIGV4_RE.match(signed["Authorization"])
        assert match is not None
        assert match.group("access_key") == ACCESS_KEY
        assert match.group("date") == "20150830"
        assert match.group("region") == REGION
        assert match.group("service") == "ses"
        assert match.group("signed_headers") == (
            "content-type;host;x-amz-content-sha256;x-amz-date"
        )

    @freeze_time(DATE)
    def test_sign_matches_step_by_step_derivation(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> None:
        url = "https://email.us-east-1.amazonaws.com/v2/email/outbound-emails"
        signed = self.SIGV4_SIGNER.sign(
            method="POST",
            url=url,
            headers={"Content-Type": "application/json"},
            payload=b'{"a":1}',
            identity=aws_identity,
            signing_properties=signing_properties,
        )

        context = self.SIGV4_SIGNER.signing_context(
            method="POST",
            url=url,
            headers={"Content-Type": "application/json"},
            payload=b'{"a":1}',
            identity=aws_identity,
        )
        string_to_sign = self.SIGV4_SIGNER.string_to_sign(
            canonical_request=str(self.SIGV4_SIGNER.canonical_request(context)),
            timestamp=context.timestamp,
            signing_properties=signing_properties,
        )
        key = derive_signing_key(
            secret_key=SECRET_KEY,
            date_stamp="20150830",
            region=REGION,
            service="ses",
            crypto=HashlibCryptoProvider(),
        )
        expected = HashlibCryptoProvider().hmac_sha256(key, string_to_sign.encode())
        assert signed["Authorization"].endswith(f"Signature={expected.hex()}")

    def test_sign_is_deterministic_for_fixed_clock(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> None:
        kwargs = dict(
            method="POST",
            url="https://email.us-east-1.amazonaws.com/v2/email/outbound-emails",
            headers={"Content-Type": "application/json"},
            payload=b"{}",
            identity=aws_identity,
            signing_properties=signing_properties,
        )
        first = SigV4Signer(clock=lambda: DATE).sign(**kwargs)  # type: ignore
        second = SigV4Signer(
            crypto=PureCryptoProvider(), clock=lambda: DATE
        ).sign(**kwargs)  # type: ignore
        assert first == second

    def test_signature_depends_on_payload(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> None:
        signer = SigV4Signer(clock=lambda: DATE)
        signatures = {
            signer.sign(
                method="POST",
                url="https://email.us-east-1.amazonaws.com/",
                headers={},
                payload=payload,
                identity=aws_identity,
                signing_properties=signing_properties,
            )["Authorization"]
            for payload in (b"{}", b"{ }")
        }
        assert len(signatures) == 2

    @pytest.mark.parametrize(
        "name, first, second, same_signature",
        [
            ("Content-Type", "application/json", "text/plain", False),
            ("X-Amzn-Idempotency-Token", "idem-1", "idem-2", False),
            ("X-Custom", "a b", "a c", False),
            ("X-Custom", "a b", "  a    b  ", True),
            ("Content-Type", "application/json", "\tapplication/json ", True),
        ],
    )
    def test_signature_depends_on_header_values(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
        name: str,
        first: str,
        second: str,
        same_signature: bool,
    ) -> None:
        signer = SigV4Signer(clock=lambda: DATE)

        def authorization(value: str) -> str:
            return signer.sign(
                method="POST",
                url="https://email.us-east-1.amazonaws.com/v2/email/outbound-emails",
                headers={"Content-Type": "application/json", name: value},
                payload=b"{}",
                identity=aws_identity,
                signing_properties=signing_properties,
            )["Authorization"]

        assert (authorization(first) == authorization(second)) is same_signature

    def test_naive_clock_is_read_as_utc(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> None:
        kwargs = dict(
            method="GET",
            url="https://example.com/",
            headers={},
            payload=None,
            identity=aws_identity,
            signing_properties=signing_properties,
        )
        naive = SigV4Signer(clock=lambda: DATE.replace(tzinfo=None)).sign(
            **kwargs  # type: ignore
        )
        aware = SigV4Signer(clock=lambda: DATE).sign(**kwargs)  # type: ignore
        assert naive["x-amz-date"] == DATE_STR
        assert naive == aware

    def test_session_token_is_signed(
        self, signing_properties: SigV4SigningProperties
    ) -> None:
        identity = AWSCredentialIdentity(
            access_key_id=ACCESS_KEY,
            secret_access_key=SECRET_KEY,
            session_token="X123456SESSION",
        )
        signed = SigV4Signer(clock=lambda: DATE).sign(
            method="POST",
            url="https://email.us-east-1.amazonaws.com/",
            headers={},
            payload=None,
            identity=identity,
            signing_properties=signing_properties,
        )
        assert signed["x-amz-security-token"] == "X123456SESSION"
        assert signed["x-amz-content-sha256"] == EMPTY_SHA256_HASH
        assert "x-amz-security-token" in signed["Authorization"]

    def test_injected_headers_replace_caller_headers(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> None:
        signed = SigV4Signer(clock=lambda: DATE).sign(
            method="POST",
            url="https://email.us-east-1.amazonaws.com/",
            headers={"Host": "attacker.example", "X-Amz-Date": "19700101T000000Z"},
            payload=b"",
            identity=aws_identity,
            signing_properties=signing_properties,
        )
        assert signed["host"] == "email.us-east-1.amazonaws.com"
        assert signed["x-amz-date"] == DATE_STR
        assert "Host" not in signed
        assert "X-Amz-Date" not in signed

    @pytest.mark.parametrize(
        "url, expected_host",
        [
            ("https://example.com:443/", "example.com"),
            ("http://example.com:80/", "example.com"),
            ("https://example.com:8443/", "example.com:8443"),
            ("http://127.0.0.1:8000", "127.0.0.1:8000"),
        ],
    )
    def test_host_header_drops_default_port(
        self,
        aws_identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
        url: str,
        expected_host: str,
    ) -> None:
        context = SigV4Signer(clock=lambda: DATE).signing_context(
            method="GET",
            url=url,
            headers={},
            payload=None,
            identity=aws_identity,
        )
        assert context.fields.get_value("host") == expected_host

    @pytest.mark.parametrize(
        "clock_value",
        [
            datetime(
                2015, 8, 30, 14, 36, 0, 999999, tzinfo=timezone(timedelta(hours=2))
            ),
            datetime(2015, 8, 30, 7, 36, 0, tzinfo=timezone(timedelta(hours=-5))),
        ],
    )
    def test_timestamp_is_utc_with_second_precision(
        self, aws_identity: AWSCredentialIdentity, clock_value: datetime
    ) -> None:
        context = SigV4Signer(clock=lambda: clock_value).signing_context(
            method="GET",
            url="https://example.com/",
            headers={},
            payload=None,
            identity=aws_identity,
        )
        assert context.amz_date == DATE_STR
        assert context.date_stamp == "20150830"
        assert context.timestamp.microsecond == 0

    def test_canonical_request_normalizes_inputs(
        self, aws_identity: AWSCredentialIdentity
    ) -> None:
        signer = SigV4Signer(clock=lambda: DATE)
        context = signer.signing_context(
            method="post",
            url="https://example.com/a b/c?b=2&a=&a=1&c=x%2Fy",
            headers={"X-Custom": "  spaced    out  value ", "Accept": "*/*"},
            payload=b"",
            identity=aws_identity,
        )
        canonical = signer.canonical_request(context)

        assert canonical.method == "POST"
        assert canonical.canonical_uri == "/a%20b/c"
        assert canonical.canonical_query == "a=&a=1&b=2&c=x%2Fy"
        assert canonical.signed_headers == (
            "accept;host;x-amz-content-sha256;x-amz-date;x-custom"
        )
        assert "x-custom:spaced out value" in canonical.canonical_headers.split("\n")
        assert str(canonical).count("\n\n") == 1

    def test_empty_path_is_root(self, aws_identity: AWSCredentialIdentity) -> None:
        signer = SigV4Signer(clock=lambda: DATE)
        context = signer.signing_context(
            method="GET",
            url="https://example.com",
            headers={},
            payload=None,
            identity=aws_identity,
        )
        assert signer.canonical_request(context).canonical_uri == "/"

    @freeze_time("2024-01-02")
    def test_expired_identity_raises(
        self, signing_properties: SigV4SigningProperties
    ) -> None:
        identity = AWSCredentialIdentity(
            access_key_id=ACCESS_KEY,
            secret_access_key=SECRET_KEY,
            expiration=datetime(2024, 1, 1, tzinfo=UTC),
        )
        with pytest.raises(ValueError, match="expired"):
            self.SIGV4_SIGNER.sign(
                method="GET",
                url="https://example.com/",
                headers={},
                payload=None,
                identity=identity,
                signing_properties=signing_properties,
            )

    def test_invalid_identity_type_raises(
        self, signing_properties: SigV4SigningProperties
    ) -> None:
        with pytest.raises(ValueError, match="AWSCredentialIdentity"):
            self.SIGV4_SIGNER.sign(
                method="GET",
                url="https://example.com/",
                headers={},
                payload=None,
                identity=object(),  # type: ignore
                signing_properties=signing_properties,
            )
