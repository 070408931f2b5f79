# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""SHA-256 and HMAC-SHA256 primitives used by the request signer.

Every provider must produce bit-identical output. The choice between them is made
once, when a signer is constructed, by passing a provider instance or by name through
:py:func:`get_crypto_provider`.
"""

import hashlib
import hmac
import struct
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .exceptions import MissingDependencyError

if TYPE_CHECKING:
    from awscrt import crypto as crt_crypto

try:
    from awscrt import crypto as crt_crypto  # noqa: F811

    HAS_CRT = True
except ImportError:
    HAS_CRT = False  # type: ignore

SHA256_BLOCK_SIZE = 64
SHA256_DIGEST_SIZE = 32

_INITIAL_HASH: tuple[int, ...] = (
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
)  # fmt: skip

_ROUND_CONSTANTS: tuple[int, ...] = (
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5,
    0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3,
    0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC,
    0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7,
    0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13,
    0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3,
    0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5,
    0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208,
    0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
)  # fmt: skip

_MASK_32 = 0xFFFFFFFF


@runtime_checkable
class CryptoProvider(Protocol):
    """A source of SHA-256 digests and HMAC-SHA256 authentication codes."""

    name: str
    """Short identifier used by :py:func:`get_crypto_provider`."""

    def sha256(self, data: bytes) -> bytes:
        """Return the 32-byte SHA-256 digest of ``data``."""
        ...

    def hmac_sha256(self, key: bytes, msg: bytes) -> bytes:
        """Return the 32-byte HMAC-SHA256 of ``msg`` keyed with ``key``."""
        ...


class HashlibCryptoProvider:
    """Platform-accelerated primitives from :py:mod:`hashlib` and :py:mod:`hmac`."""

    name = "hashlib"

    def sha256(self, data: bytes) -> bytes:
        return hashlib.sha256(data).digest()

    def hmac_sha256(self, key: bytes, msg: bytes) -> bytes:
        return hmac.new(key=key, msg=msg, digestmod=hashlib.sha256).digest()


def _assert_crt() -> None:
    if not HAS_CRT:
        raise MissingDependencyError(
            "Attempted to use awscrt component, but awscrt is not installed."
        )


class CRTCryptoProvider:
    """Native primitives from the AWS Common Runtime."""

    name = "crt"

    def __init__(self) -> None:
        _assert_crt()

    def sha256(self, data: bytes) -> bytes:
        digest = crt_crypto.Hash.sha256_new()
        digest.update(data)
        return digest.digest()

    def hmac_sha256(self, key: bytes, msg: bytes) -> bytes:
        mac = crt_crypto.HMAC.sha256_hmac_new(key)
        mac.update(msg)
        return mac.digest()


class PureCryptoProvider:
    """Dependency-free SHA-256 (FIPS 180-4) and HMAC (RFC 2104).

    Slow, but usable on interpreters built without OpenSSL.
    """

    name = "pure"

    def sha256(self, data: bytes) -> bytes:
        state = list(_INITIAL_HASH)
        padded = _pad_message(data)
        for offset in range(0, len(padded), SHA256_BLOCK_SIZE):
            _compress(state, padded[offset : offset + SHA256_BLOCK_SIZE])
        return struct.pack(">8I", *state)

    def hmac_sha256(self, key: bytes, msg: bytes) -> bytes:
        if len(key) > SHA256_BLOCK_SIZE:
            key = self.sha256(key)
        key = key.ljust(SHA256_BLOCK_SIZE, b"\x00")
        inner_pad = bytes(b ^ 0x36 for b in key)
        outer_pad = bytes(b ^ 0x5C for b in key)
        inner_hash = self.sha256(inner_pad + msg)
        return self.sha256(outer_pad + inner_hash)


def _pad_message(data: bytes) -> bytes:
    # MD-strengthening: 0x80, zeros up to 56 mod 64, then the bit length.
    bit_length = (len(data) * 8) & 0xFFFFFFFFFFFFFFFF
    zero_count = (55 - len(data)) % SHA256_BLOCK_SIZE
    return data + b"\x80" + b"\x00" * zero_count + struct.pack(">Q", bit_length)


def _rotr(value: int, amount: int) -> int:
    return ((value >> amount) | (value << (32 - amount))) & _MASK_32


def _compress(state: list[int], block: bytes) -> None:
    schedule = list(struct.unpack(">16I", block))
    for i in range(16, 64):
        w15 = schedule[i - 15]
        w2 = schedule[i - 2]
        s0 = _rotr(w15, 7) ^ _rotr(w15, 18) ^ (w15 >> 3)
        s1 = _rotr(w2, 17) ^ _rotr(w2, 19) ^ (w2 >> 10)
        schedule.append((schedule[i - 16] + s0 + schedule[i - 7] + s1) & _MASK_32)

    a, b, c, d, e, f, g, h = state
    for i in range(64):
        s1 = _rotr(e, 6) ^ _rotr(e, 11) ^ _rotr(e, 25)
        ch = (e & f) ^ (~e & g)
        temp1 = (h + s1 + ch + _ROUND_CONSTANTS[i] + schedule[i]) & _MASK_32
        s0 = _rotr(a, 2) ^ _rotr(a, 13) ^ _rotr(a, 22)
        maj = (a & b) ^ (a & c) ^ (b & c)
        temp2 = (s0 + maj) & _MASK_32

        h = g
        g = f
        f = e
        e = (d + temp1) & _MASK_32
        d = c
        c = b
        b = a
        a = (temp1 + temp2) & _MASK_32

    for i, value in enumerate((a, b, c, d, e, f, g, h)):
        state[i] = (state[i] + value) & _MASK_32


_PROVIDERS: dict[str, type[CryptoProvider]] = {
    HashlibCryptoProvider.name: HashlibCryptoProvider,
    CRTCryptoProvider.name: CRTCryptoProvider,
    PureCryptoProvider.name: PureCryptoProvider,
}


def get_crypto_provider(name: str = HashlibCryptoProvider.name) -> CryptoProvider:
    """Construct a crypto provider by name.

    :param name: One of ``"hashlib"``, ``"crt"`` or ``"pure"``.
    :raises ValueError: If the name is unknown.
    :raises MissingDependencyError: If ``"crt"`` is requested without awscrt.
    """
    try:
        provider_cls = _PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown crypto provider {name!r}. Expected one of: "
            f"{', '.join(sorted(_PROVIDERS))}."
        ) from None
    return provider_cls()
