"""ECIES encryption between two FIO identities.

Both parties hold only their own private key and the other's public key:

- Shared secret: SHA-512 of the ECDH shared x-coordinate (64 bytes)
- K = SHA-512(shared secret), split into two 32-byte halves
- Ke = K[:32] encrypts with AES-256-CBC + PKCS#7 under a random IV
- Km = K[32:] authenticates IV || ciphertext with HMAC-SHA256
- Envelope: IV (16) || ciphertext || tag (32)

The tag is verified before anything is decrypted.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from ecdsa import ECDH, SECP256k1, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError

from fio_wallet.config.settings import EnvelopeEncoding
from fio_wallet.errors.crypto_errors import (
    AuthenticationError,
    EnvelopeMalformedError,
    PaddingError,
    PointDecodeError,
)
from fio_wallet.errors.key_errors import MalformedKeyError
from fio_wallet.fio.keys import decode_public_key, wif_to_private_key

logger = logging.getLogger(__name__)

IV_SIZE = 16
TAG_SIZE = 32
_BLOCK_SIZE = 16
_KEY_SIZE = 32
MIN_ENVELOPE_SIZE = IV_SIZE + _BLOCK_SIZE + TAG_SIZE


# ---------------------------------------------------------------------------
# Key agreement
# ---------------------------------------------------------------------------


def _signing_key(private_key: str) -> SigningKey:
    try:
        return SigningKey.from_string(wif_to_private_key(private_key), curve=SECP256k1)
    except (MalformedPointError, ValueError) as exc:
        msg = "private key is not a valid secp256k1 scalar"
        raise MalformedKeyError(msg) from exc


def _verifying_key(public_key: str) -> VerifyingKey:
    raw = decode_public_key(public_key)
    try:
        return VerifyingKey.from_string(raw, curve=SECP256k1)
    except (MalformedPointError, ValueError) as exc:
        msg = "public key is not a point on secp256k1"
        raise PointDecodeError(msg) from exc


def derive_shared_secret(private_key: str, public_key: str) -> bytes:
    """Derive the 64-byte secret shared between two key pairs.

    ``derive_shared_secret(a.priv, b.pub) == derive_shared_secret(b.priv, a.pub)``

    Args:
        private_key: Own WIF private key.
        public_key: Counterparty's public key text.

    Raises:
        MalformedKeyError: If either key text is malformed.
        InvalidBase58Error: If either key text is not Base58.
        PointDecodeError: If the public key is not on the curve.
    """
    ecdh = ECDH(
        curve=SECP256k1,
        private_key=_signing_key(private_key),
        public_key=_verifying_key(public_key),
    )
    return hashlib.sha512(ecdh.generate_sharedsecret_bytes()).digest()


def _split_secret(secret: bytes) -> tuple[bytes, bytes]:
    """(encryption key, MAC key) for a shared secret."""
    k = hashlib.sha512(secret).digest()
    return k[:_KEY_SIZE], k[_KEY_SIZE:]


def _mac(key: bytes, data: bytes) -> hmac.HMAC:
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(data)
    return h


# ---------------------------------------------------------------------------
# Encrypt / decrypt
# ---------------------------------------------------------------------------


def encrypt(
    private_key: str,
    public_key: str,
    plaintext: bytes,
    iv: bytes | None = None,
) -> bytes:
    """Encrypt *plaintext* for the owner of *public_key*.

    Args:
        private_key: Sender's WIF private key.
        public_key: Recipient's public key text.
        plaintext: Bytes to encrypt, any length.
        iv: Fixed 16-byte IV for reproducible output. Never reuse one in
            production; leave as None to draw a random IV.

    Returns:
        The envelope ``IV || ciphertext || tag``.
    """
    if iv is None:
        iv = os.urandom(IV_SIZE)
    elif len(iv) != IV_SIZE:
        msg = f"IV must be {IV_SIZE} bytes, got {len(iv)}"
        raise EnvelopeMalformedError(msg)
    enc_key, mac_key = _split_secret(derive_shared_secret(private_key, public_key))

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    tag = _mac(mac_key, iv + ciphertext).finalize()
    logger.debug("Encrypted %d bytes for %s", len(plaintext), public_key)
    return iv + ciphertext + tag


def decrypt(private_key: str, public_key: str, envelope: bytes) -> bytes:
    """Authenticate and decrypt an envelope from the owner of *public_key*.

    Args:
        private_key: Recipient's WIF private key.
        public_key: Sender's public key text.
        envelope: ``IV || ciphertext || tag`` as produced by :func:`encrypt`.

    Raises:
        EnvelopeMalformedError: Envelope too short or not block aligned.
        AuthenticationError: Tag mismatch; nothing is decrypted.
        PaddingError: Authenticated plaintext has invalid padding.
    """
    if len(envelope) < MIN_ENVELOPE_SIZE:
        msg = f"envelope is {len(envelope)} bytes, need at least {MIN_ENVELOPE_SIZE}"
        raise EnvelopeMalformedError(msg)
    iv = envelope[:IV_SIZE]
    ciphertext = envelope[IV_SIZE:-TAG_SIZE]
    tag = envelope[-TAG_SIZE:]
    if len(ciphertext) % _BLOCK_SIZE:
        msg = f"ciphertext length {len(ciphertext)} is not a multiple of {_BLOCK_SIZE}"
        raise EnvelopeMalformedError(msg)

    enc_key, mac_key = _split_secret(derive_shared_secret(private_key, public_key))
    try:
        _mac(mac_key, iv + ciphertext).verify(tag)
    except InvalidSignature as exc:
        logger.warning("Rejected envelope from %s: authentication failed", public_key)
        raise AuthenticationError from exc

    decryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise PaddingError from exc


# ---------------------------------------------------------------------------
# Transport encoding
# ---------------------------------------------------------------------------


def encode_envelope(envelope: bytes, encoding: EnvelopeEncoding = EnvelopeEncoding.BASE64) -> str:
    """Encode an envelope as hex or base64 text."""
    if encoding == EnvelopeEncoding.HEX:
        return envelope.hex()
    return base64.b64encode(envelope).decode("ascii")


def decode_envelope(text: str, encoding: EnvelopeEncoding = EnvelopeEncoding.BASE64) -> bytes:
    """Decode hex or base64 envelope text.

    Raises:
        EnvelopeMalformedError: If *text* is not valid in *encoding*.
    """
    try:
        if encoding == EnvelopeEncoding.HEX:
            return bytes.fromhex(text)
        return base64.b64decode(text, validate=True)
    except (ValueError, binascii.Error) as exc:
        msg = f"envelope is not valid {encoding} text"
        raise EnvelopeMalformedError(msg) from exc
