"""Tests for ECDH key agreement and envelope encryption."""

from __future__ import annotations

import base64
import os

import pytest

from fio_wallet.config.settings import EnvelopeEncoding
from fio_wallet.errors.crypto_errors import (
    AuthenticationError,
    EnvelopeMalformedError,
    PaddingError,
    PointDecodeError,
)
from fio_wallet.errors.key_errors import MalformedKeyError
from fio_wallet.fio.account import Account
from fio_wallet.fio.ecies import (
    IV_SIZE,
    MIN_ENVELOPE_SIZE,
    TAG_SIZE,
    _split_secret,
    decode_envelope,
    decrypt,
    derive_shared_secret,
    encode_envelope,
    encrypt,
)
from fio_wallet.fio.keys import public_key_to_text

_SHARED_SECRET = bytes.fromhex(
    "a71b4ec5a9577926a1d2aa1d9d99327fd3b68f6a1ea597200a0d890bd3331df3"
    "00a2d49fec0b2b3e6969ce9263c5d6cf47c191c1ef149373ecc9f0d98116b598"
)

# Reference client ciphertext for a small serialized request
_IV = bytes.fromhex("f300888ca4f512cebdc0020ff0f7224c")
_PLAINTEXT = bytes.fromhex("0b70757273652e616c69636501310a66696f2e7265716f6274000000")
_ENVELOPE = bytes.fromhex(
    "f300888ca4f512cebdc0020ff0f7224c"
    "0db2984c4ad9afb12629f01a8c6a76328bbde17405655dc4e3cb30dad272996f"
    "b1dea8e662e640be193e25d41147a904c571b664a7381ab41ef062448ac1e205"
)

# Valid text, but x = 0 has no point on secp256k1
_OFF_CURVE = public_key_to_text(b"\x02" + bytes(32), "FIO")


# ---------------------------------------------------------------------------
# Shared secret
# ---------------------------------------------------------------------------


class TestSharedSecret:
    def test_known_secret(self, alice: Account, bob: Account) -> None:
        assert derive_shared_secret(alice.private_key, bob.public_key) == _SHARED_SECRET

    def test_symmetric(self, alice: Account, bob: Account) -> None:
        assert derive_shared_secret(bob.private_key, alice.public_key) == _SHARED_SECRET

    def test_symmetric_random(self) -> None:
        for _ in range(5):
            a, b = Account.random(), Account.random()
            secret = derive_shared_secret(a.private_key, b.public_key)
            assert len(secret) == 64
            assert secret == derive_shared_secret(b.private_key, a.public_key)

    def test_curve_prefix_accepted(self, alice: Account, bob: Account) -> None:
        eos = "EOS" + bob.public_key[3:]
        assert derive_shared_secret(alice.private_key, eos) == _SHARED_SECRET

    def test_off_curve_point(self, alice: Account) -> None:
        with pytest.raises(PointDecodeError):
            derive_shared_secret(alice.private_key, _OFF_CURVE)

    def test_malformed_public_key(self, alice: Account) -> None:
        with pytest.raises(MalformedKeyError):
            derive_shared_secret(alice.private_key, "FIO123")

    def test_malformed_private_key(self, bob: Account) -> None:
        with pytest.raises(MalformedKeyError):
            derive_shared_secret("5notakey", bob.public_key)

    def test_split_secret_halves(self) -> None:
        enc_key, mac_key = _split_secret(_SHARED_SECRET)
        assert len(enc_key) == 32
        assert len(mac_key) == 32
        assert enc_key != mac_key


# ---------------------------------------------------------------------------
# Encrypt / decrypt
# ---------------------------------------------------------------------------


class TestEncrypt:
    def test_known_ciphertext(self, alice: Account, bob: Account) -> None:
        assert encrypt(alice.private_key, bob.public_key, _PLAINTEXT, _IV) == _ENVELOPE

    def test_known_ciphertext_other_direction(self, alice: Account, bob: Account) -> None:
        assert encrypt(bob.private_key, alice.public_key, _PLAINTEXT, _IV) == _ENVELOPE

    def test_decrypt_known_envelope(self, alice: Account, bob: Account) -> None:
        assert decrypt(bob.private_key, alice.public_key, _ENVELOPE) == _PLAINTEXT

    @pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 31, 32, 33, 1000])
    def test_roundtrip_sizes(self, alice: Account, bob: Account, size: int) -> None:
        plaintext = os.urandom(size)
        envelope = encrypt(alice.private_key, bob.public_key, plaintext)
        padded = (size // 16 + 1) * 16
        assert len(envelope) == IV_SIZE + padded + TAG_SIZE
        assert decrypt(bob.private_key, alice.public_key, envelope) == plaintext

    def test_random_iv(self, alice: Account, bob: Account) -> None:
        a = encrypt(alice.private_key, bob.public_key, b"same")
        b = encrypt(alice.private_key, bob.public_key, b"same")
        assert a[:IV_SIZE] != b[:IV_SIZE]
        assert a != b

    def test_sender_can_read_own_envelope(self, alice: Account, bob: Account) -> None:
        envelope = encrypt(alice.private_key, bob.public_key, b"note to self")
        assert decrypt(alice.private_key, bob.public_key, envelope) == b"note to self"

    @pytest.mark.parametrize("iv", [b"", b"\x00" * 15, b"\x00" * 17])
    def test_bad_iv_length(self, alice: Account, bob: Account, iv: bytes) -> None:
        with pytest.raises(EnvelopeMalformedError, match="IV"):
            encrypt(alice.private_key, bob.public_key, b"data", iv)

    def test_off_curve_recipient(self, alice: Account) -> None:
        with pytest.raises(PointDecodeError):
            encrypt(alice.private_key, _OFF_CURVE, b"data")


class TestDecrypt:
    def test_every_flipped_byte_is_rejected(self, alice: Account, bob: Account) -> None:
        for i in range(len(_ENVELOPE)):
            tampered = bytearray(_ENVELOPE)
            tampered[i] ^= 0x01
            with pytest.raises(AuthenticationError):
                decrypt(bob.private_key, alice.public_key, bytes(tampered))

    def test_wrong_recipient(self, alice: Account, bob: Account) -> None:
        carol = Account.random()
        envelope = encrypt(alice.private_key, bob.public_key, b"for bob")
        with pytest.raises(AuthenticationError):
            decrypt(carol.private_key, alice.public_key, envelope)

    def test_too_short(self, alice: Account, bob: Account) -> None:
        with pytest.raises(EnvelopeMalformedError, match="at least"):
            decrypt(bob.private_key, alice.public_key, _ENVELOPE[: MIN_ENVELOPE_SIZE - 1])

    def test_empty(self, alice: Account, bob: Account) -> None:
        with pytest.raises(EnvelopeMalformedError):
            decrypt(bob.private_key, alice.public_key, b"")

    def test_not_block_aligned(self, alice: Account, bob: Account) -> None:
        with pytest.raises(EnvelopeMalformedError, match="multiple"):
            decrypt(bob.private_key, alice.public_key, _ENVELOPE + b"\x00")

    def test_truncated_tag(self, alice: Account, bob: Account) -> None:
        with pytest.raises(EnvelopeMalformedError):
            decrypt(bob.private_key, alice.public_key, _ENVELOPE[:-1])

    def test_bad_padding_after_valid_tag(self, alice: Account, bob: Account) -> None:
        """A correctly tagged block that does not unpad is a padding error."""
        from cryptography.hazmat.primitives import hashes, hmac
        from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

        enc_key, mac_key = _split_secret(_SHARED_SECRET)
        # last byte 0x00 is never valid PKCS#7
        block = b"\x11" * 15 + b"\x00"
        encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(_IV)).encryptor()
        ciphertext = encryptor.update(block) + encryptor.finalize()
        h = hmac.HMAC(mac_key, hashes.SHA256())
        h.update(_IV + ciphertext)
        envelope = _IV + ciphertext + h.finalize()
        with pytest.raises(PaddingError):
            decrypt(bob.private_key, alice.public_key, envelope)


# ---------------------------------------------------------------------------
# Transport encoding
# ---------------------------------------------------------------------------


class TestEnvelopeEncoding:
    def test_base64_default(self) -> None:
        text = encode_envelope(_ENVELOPE)
        assert text == base64.b64encode(_ENVELOPE).decode("ascii")
        assert decode_envelope(text) == _ENVELOPE

    def test_hex(self) -> None:
        text = encode_envelope(_ENVELOPE, EnvelopeEncoding.HEX)
        assert text == _ENVELOPE.hex()
        assert decode_envelope(text, EnvelopeEncoding.HEX) == _ENVELOPE

    @pytest.mark.parametrize("text", ["not base64!", "abc", "@@@@"])
    def test_bad_base64(self, text: str) -> None:
        with pytest.raises(EnvelopeMalformedError, match="base64"):
            decode_envelope(text)

    @pytest.mark.parametrize("text", ["xyz", "abc"])
    def test_bad_hex(self, text: str) -> None:
        with pytest.raises(EnvelopeMalformedError, match="hex"):
            decode_envelope(text, EnvelopeEncoding.HEX)
