"""ECDH and envelope encryption errors."""

from __future__ import annotations

from fio_wallet.errors.fio_errors import FIOError


class CryptoError(FIOError):
    """Base for cryptographic failures during agreement or decryption."""

    def __init__(self, message: str, *, code: str = "crypto-error") -> None:
        super().__init__(message, code=code)


class PointDecodeError(CryptoError):
    """Public key bytes do not decode to a point on secp256k1."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="point-decode-failed")


class AuthenticationError(CryptoError):
    """Envelope HMAC tag did not verify."""

    def __init__(self, message: str = "envelope authentication failed") -> None:
        super().__init__(message, code="authentication-failed")


class PaddingError(CryptoError):
    """Decrypted plaintext carries invalid PKCS#7 padding."""

    def __init__(self, message: str = "invalid padding in decrypted content") -> None:
        super().__init__(message, code="padding-invalid")


class EnvelopeMalformedError(FIOError):
    """Envelope is too short, misaligned, or not valid hex/base64 text."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="envelope-malformed")


class ContentDecodeError(FIOError):
    """Decrypted bytes are not a valid content record."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="content-decode-failed")
