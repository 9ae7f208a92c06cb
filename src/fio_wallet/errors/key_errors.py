"""Malformed-input and derivation errors for keys, mnemonics and actors."""

from __future__ import annotations

from fio_wallet.errors.fio_errors import FIOError


class MalformedKeyError(FIOError):
    """Key text has the wrong length, prefix or checksum."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="malformed-key")


class InvalidBase58Error(FIOError):
    """A string could not be decoded as Base58."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="invalid-base58")


class InvalidMnemonicError(FIOError):
    """Mnemonic phrase has a bad word count, an empty word or a bad checksum."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="invalid-mnemonic")


class InvalidDerivationIndexError(FIOError):
    """Derivation index or key count is out of range."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="invalid-derivation-index")


class InvalidQuizCountError(FIOError):
    """Requested more quiz questions than there are words."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="invalid-quiz-count")


class DerivationExhaustedError(FIOError):
    """Actor bit-scan ran out of key bytes before collecting 13 fields."""

    def __init__(self, message: str = "key has too many trailing zero bytes") -> None:
        super().__init__(message, code="derivation-exhausted")


class KeyDerivationError(FIOError):
    """BIP32 derivation produced an invalid key."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="key-derivation-failed")
