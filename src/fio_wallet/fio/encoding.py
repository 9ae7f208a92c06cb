"""Text encodings used by FIO keys and account names.

- SHA256d and RIPEMD-160 checksum hashes
- Base58 / Base58Check (SHA256d checksum) for WIF and BIP32 strings
- RIPEMD-160 checked Base58 for public key text
- The 32-symbol alphabet used for account (actor) names
"""

from __future__ import annotations

import hashlib

from fio_wallet.errors.key_errors import InvalidBase58Error, MalformedKeyError

_B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX = {char: i for i, char in enumerate(_B58_ALPHABET.decode("ascii"))}

# Account names: index 0 ('.') only appears for all-zero fields.
ACTOR_ALPHABET = ".12345abcdefghijklmnopqrstuvwxyz"


# ---------------------------------------------------------------------------
# Checksum hashes
# ---------------------------------------------------------------------------


def sha256d(data: bytes) -> bytes:
    """SHA256(SHA256(data)), the Base58Check checksum hash."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def ripemd160(data: bytes) -> bytes:
    h = hashlib.new("ripemd160")
    h.update(data)
    return h.digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data)); BIP32 fingerprints are its first 4 bytes."""
    return ripemd160(hashlib.sha256(data).digest())


# ---------------------------------------------------------------------------
# Base58
# ---------------------------------------------------------------------------


def base58_encode(payload: bytes) -> str:
    """Encode raw bytes to Base58 (no checksum)."""
    n = int.from_bytes(payload, "big")
    result: list[int] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        result.append(_B58_ALPHABET[remainder])
    # Preserve leading zero bytes
    for byte in payload:
        if byte == 0:
            result.append(_B58_ALPHABET[0])
        else:
            break
    return bytes(reversed(result)).decode("ascii")


def base58_decode(s: str) -> bytes:
    """Decode Base58 string to raw bytes (no checksum).

    Raises:
        InvalidBase58Error: If *s* contains a character outside the alphabet.
    """
    n = 0
    for char in s:
        digit = _B58_INDEX.get(char)
        if digit is None:
            msg = f"invalid base58 character {char!r}"
            raise InvalidBase58Error(msg)
        n = n * 58 + digit
    result = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    # Preserve leading '1' chars as 0x00 bytes
    pad_count = len(s) - len(s.lstrip("1"))
    return b"\x00" * pad_count + result


def base58check_encode(payload: bytes) -> str:
    """Encode bytes with a 4-byte SHA256d checksum (Base58Check)."""
    checksum = sha256d(payload)[:4]
    return base58_encode(payload + checksum)


def base58check_decode(s: str) -> bytes:
    """Decode a Base58Check string, verifying the checksum.

    Raises:
        InvalidBase58Error: If *s* is not Base58.
        MalformedKeyError: If the payload is too short or the checksum is invalid.
    """
    raw = base58_decode(s)
    if len(raw) < 4:
        msg = "Base58Check string too short"
        raise MalformedKeyError(msg)
    payload, checksum = raw[:-4], raw[-4:]
    if checksum != sha256d(payload)[:4]:
        msg = "Base58Check checksum mismatch"
        raise MalformedKeyError(msg)
    return payload


# ---------------------------------------------------------------------------
# RIPEMD-160 checked Base58 (public key text)
# ---------------------------------------------------------------------------


def ripemd160_checksum(payload: bytes, suffix: bytes = b"") -> bytes:
    """First 4 bytes of RIPEMD160(payload || suffix)."""
    return ripemd160(payload + suffix)[:4]


def ripemd160_check_encode(payload: bytes, suffix: bytes = b"") -> str:
    """Base58-encode *payload* followed by its RIPEMD-160 checksum."""
    return base58_encode(payload + ripemd160_checksum(payload, suffix))


def ripemd160_check_decode(s: str, suffixes: tuple[bytes, ...] = (b"",)) -> bytes:
    """Decode RIPEMD-160 checked Base58, accepting any of the given checksum suffixes.

    Raises:
        InvalidBase58Error: If *s* is not Base58.
        MalformedKeyError: If the payload is too short or no checksum variant matches.
    """
    raw = base58_decode(s)
    if len(raw) < 5:
        msg = "checked key string too short"
        raise MalformedKeyError(msg)
    payload, checksum = raw[:-4], raw[-4:]
    if not any(ripemd160_checksum(payload, suffix) == checksum for suffix in suffixes):
        msg = "key checksum mismatch"
        raise MalformedKeyError(msg)
    return payload
