"""FIO key text and BIP32 extended keys.

- WIF (Wallet Import Format) private keys, mainnet, uncompressed form
- Public key text: ``FIO`` + Base58(compressed key || RIPEMD160 checksum)
- Prefix substitution between ``EOS`` (curve library default) and ``FIO``
- BIP32 extended private keys: master from seed, child/path derivation,
  xprv/xpub serialization
"""

from __future__ import annotations

import hashlib
import hmac
import struct
from dataclasses import dataclass

from ecdsa import SECP256k1, SigningKey
from ecdsa.errors import MalformedPointError

from fio_wallet.errors.key_errors import KeyDerivationError, MalformedKeyError
from fio_wallet.fio.encoding import (
    base58check_decode,
    base58check_encode,
    hash160,
    ripemd160_check_decode,
    ripemd160_check_encode,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CURVE = SECP256k1
_CURVE_ORDER = _CURVE.order

FIO_PREFIX = "FIO"
CURVE_PREFIX = "EOS"
K1_PREFIX = "PUB_K1_"

PUBLIC_KEY_TEXT_LENGTH = 53
_PREFIX_LENGTH = 3

_MAINNET_WIF = b"\x80"

# BIP32 version bytes (mainnet)
_XPUB_VERSION = b"\x04\x88\xb2\x1e"  # xpub
_XPRV_VERSION = b"\x04\x88\xad\xe4"  # xprv

# BIP32 seed HMAC key
_MASTER_HMAC_KEY = b"Bitcoin seed"

HARDENED_OFFSET = 0x80000000


# ---------------------------------------------------------------------------
# Private keys (WIF)
# ---------------------------------------------------------------------------


def generate_private_key() -> bytes:
    """Generate a random 32-byte secp256k1 private key from the OS CSPRNG."""
    return SigningKey.generate(curve=_CURVE).to_string()


def private_key_to_wif(privkey: bytes, *, compressed: bool = False) -> str:
    """Encode a 32-byte private key as mainnet WIF.

    FIO (like EOS) uses the uncompressed form, so keys start with ``5``.
    """
    if len(privkey) != 32:
        msg = f"Invalid private key length: {len(privkey)}"
        raise MalformedKeyError(msg)
    payload = _MAINNET_WIF + privkey
    if compressed:
        payload += b"\x01"
    return base58check_encode(payload)


def wif_to_private_key(wif: str) -> bytes:
    """Decode a mainnet WIF string to the 32-byte private key.

    Raises:
        InvalidBase58Error: If *wif* is not Base58.
        MalformedKeyError: If the checksum, version or length is wrong.
    """
    payload = base58check_decode(wif.strip())
    if len(payload) not in (33, 34):
        msg = f"Invalid WIF payload length: {len(payload)}"
        raise MalformedKeyError(msg)
    if payload[0:1] != _MAINNET_WIF:
        msg = f"Invalid WIF version byte: {payload[0]:#x}"
        raise MalformedKeyError(msg)
    if len(payload) == 34 and payload[-1] != 0x01:
        msg = "Invalid WIF compression flag"
        raise MalformedKeyError(msg)
    return payload[1:33]


def private_key_to_public_key(privkey: bytes) -> bytes:
    """Derive the 33-byte SEC compressed public key from a 32-byte private key."""
    try:
        sk = SigningKey.from_string(privkey, curve=_CURVE)
    except (MalformedPointError, ValueError) as exc:
        msg = "private key is not a valid secp256k1 scalar"
        raise MalformedKeyError(msg) from exc
    return sk.get_verifying_key().to_string("compressed")


# ---------------------------------------------------------------------------
# Public key text
# ---------------------------------------------------------------------------


def public_key_to_text(pubkey: bytes, prefix: str = CURVE_PREFIX) -> str:
    """Format a 33-byte compressed public key as prefixed key text."""
    if len(pubkey) != 33:
        msg = f"Invalid compressed public key length: {len(pubkey)}"
        raise MalformedKeyError(msg)
    return prefix + ripemd160_check_encode(pubkey)


def swap_prefix(public_key: str, prefix: str = FIO_PREFIX) -> str:
    """Replace the 3-character prefix of a legacy public key text.

    Only the displayed prefix changes; payload and checksum are kept as-is.
    """
    if len(public_key) != PUBLIC_KEY_TEXT_LENGTH:
        msg = f"public key should be {PUBLIC_KEY_TEXT_LENGTH} chars, got {len(public_key)}"
        raise MalformedKeyError(msg)
    if len(prefix) != _PREFIX_LENGTH:
        msg = f"key prefix should be {_PREFIX_LENGTH} chars, got {prefix!r}"
        raise MalformedKeyError(msg)
    return prefix + public_key[_PREFIX_LENGTH:]


def decode_public_key(
    public_key: str,
    *,
    prefixes: tuple[str, ...] = (FIO_PREFIX, CURVE_PREFIX),
) -> bytes:
    """Decode public key text to the 33-byte compressed key.

    Accepts the legacy ``<prefix><base58>`` form (53 chars) for any of
    *prefixes*, and the ``PUB_K1_<base58>`` form.

    Raises:
        MalformedKeyError: Wrong length, prefix or checksum.
        InvalidBase58Error: Payload is not Base58.
    """
    if public_key.startswith(K1_PREFIX):
        payload = public_key[len(K1_PREFIX) :]
        # K1 keys in the wild carry either the "K1"-suffixed or the legacy checksum
        suffixes: tuple[bytes, ...] = (b"K1", b"")
    else:
        if len(public_key) != PUBLIC_KEY_TEXT_LENGTH:
            msg = f"public key should be {PUBLIC_KEY_TEXT_LENGTH} chars, got {len(public_key)}"
            raise MalformedKeyError(msg)
        prefix = public_key[:_PREFIX_LENGTH]
        if prefix not in prefixes:
            msg = f"unsupported public key prefix {prefix!r}"
            raise MalformedKeyError(msg)
        payload = public_key[_PREFIX_LENGTH:]
        suffixes = (b"",)
    if len(payload) != PUBLIC_KEY_TEXT_LENGTH - _PREFIX_LENGTH:
        msg = f"public key payload should be 50 chars, got {len(payload)}"
        raise MalformedKeyError(msg)
    key = ripemd160_check_decode(payload, suffixes)
    if len(key) != 33 or key[0] not in (0x02, 0x03):
        msg = "public key is not a compressed secp256k1 key"
        raise MalformedKeyError(msg)
    return key


def public_key_from_wif(
    wif: str,
    *,
    prefix: str = FIO_PREFIX,
    curve_prefix: str = CURVE_PREFIX,
) -> str:
    """Public key text for a WIF private key, shown with *prefix*.

    The key is formatted the way the curve library does (``EOS...``) and the
    prefix is then substituted.
    """
    pubkey = private_key_to_public_key(wif_to_private_key(wif))
    return swap_prefix(public_key_to_text(pubkey, curve_prefix), prefix)


# ---------------------------------------------------------------------------
# BIP32 Extended Key
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtendedKey:
    """A BIP32 extended key (public or private).

    Attributes:
        key: 33-byte compressed pubkey *or* 32-byte privkey scalar.
        chain_code: 32-byte chain code.
        depth: Derivation depth (0 for master).
        parent_fingerprint: First 4 bytes of parent's Hash160(pubkey).
        child_index: Index used in derivation.
        is_private: True if this key holds the private scalar.
    """

    key: bytes
    chain_code: bytes
    depth: int
    parent_fingerprint: bytes
    child_index: int
    is_private: bool

    # -- Serialization -----------------------------------------------------

    def serialize(self) -> bytes:
        """Serialize to the 78-byte BIP32 format."""
        data = _XPRV_VERSION if self.is_private else _XPUB_VERSION
        data += struct.pack("B", self.depth)
        data += self.parent_fingerprint
        data += struct.pack(">I", self.child_index)
        data += self.chain_code
        if self.is_private:
            data += b"\x00" + self.key  # 33 bytes with leading 0x00
        else:
            data += self.key  # 33 bytes compressed pubkey
        return data

    def to_string(self) -> str:
        """Encode as Base58Check xpub/xprv string."""
        return base58check_encode(self.serialize())

    # -- Derivation --------------------------------------------------------

    def public_key(self) -> bytes:
        """Return the 33-byte compressed public key."""
        if self.is_private:
            return private_key_to_public_key(self.key)
        return self.key

    def fingerprint(self) -> bytes:
        """First 4 bytes of Hash160(compressed pubkey)."""
        return hash160(self.public_key())[:4]

    def neuter(self) -> ExtendedKey:
        """Convert private extended key to its public counterpart."""
        if not self.is_private:
            return self
        return ExtendedKey(
            key=self.public_key(),
            chain_code=self.chain_code,
            depth=self.depth,
            parent_fingerprint=self.parent_fingerprint,
            child_index=self.child_index,
            is_private=False,
        )

    def derive_child(self, index: int) -> ExtendedKey:
        """Derive a private child key at the given index.

        Use ``index >= 0x80000000`` for hardened derivation.

        Raises:
            KeyDerivationError: If called on a public key, or if the derived
                key is invalid.
        """
        if not self.is_private:
            msg = "Cannot derive child keys from a public extended key"
            raise KeyDerivationError(msg)

        if index >= HARDENED_OFFSET:
            # Data = 0x00 || private_key || index
            data = b"\x00" + self.key + struct.pack(">I", index)
        else:
            # Data = compressed_pubkey || index
            data = self.public_key() + struct.pack(">I", index)

        hmac_result = hmac.new(self.chain_code, data, hashlib.sha512).digest()
        il, ir = hmac_result[:32], hmac_result[32:]

        il_int = int.from_bytes(il, "big")
        if il_int >= _CURVE_ORDER:
            msg = "Derived key is invalid (il >= curve order)"
            raise KeyDerivationError(msg)

        key_int = (il_int + int.from_bytes(self.key, "big")) % _CURVE_ORDER
        if key_int == 0:
            msg = "Derived key is invalid (key == 0)"
            raise KeyDerivationError(msg)
        return ExtendedKey(
            key=key_int.to_bytes(32, "big"),
            chain_code=ir,
            depth=self.depth + 1,
            parent_fingerprint=self.fingerprint(),
            child_index=index,
            is_private=True,
        )

    def derive_path(self, path: str) -> ExtendedKey:
        """Derive using a BIP32 path string like ``m/44'/235'/0'/0/0``.

        Apostrophe (') or h indicates hardened derivation.
        """
        parts = path.strip().split("/")
        key = self
        for part in parts:
            if part in ("m", "M", ""):
                continue
            hardened = part.endswith(("'", "h", "H"))
            idx = int(part.rstrip("'hH"))
            if not 0 <= idx < HARDENED_OFFSET:
                msg = f"Derivation index out of range: {part}"
                raise KeyDerivationError(msg)
            if hardened:
                idx += HARDENED_OFFSET
            key = key.derive_child(idx)
        return key

    @classmethod
    def from_seed(cls, seed: bytes) -> ExtendedKey:
        """Create a master private extended key from a BIP39 seed.

        Raises:
            KeyDerivationError: If seed length is out of range or the master
                key is invalid.
        """
        if not 16 <= len(seed) <= 64:
            msg = f"Seed must be 16-64 bytes, got {len(seed)}"
            raise KeyDerivationError(msg)
        hmac_result = hmac.new(_MASTER_HMAC_KEY, seed, hashlib.sha512).digest()
        il, ir = hmac_result[:32], hmac_result[32:]
        il_int = int.from_bytes(il, "big")
        if il_int == 0 or il_int >= _CURVE_ORDER:
            msg = "Invalid seed (derived key out of range)"
            raise KeyDerivationError(msg)
        return cls(
            key=il,
            chain_code=ir,
            depth=0,
            parent_fingerprint=b"\x00\x00\x00\x00",
            child_index=0,
            is_private=True,
        )
