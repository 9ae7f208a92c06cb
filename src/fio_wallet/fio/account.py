"""FIO accounts — actor names derived from public keys.

On FIO the account name (actor) is not chosen, it is computed from the
owner's public key by packing 5-bit fields of the key into a 64-bit name.
The packing below is a fixed on-chain contract: a different result is a
different account.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from fio_wallet.errors.key_errors import DerivationExhaustedError
from fio_wallet.fio.encoding import ACTOR_ALPHABET
from fio_wallet.fio.keys import (
    FIO_PREFIX,
    decode_public_key,
    generate_private_key,
    private_key_to_wif,
    public_key_from_wif,
)

ACTOR_LENGTH = 12

# Last key byte the scan may read (index 0, the parity byte, is never read).
_SCAN_LIMIT = 32

_ADDRESS_MIN = 3
_ADDRESS_MAX = 64
_ADDRESS_BAD = (
    re.compile(r"(?:--|::|:.*:|-:|:-|^-|-$)"),
    re.compile(r"(?:--|@@|@.*@|-@|@-|^-|-$)"),
)
_ADDRESS_SHAPE = re.compile(r"[a-zA-Z0-9-]+[:@][a-zA-Z0-9-]")


def derive_actor(public_key: str) -> str:
    """Calculate the 12-character FIO actor for a public key.

    Args:
        public_key: ``FIO``/``EOS`` prefixed key text, or ``PUB_K1_`` text.

    Returns:
        The account name, e.g. ``"y5x3sk44d43p"``.

    Raises:
        MalformedKeyError: Wrong length, prefix or checksum.
        InvalidBase58Error: Key payload is not Base58.
        DerivationExhaustedError: The key has too many zero fields.
    """
    key = decode_public_key(public_key)

    result = 0
    found = 0
    i = 1
    while found <= ACTOR_LENGTH:
        if i > _SCAN_LIMIT:
            raise DerivationExhaustedError
        if found == ACTOR_LENGTH:
            n = key[i] & 0x0F
        else:
            n = (key[i] & 0x1F) << (5 * (ACTOR_LENGTH - found) - 1)
        i += 1
        # zero fields are skipped, not terminal
        if n == 0:
            continue
        result |= n
        found += 1

    actor = [""] * (ACTOR_LENGTH + 1)
    actor[ACTOR_LENGTH] = ACTOR_ALPHABET[result & 0x0F]
    result >>= 4
    for j in range(1, ACTOR_LENGTH + 1):
        actor[ACTOR_LENGTH - j] = ACTOR_ALPHABET[result & 0x1F]
        result >>= 5
    return "".join(actor[:ACTOR_LENGTH])


def is_valid_address(address: str) -> bool:
    """Check the formatting of a FIO address (``name@domain``).

    Rules: 3-64 chars of ``a-z0-9-`` with exactly one ``@`` (or ``:``)
    delimiter, alphanumerics on both sides of it, and no leading, trailing
    or doubled dashes. Case-insensitive.
    """
    if not _ADDRESS_MIN <= len(address) <= _ADDRESS_MAX:
        return False
    if any(pattern.search(address) for pattern in _ADDRESS_BAD):
        return False
    return _ADDRESS_SHAPE.search(address) is not None


@dataclass(frozen=True, slots=True)
class Account:
    """An in-memory FIO identity: private key, public key and actor.

    Attributes:
        private_key: WIF private key.
        public_key: ``FIO`` prefixed public key text.
        actor: Account name derived from ``public_key``.
    """

    private_key: str
    public_key: str
    actor: str

    @classmethod
    def from_wif(cls, wif: str) -> Account:
        """Build an account from a WIF private key.

        Raises:
            MalformedKeyError: If the WIF is invalid.
        """
        public_key = public_key_from_wif(wif, prefix=FIO_PREFIX)
        return cls(private_key=wif, public_key=public_key, actor=derive_actor(public_key))

    @classmethod
    def random(cls) -> Account:
        """Create an account around a freshly generated key."""
        return cls.from_wif(private_key_to_wif(generate_private_key()))

    def __repr__(self) -> str:
        return f"Account(actor={self.actor!r}, public_key={self.public_key!r})"
