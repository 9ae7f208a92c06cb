"""BIP39 mnemonics and BIP44 key derivation for FIO.

FIO keys live at ``m/44'/235'/0'/0/{index}`` (235 is FIO's registered coin
type). Each child private key is exported as an uncompressed mainnet WIF and
its public key is shown with the ``FIO`` prefix in place of ``EOS``.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mnemonic import Mnemonic as BIP39

from fio_wallet.config.settings import KeyConfig
from fio_wallet.errors.key_errors import (
    InvalidDerivationIndexError,
    InvalidMnemonicError,
    InvalidQuizCountError,
)
from fio_wallet.fio.keys import (
    HARDENED_OFFSET,
    ExtendedKey,
    private_key_to_wif,
    public_key_from_wif,
)

if TYPE_CHECKING:
    import random

logger = logging.getLogger(__name__)

# Word count -> entropy bits
_STRENGTHS = {12: 128, 15: 160, 18: 192, 21: 224, 24: 256}
VALID_WORD_COUNTS = tuple(_STRENGTHS)

_BIP39_ENGLISH = BIP39("english")

# m/44'/235'/0'/0; used whenever no config is passed
DEFAULT_KEY_CONFIG = KeyConfig()

_ORDINALS = (
    "first", "second", "third", "fourth", "fifth", "sixth",
    "seventh", "eighth", "ninth", "tenth", "eleventh", "twelfth",
    "thirteenth", "fourteenth", "fifteenth", "sixteenth", "seventeenth", "eighteenth",
    "nineteenth", "twentieth", "twenty-first", "twenty-second", "twenty-third", "twenty-fourth",
)  # fmt: skip


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class KeyPair:
    """A derived FIO key pair.

    Attributes:
        index: Child index in the derivation path.
        private_key: WIF private key.
        public_key: ``FIO`` prefixed public key text.
    """

    index: int
    private_key: str
    public_key: str

    def __repr__(self) -> str:
        return f"KeyPair(index={self.index}, public_key={self.public_key!r})"


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    """One backup-verification challenge: "what is the *description* word?"."""

    index: int
    description: str
    _word: str = field(repr=False)

    def check(self, answer: str) -> bool:
        """True if *answer*, stripped of surrounding whitespace, is the word."""
        return answer.strip() == self._word


@dataclass(frozen=True, slots=True)
class Mnemonic:
    """A validated BIP39 mnemonic phrase.

    Raises:
        InvalidMnemonicError: On construction, if the word count is not one of
            12, 15, 18, 21 or 24, a word is empty, or the BIP39 checksum fails.
    """

    words: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.words) not in _STRENGTHS:
            msg = "mnemonic length should be 12, 15, 18, 21, or 24 words"
            raise InvalidMnemonicError(msg)
        if any(word == "" for word in self.words):
            msg = "invalid mnemonic, got an empty word"
            raise InvalidMnemonicError(msg)
        if not _BIP39_ENGLISH.check(" ".join(self.words)):
            msg = "invalid mnemonic, unknown word or bad checksum"
            raise InvalidMnemonicError(msg)

    @classmethod
    def from_string(cls, phrase: str) -> Mnemonic:
        """Parse a space separated phrase."""
        return cls(tuple(phrase.strip().split(" ")))

    @classmethod
    def random(cls, words: int = 24) -> Mnemonic:
        """Generate a new mnemonic with *words* words of fresh entropy."""
        strength = _STRENGTHS.get(words)
        if strength is None:
            msg = "mnemonic length should be 12, 15, 18, 21, or 24 words"
            raise InvalidMnemonicError(msg)
        return cls.from_string(_BIP39_ENGLISH.generate(strength=strength))

    def __len__(self) -> int:
        return len(self.words)

    def __str__(self) -> str:
        return " ".join(self.words)

    def __repr__(self) -> str:
        return f"Mnemonic(<{len(self.words)} words>)"

    # -- Keys --------------------------------------------------------------

    def master_key(self) -> ExtendedKey:
        """BIP32 master key for this phrase (empty BIP39 passphrase)."""
        return ExtendedKey.from_seed(BIP39.to_seed(str(self)))

    def xpriv(self) -> str:
        """Root extended private key (``xprv...``)."""
        return self.master_key().to_string()

    def xpub(self) -> str:
        """Root extended public key (``xpub...``)."""
        return self.master_key().neuter().to_string()

    def key_at(self, index: int, *, config: KeyConfig | None = None) -> KeyPair:
        return derive_key_at(self, index, config=config)

    def keys(self, count: int, *, config: KeyConfig | None = None) -> list[KeyPair]:
        return derive_keys(self, count, config=config)

    def public_key_at(self, index: int, *, config: KeyConfig | None = None) -> str:
        return derive_key_at(self, index, config=config).public_key

    def public_keys(self, count: int, *, config: KeyConfig | None = None) -> list[str]:
        return derive_public_keys(self, count, config=config)

    # -- Backup check ------------------------------------------------------

    def quiz(self, count: int = 0, *, rng: random.Random | None = None) -> list[QuizQuestion]:
        """Build challenges for distinct, randomly chosen word positions.

        Args:
            count: Number of questions; 0 means a third of the word count.
            rng: Source of randomness, a CSPRNG unless given.

        Raises:
            InvalidQuizCountError: If *count* is negative or exceeds the word count.
        """
        if count == 0:
            count = len(self.words) // 3
        if not 0 < count <= len(self.words):
            msg = f"cannot ask {count} questions about a {len(self.words)} word mnemonic"
            raise InvalidQuizCountError(msg)
        picker = rng if rng is not None else secrets.SystemRandom()
        positions = picker.sample(range(len(self.words)), count)
        return [
            QuizQuestion(index=pos, description=_ORDINALS[pos], _word=self.words[pos])
            for pos in positions
        ]


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def _as_mnemonic(mnemonic: Mnemonic | str) -> Mnemonic:
    if isinstance(mnemonic, Mnemonic):
        return mnemonic
    return Mnemonic.from_string(mnemonic)


def _check_index(index: int) -> None:
    if not 0 <= index < HARDENED_OFFSET:
        msg = f"derivation index must be in [0, 2^31), got {index}"
        raise InvalidDerivationIndexError(msg)


def _derive(master: ExtendedKey, index: int, config: KeyConfig) -> KeyPair:
    child = master.derive_path(config.derivation_path(index))
    wif = private_key_to_wif(child.key)
    public_key = public_key_from_wif(wif)
    return KeyPair(index=index, private_key=wif, public_key=public_key)


def derive_key_at(
    mnemonic: Mnemonic | str,
    index: int,
    *,
    config: KeyConfig | None = None,
) -> KeyPair:
    """Derive the key pair at ``m/44'/235'/0'/0/{index}``.

    Raises:
        InvalidMnemonicError: If *mnemonic* is a string that fails validation.
        InvalidDerivationIndexError: If *index* is negative or hardened.
        KeyDerivationError: If BIP32 derivation yields an invalid key.
    """
    _check_index(index)
    cfg = config or DEFAULT_KEY_CONFIG
    pair = _derive(_as_mnemonic(mnemonic).master_key(), index, cfg)
    logger.debug("Derived key at %s", cfg.derivation_path(index))
    return pair


def derive_keys(
    mnemonic: Mnemonic | str,
    count: int,
    *,
    config: KeyConfig | None = None,
) -> list[KeyPair]:
    """Derive key pairs for indexes ``0..count-1``.

    Raises:
        InvalidDerivationIndexError: If *count* is less than 1.
    """
    if count < 1:
        msg = "cannot derive 0 keys"
        raise InvalidDerivationIndexError(msg)
    _check_index(count - 1)
    cfg = config or DEFAULT_KEY_CONFIG
    master = _as_mnemonic(mnemonic).master_key()
    pairs = [_derive(master, index, cfg) for index in range(count)]
    logger.debug("Derived %d keys under %s", count, cfg.derivation_path(0).rsplit("/", 1)[0])
    return pairs


def derive_public_keys(
    mnemonic: Mnemonic | str,
    count: int,
    *,
    config: KeyConfig | None = None,
) -> list[str]:
    """Public key texts for indexes ``0..count-1``."""
    return [pair.public_key for pair in derive_keys(mnemonic, count, config=config)]
