"""Tests for actor derivation, address format and accounts."""

from __future__ import annotations

import pytest

from fio_wallet.errors.key_errors import (
    DerivationExhaustedError,
    InvalidBase58Error,
    MalformedKeyError,
)
from fio_wallet.fio.account import Account, derive_actor, is_valid_address
from fio_wallet.fio.keys import public_key_to_text, swap_prefix

_FIO_PUB = "FIO586ZYe3CA2D3cpuYJk565Ny7RhgWxCwnX7kojZSaun2RbTocAf"
_K1_PUB = "PUB_K1_6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV"

_ACCOUNT_WIF = "5JfNfukKhyCe4MSTBMiMdT77d8MCetEpceDQqRh4DuJQ1CAEdQF"
_ACCOUNT_PUB = "FIO6JN7BrPKPM8BqPs9zSPwbK3nWJ4EKvpjb4k9CFBQ6BbtrL2AHV"
_ACCOUNT_ACTOR = "tccyed5wnyj5"


# ---------------------------------------------------------------------------
# derive_actor
# ---------------------------------------------------------------------------


class TestDeriveActor:
    @pytest.mark.parametrize(
        ("public_key", "actor"),
        [
            (_FIO_PUB, "y5x3sk44d43p"),
            (_K1_PUB, "ymwzn5vje5ay"),
            (_ACCOUNT_PUB, _ACCOUNT_ACTOR),
        ],
    )
    def test_known_vectors(self, public_key: str, actor: str) -> None:
        assert derive_actor(public_key) == actor

    def test_deterministic(self) -> None:
        assert derive_actor(_FIO_PUB) == derive_actor(_FIO_PUB)

    def test_curve_prefix_maps_to_same_actor(self) -> None:
        assert derive_actor(swap_prefix(_FIO_PUB, "EOS")) == derive_actor(_FIO_PUB)

    def test_actor_shape(self) -> None:
        actor = derive_actor(_FIO_PUB)
        assert len(actor) == 12
        assert set(actor) <= set(".12345abcdefghijklmnopqrstuvwxyz")

    def test_zero_fields_are_skipped(self) -> None:
        """Interleaved zero bytes are passed over; each 0x01 becomes a '1'."""
        key = b"\x02" + b"\x00\x01" * 16
        assert derive_actor(public_key_to_text(key, "FIO")) == "111111111111"

    def test_all_zero_key_exhausts(self) -> None:
        key = b"\x02" + b"\x00" * 32
        with pytest.raises(DerivationExhaustedError, match="trailing zero"):
            derive_actor(public_key_to_text(key, "FIO"))

    def test_too_few_nonzero_fields_exhausts(self) -> None:
        key = b"\x02" + b"\x1f" * 12 + b"\x00" * 20
        with pytest.raises(DerivationExhaustedError):
            derive_actor(public_key_to_text(key, "FIO"))

    def test_wrong_prefix(self) -> None:
        with pytest.raises(MalformedKeyError, match="prefix"):
            derive_actor("ABC" + _FIO_PUB[3:])

    def test_wrong_length(self) -> None:
        with pytest.raises(MalformedKeyError, match="53"):
            derive_actor(_FIO_PUB[:-1])

    def test_empty(self) -> None:
        with pytest.raises(MalformedKeyError):
            derive_actor("")

    def test_altered_last_character(self) -> None:
        altered = _FIO_PUB[:-1] + ("g" if _FIO_PUB[-1] != "g" else "h")
        with pytest.raises(MalformedKeyError, match="checksum"):
            derive_actor(altered)

    def test_altered_k1_last_character(self) -> None:
        altered = _K1_PUB[:-1] + ("W" if _K1_PUB[-1] != "W" else "X")
        with pytest.raises(MalformedKeyError, match="checksum"):
            derive_actor(altered)

    def test_invalid_base58(self) -> None:
        with pytest.raises(InvalidBase58Error):
            derive_actor(_FIO_PUB[:20] + "I" + _FIO_PUB[21:])


# ---------------------------------------------------------------------------
# Address format
# ---------------------------------------------------------------------------


class TestIsValidAddress:
    @pytest.mark.parametrize(
        "address",
        ["purse@alice", "a@b", "bp1@dapixdev", "my-name@my-domain", "name:domain", "UPPER@case"],
    )
    def test_valid(self, address: str) -> None:
        assert is_valid_address(address)

    @pytest.mark.parametrize(
        "address",
        [
            "ab",
            "a" * 60 + "@" + "b" * 4,
            "-name@domain",
            "name@domain-",
            "na--me@domain",
            "name-@domain",
            "name@-domain",
            "name@@domain",
            "a@b@c",
            "a:b:c",
            "nodelimiter",
            "@domain",
        ],
    )
    def test_invalid(self, address: str) -> None:
        assert not is_valid_address(address)


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


class TestAccount:
    def test_from_wif(self) -> None:
        account = Account.from_wif(_ACCOUNT_WIF)
        assert account.private_key == _ACCOUNT_WIF
        assert account.public_key == _ACCOUNT_PUB
        assert account.actor == _ACCOUNT_ACTOR

    def test_from_bad_wif(self) -> None:
        with pytest.raises(MalformedKeyError):
            Account.from_wif(_ACCOUNT_WIF[:-1] + "a")

    def test_random_accounts_differ(self) -> None:
        a, b = Account.random(), Account.random()
        assert a.private_key != b.private_key
        assert a.public_key.startswith("FIO")
        assert len(a.public_key) == 53
        assert a.actor == derive_actor(a.public_key)

    def test_repr_hides_private_key(self) -> None:
        account = Account.from_wif(_ACCOUNT_WIF)
        assert _ACCOUNT_WIF not in repr(account)
        assert _ACCOUNT_ACTOR in repr(account)
