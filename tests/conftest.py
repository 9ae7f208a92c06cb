"""Shared test fixtures for py-fio test suite."""

from __future__ import annotations

import pytest

from fio_wallet.fio.account import Account

# Reference accounts from the FIO message encryption docs.
ALICE_WIF = "5J9bWm2ThenDm3tjvmUgHtWCVMUdjRR1pxnRtnJjvKA4b2ut5WK"
BOB_WIF = "5JoQtsKQuH8hC9MyvfJAqo6qmKLm8ePYNucs7tPu2YxG12trzBt"


@pytest.fixture
def alice() -> Account:
    return Account.from_wif(ALICE_WIF)


@pytest.fixture
def bob() -> Account:
    return Account.from_wif(BOB_WIF)


@pytest.fixture
def app_config():
    """Provide a test AppConfig with safe defaults."""
    from fio_wallet.config.settings import AppConfig, EnvelopeEncoding, MessagingConfig

    return AppConfig(
        messaging=MessagingConfig(envelope_encoding=EnvelopeEncoding.HEX),
    )
