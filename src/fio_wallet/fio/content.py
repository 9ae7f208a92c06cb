"""Encrypted ``content`` records for FIO requests and OBT responses.

The ``content`` field of a funds request or OBT record is a JSON document
encrypted with :mod:`fio_wallet.fio.ecies` for the counterparty, then
carried as base64 (default) or hex text.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from fio_wallet.config.settings import EnvelopeEncoding, MessagingConfig
from fio_wallet.errors.crypto_errors import ContentDecodeError
from fio_wallet.fio.ecies import decode_envelope, decrypt, encode_envelope, encrypt

if TYPE_CHECKING:
    from fio_wallet.fio.account import Account

logger = logging.getLogger(__name__)


class ContentType(enum.StrEnum):
    """Kinds of encrypted content, named after their on-chain struct."""

    REQUEST = "new_funds_content"
    RECORD = "record_obt_data_content"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class ContentRecord(BaseModel):
    """Base for content that travels encrypted between two parties."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_bytes(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode("utf-8")

    def encrypt(
        self,
        sender: Account,
        recipient_public_key: str,
        *,
        encoding: EnvelopeEncoding | None = None,
        config: MessagingConfig | None = None,
    ) -> str:
        """Shorthand for :func:`encrypt_content`."""
        return encrypt_content(
            sender, recipient_public_key, self, encoding=encoding, config=config
        )


class FundsRequestContent(ContentRecord):
    """Content of a new funds request, sent by the payee to the payer."""

    payee_public_address: str
    amount: str
    chain_code: str
    token_code: str
    memo: str | None = None
    hash: str | None = None
    offline_url: str | None = None


class RecordObtContent(ContentRecord):
    """Content of an OBT record, sent by the payer once funds have moved."""

    payer_public_address: str
    payee_public_address: str
    amount: str
    chain_code: str
    token_code: str
    status: str = ""
    obt_id: str = ""
    memo: str | None = None
    hash: str | None = None
    offline_url: str | None = None


_RECORD_TYPES: dict[ContentType, type[ContentRecord]] = {
    ContentType.REQUEST: FundsRequestContent,
    ContentType.RECORD: RecordObtContent,
}


# ---------------------------------------------------------------------------
# Encrypt / decrypt
# ---------------------------------------------------------------------------


def _encoding(encoding: EnvelopeEncoding | None, config: MessagingConfig | None) -> EnvelopeEncoding:
    if encoding is not None:
        return encoding
    return (config or MessagingConfig()).envelope_encoding


def encrypt_content(
    sender: Account,
    recipient_public_key: str,
    record: ContentRecord,
    *,
    encoding: EnvelopeEncoding | None = None,
    config: MessagingConfig | None = None,
    iv: bytes | None = None,
) -> str:
    """Serialize and encrypt *record* for *recipient_public_key*.

    Returns:
        The envelope as text in *encoding* (defaults to the config's, base64).
    """
    envelope = encrypt(sender.private_key, recipient_public_key, record.to_bytes(), iv)
    return encode_envelope(envelope, _encoding(encoding, config))


def decrypt_content(
    recipient: Account,
    sender_public_key: str,
    text: str,
    content_type: ContentType,
    *,
    encoding: EnvelopeEncoding | None = None,
    config: MessagingConfig | None = None,
) -> ContentRecord:
    """Decrypt and parse a content field.

    Raises:
        EnvelopeMalformedError: *text* is not a well formed envelope.
        AuthenticationError: The envelope was not produced by the two parties.
        ContentDecodeError: *content_type* is unknown, or the plaintext is not
            a record of that type.
    """
    try:
        record_type = _RECORD_TYPES[ContentType(content_type)]
    except ValueError as exc:
        msg = f"unknown content type {content_type!r}"
        raise ContentDecodeError(msg) from exc
    envelope = decode_envelope(text, _encoding(encoding, config))
    plaintext = decrypt(recipient.private_key, sender_public_key, envelope)
    try:
        return record_type.model_validate_json(plaintext)
    except ValidationError as exc:
        logger.debug("Decrypted content is not a %s record", content_type)
        msg = f"decrypted content is not a valid {content_type} record"
        raise ContentDecodeError(msg) from exc
