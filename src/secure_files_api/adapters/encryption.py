"""
Field-level encryption client.

`encrypt` seals a text payload for one logical table/column and returns an
opaque, JSON-serialisable envelope; `decrypt` turns such an envelope back into
the payload. Neither raises on an expected failure: both return a
`ProtectResult` whose `failure` is set instead.

`KMSEncryptor` uses envelope encryption. Every call to `encrypt` asks KMS for
a fresh AES-256 data key bound to the table/column encryption context, seals
the payload with AES-256-GCM (the table/column are also the associated data),
and stores the KMS-wrapped data key alongside the ciphertext:

    {"v": 1, "k": "<wrapped key>", "n": "<nonce>", "c": "<ciphertext>",
     "i": {"t": "uploads", "c": "file"}}

Binary values are standard base64. An envelope moved to another table or
column cannot be opened, since KMS refuses to unwrap the key under a
different encryption context.
"""

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from secure_files_api.aws_clients import get_kms_client
from secure_files_api.config.settings import Settings

logger = logging.getLogger(__name__)

ENVELOPE_VERSION = 1
NONCE_SIZE_BYTES = 12


@dataclass(frozen=True)
class SchemaReference:
    """Logical table/column an envelope is bound to."""

    table: str
    column: str

    @property
    def encryption_context(self) -> dict:
        return {"table": self.table, "column": self.column}

    @property
    def associated_data(self) -> bytes:
        return json.dumps([self.table, self.column]).encode("utf-8")


@dataclass(frozen=True)
class ProtectResult:
    """Outcome of an encrypt or decrypt call: either `data` or `failure`."""

    data: Any = None
    failure: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.failure is not None

    @classmethod
    def ok(cls, data: Any) -> "ProtectResult":
        return cls(data=data)

    @classmethod
    def fail(cls, message: str) -> "ProtectResult":
        return cls(failure=message)


class EnvelopeIdentifier(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    table: str = Field(alias="t")
    column: str = Field(alias="c")


class Envelope(BaseModel):
    """Wire format of an encrypted value."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = Field(ENVELOPE_VERSION, alias="v")
    wrapped_key: str = Field(alias="k")
    nonce: str = Field(alias="n")
    ciphertext: str = Field(alias="c")
    identifier: EnvelopeIdentifier = Field(alias="i")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class BaseEncryptor:
    """Base class for encryption clients (to be extended by specific implementations)"""

    def encrypt(self, payload: str, schema: SchemaReference) -> ProtectResult:
        raise NotImplementedError

    def decrypt(self, envelope: Any) -> ProtectResult:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.b64decode(text, validate=True)


class KMSEncryptor(BaseEncryptor):
    """Envelope encryption with AWS KMS data keys and AES-256-GCM"""

    def __init__(self, kms_client, key_id: Optional[str]):
        self.kms = kms_client
        self.key_id = key_id

    def encrypt(self, payload: str, schema: SchemaReference) -> ProtectResult:
        if not self.key_id:
            return ProtectResult.fail("No KMS key configured; set KMS_KEY_ID")

        try:
            data_key = self.kms.generate_data_key(
                KeyId=self.key_id,
                KeySpec="AES_256",
                EncryptionContext=schema.encryption_context,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"KMS GenerateDataKey failed: {str(e)}")
            return ProtectResult.fail(str(e))

        nonce = os.urandom(NONCE_SIZE_BYTES)
        sealed = AESGCM(data_key["Plaintext"]).encrypt(
            nonce, payload.encode("utf-8"), schema.associated_data
        )

        envelope = Envelope(
            wrapped_key=_b64encode(data_key["CiphertextBlob"]),
            nonce=_b64encode(nonce),
            ciphertext=_b64encode(sealed),
            identifier=EnvelopeIdentifier(table=schema.table, column=schema.column),
        )
        return ProtectResult.ok(envelope.to_json_dict())

    def decrypt(self, envelope: Any) -> ProtectResult:
        try:
            parsed = Envelope.model_validate(envelope)
        except ValidationError as e:
            return ProtectResult.fail(f"Malformed envelope: {e.error_count()} validation error(s)")

        if parsed.version != ENVELOPE_VERSION:
            return ProtectResult.fail(f"Unsupported envelope version: {parsed.version}")

        schema = SchemaReference(table=parsed.identifier.table, column=parsed.identifier.column)
        try:
            wrapped_key = _b64decode(parsed.wrapped_key)
            nonce = _b64decode(parsed.nonce)
            sealed = _b64decode(parsed.ciphertext)
        except (binascii.Error, ValueError):
            return ProtectResult.fail("Malformed envelope: invalid base64")

        try:
            unwrapped = self.kms.decrypt(
                CiphertextBlob=wrapped_key,
                EncryptionContext=schema.encryption_context,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"KMS Decrypt failed: {str(e)}")
            return ProtectResult.fail(str(e))

        try:
            plaintext = AESGCM(unwrapped["Plaintext"]).decrypt(nonce, sealed, schema.associated_data)
        except (InvalidTag, ValueError):
            return ProtectResult.fail("Envelope failed authentication")

        return ProtectResult.ok(plaintext.decode("utf-8"))

    def describe(self) -> str:
        return f"kms:{self.key_id}" if self.key_id else "kms:<unset>"


def get_encryptor(settings: Settings) -> BaseEncryptor:
    """Build the encryption client for the configured deployment."""
    if not settings.kms_key_id:
        logger.warning("KMS_KEY_ID is not set; every encryption request will fail")
    return KMSEncryptor(get_kms_client(settings), settings.kms_key_id)
