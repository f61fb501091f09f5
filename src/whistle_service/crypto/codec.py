"""
Report Cipher Codec

Symmetric encryption of a report payload into a transport-safe envelope.

Each envelope carries one random 16 byte IV. Every field is sealed with
AES-256-GCM under its own 12 byte nonce, derived from (key, IV, field name)
with HKDF-SHA256, and the field name is bound as associated data. Nonces are
therefore never reused across fields, and ciphertexts cannot be swapped
between fields of an envelope.

The codec never looks up keys itself: callers pass the 32 byte key, usually
obtained from configuration through ``load_key``.
"""

import base64
import binascii
import logging
import os
from typing import Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic import ValidationError as PydanticValidationError

from whistle_service.core.exceptions import ConfigurationError, DecryptionError, ValidationError
from whistle_service.models.report import (
    EncryptedEnvelope,
    ReportPayload,
    VideoMetadata,
    utcnow,
)

logger = logging.getLogger(__name__)

KEY_SIZE = 32
IV_SIZE = 16
NONCE_SIZE = 12

# Payload field -> envelope field, in encryption order
ENVELOPE_FIELDS: Dict[str, str] = {
    "message": "encrypted_message",
    "category": "encrypted_category",
    "photo_url": "encrypted_photo_url",
    "video_url": "encrypted_video_url",
    "video_metadata": "encrypted_video_metadata",
}


def generate_key() -> str:
    """Generate a fresh hex-encoded 256-bit key for operators"""
    return os.urandom(KEY_SIZE).hex()


def load_key(value: Optional[str]) -> bytes:
    """
    Parse a configured encryption key

    Args:
        value: 64 hex characters or urlsafe base64 encoding of 32 bytes

    Returns:
        Raw 32 byte key

    Raises:
        ConfigurationError: If the key is missing or malformed
    """
    if not value or not value.strip():
        raise ConfigurationError("Encryption key is not configured")

    value = value.strip()
    try:
        if len(value) == KEY_SIZE * 2:
            key = bytes.fromhex(value)
        else:
            key = base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
    except (ValueError, binascii.Error) as e:
        raise ConfigurationError("Encryption key is not valid hex or base64") from e

    if len(key) != KEY_SIZE:
        raise ConfigurationError(
            f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}"
        )
    return key


def require_key(key: Optional[bytes]) -> bytes:
    """
    Check that a raw key is usable

    Raises:
        ConfigurationError: If the key is missing or not 32 bytes
    """
    if not key:
        raise ConfigurationError("Encryption key is not configured")
    if len(key) != KEY_SIZE:
        raise ConfigurationError(f"Encryption key must be {KEY_SIZE} bytes")
    return key


def _cipher(key: Optional[bytes]) -> AESGCM:
    return AESGCM(require_key(key))


def _field_nonce(key: bytes, iv: bytes, field: str) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=NONCE_SIZE,
        salt=iv,
        info=b"whistle-envelope|" + field.encode("ascii"),
    )
    return hkdf.derive(key)


def _seal(aes: AESGCM, key: bytes, iv: bytes, field: str, plaintext: str) -> str:
    nonce = _field_nonce(key, iv, field)
    sealed = aes.encrypt(nonce, plaintext.encode("utf-8"), field.encode("ascii"))
    return base64.urlsafe_b64encode(sealed).decode("ascii")


def _open(aes: AESGCM, key: bytes, iv: bytes, field: str, token: str) -> str:
    try:
        sealed = base64.urlsafe_b64decode(token.encode("ascii"))
    except (ValueError, binascii.Error) as e:
        raise DecryptionError(f"Malformed ciphertext in {field}") from e

    nonce = _field_nonce(key, iv, field)
    try:
        plaintext = aes.decrypt(nonce, sealed, field.encode("ascii"))
    except InvalidTag as e:
        raise DecryptionError(f"Authentication failed for {field}") from e

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError(f"Decrypted {field} is not UTF-8") from e


def encrypt(payload: ReportPayload, key: Optional[bytes]) -> EncryptedEnvelope:
    """
    Encrypt a report payload into an envelope

    Args:
        payload: Plaintext report content
        key: 32 byte symmetric key

    Returns:
        Envelope with one ciphertext per populated field, the hex IV and
        the time of encryption

    Raises:
        ConfigurationError: If no usable key is supplied
        ValidationError: If message or category is empty
    """
    if not payload.message:
        raise ValidationError("Message is required")
    if not payload.category:
        raise ValidationError("Category is required")

    aes = _cipher(key)
    iv = os.urandom(IV_SIZE)

    plaintexts = {
        "message": payload.message,
        "category": payload.category,
        "photo_url": payload.photo_url,
        "video_url": payload.video_url,
        "video_metadata": (
            payload.video_metadata.model_dump_json(exclude_none=True)
            if payload.video_metadata
            else None
        ),
    }

    sealed = {
        ENVELOPE_FIELDS[field]: _seal(aes, key, iv, field, value)
        for field, value in plaintexts.items()
        if value is not None
    }

    return EncryptedEnvelope(
        iv=iv.hex(),
        timestamp=utcnow().isoformat(),
        **sealed
    )


def decrypt(envelope: EncryptedEnvelope, key: Optional[bytes]) -> ReportPayload:
    """
    Decrypt an envelope back into the report payload

    Args:
        envelope: Envelope produced by ``encrypt``
        key: The same 32 byte key used to encrypt

    Returns:
        The decrypted payload

    Raises:
        ConfigurationError: If no usable key is supplied
        DecryptionError: On a wrong key, tampering or malformed envelope
    """
    aes = _cipher(key)

    try:
        iv = bytes.fromhex(envelope.iv)
    except ValueError as e:
        raise DecryptionError("IV is not valid hex") from e
    if len(iv) != IV_SIZE:
        raise DecryptionError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")

    plaintexts = {}
    for field, envelope_field in ENVELOPE_FIELDS.items():
        token = getattr(envelope, envelope_field)
        if token is not None:
            plaintexts[field] = _open(aes, key, iv, field, token)

    if "video_metadata" in plaintexts:
        try:
            plaintexts["video_metadata"] = VideoMetadata.model_validate_json(
                plaintexts["video_metadata"]
            )
        except PydanticValidationError as e:
            raise DecryptionError("Decrypted video metadata is malformed") from e

    if "message" not in plaintexts or "category" not in plaintexts:
        raise DecryptionError("Envelope is missing message or category")

    try:
        return ReportPayload(**plaintexts)
    except PydanticValidationError as e:
        raise DecryptionError("Decrypted payload is malformed") from e
