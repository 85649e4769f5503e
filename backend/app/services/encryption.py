"""Journal content cipher.

Per-entry AES-256-GCM encryption of journal bodies. Every encrypt call draws
a fresh 64-byte salt and 16-byte IV; the key is re-derived from the
application master secret and the salt with PBKDF2-SHA256 on every call and
never cached.

Storage format: ``content`` holds ``salt:authTag:ciphertext`` (lowercase hex,
in that order) and the IV lives in its own column.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag

from app.utils.crypto import (
    GCM_TAG_LENGTH,
    aes_gcm_decrypt_detached,
    aes_gcm_encrypt_detached,
    pbkdf2_sha256,
    random_bytes,
    secure_zero,
)

SALT_LENGTH = 64
IV_LENGTH = 16
KEY_LENGTH = 32
KDF_ITERATIONS = 100_000
MIN_SECRET_LENGTH = 32
WORDS_PER_MINUTE = 200
PACK_DELIMITER = ":"

_LOWER_HEX = re.compile(r"(?:[0-9a-f]{2})*")


class CipherError(Exception):
    """Base class for content cipher failures."""


class ConfigurationError(CipherError):
    """Raised when the master secret is missing or too short."""


class IntegrityError(CipherError):
    """Raised when authentication of stored ciphertext fails."""


class MalformedDataError(CipherError):
    """Raised when packed content does not have the salt:tag:ciphertext shape."""


@dataclass(frozen=True, slots=True)
class EncryptionResult:
    """Hex-encoded output of a single encrypt call."""

    ciphertext: str
    iv: str  # 16 bytes
    auth_tag: str  # 16 bytes
    salt: str  # 64 bytes


@dataclass(frozen=True, slots=True)
class PackedContent:
    """Persisted representation: packed body plus the separate IV field."""

    content: str  # salt:auth_tag:ciphertext
    iv: str


@dataclass(frozen=True, slots=True)
class DerivedMetadata:
    word_count: int
    reading_time: int


@dataclass(frozen=True, slots=True)
class SealedContent:
    """Everything the write path stores for one journal body."""

    packed: PackedContent
    metadata: DerivedMetadata


def pack_encrypted_data(result: EncryptionResult) -> PackedContent:
    content = PACK_DELIMITER.join((result.salt, result.auth_tag, result.ciphertext))
    return PackedContent(content=content, iv=result.iv)


def unpack_encrypted_data(content: str, iv: str) -> EncryptionResult:
    """Split packed content on its first two delimiters.

    The ciphertext segment is never split further. Raises MalformedDataError
    when fewer than two delimiters are present.
    """
    parts = content.split(PACK_DELIMITER, 2)
    if len(parts) != 3:
        raise MalformedDataError(
            f"Packed content has {len(parts)} segment(s), expected 3 (salt:authTag:ciphertext)"
        )
    salt, auth_tag, ciphertext = parts
    return EncryptionResult(ciphertext=ciphertext, iv=iv, auth_tag=auth_tag, salt=salt)


def calculate_word_count(text: str) -> int:
    """Count whitespace-delimited tokens. Runs of whitespace count once."""
    return len(text.split())


def calculate_reading_time(word_count: int) -> int:
    """Estimated minutes to read, never less than 1."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def derive_metadata(text: str) -> DerivedMetadata:
    word_count = calculate_word_count(text)
    return DerivedMetadata(
        word_count=word_count,
        reading_time=calculate_reading_time(word_count),
    )


class ContentCipher:
    """Encrypts and decrypts journal bodies under one master secret.

    Stateless apart from the injected secret, so a single instance is shared
    across requests and threads.
    """

    __slots__ = ("_secret",)

    def __init__(self, master_secret: str | None) -> None:
        secret = (master_secret or "").strip()
        if not secret:
            raise ConfigurationError("Master secret is not set")
        if len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"Master secret must be at least {MIN_SECRET_LENGTH} characters, "
                f"got {len(secret)}"
            )
        self._secret = secret

    def derive_key(self, salt: bytes) -> bytes:
        """PBKDF2-SHA256 over the master secret, 100k iterations, 32-byte output."""
        if len(salt) != SALT_LENGTH:
            raise ValueError(f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}")
        return pbkdf2_sha256(self._secret, salt, KDF_ITERATIONS, KEY_LENGTH)

    def encrypt(self, plaintext: str) -> EncryptionResult:
        salt = random_bytes(SALT_LENGTH)
        iv = random_bytes(IV_LENGTH)
        # Only this working copy can be wiped; AESGCM keeps its own
        key = bytearray(self.derive_key(salt))
        try:
            ciphertext, tag = aes_gcm_encrypt_detached(key, iv, plaintext.encode("utf-8"))
        finally:
            secure_zero(key)
        return EncryptionResult(
            ciphertext=ciphertext.hex(),
            iv=iv.hex(),
            auth_tag=tag.hex(),
            salt=salt.hex(),
        )

    def decrypt(self, result: EncryptionResult) -> str:
        """Verify and decrypt. Raises IntegrityError on any mismatch.

        Anything other than lowercase hex, and wrong field lengths, are
        reported as IntegrityError too, since they can only come from altered
        stored data. bytes.fromhex alone would skip whitespace and accept
        uppercase.
        """
        fields = (result.salt, result.iv, result.auth_tag, result.ciphertext)
        if not all(_LOWER_HEX.fullmatch(value) for value in fields):
            raise IntegrityError("Encrypted fields are not lowercase hex")
        salt, iv, tag, ciphertext = (bytes.fromhex(value) for value in fields)

        if len(salt) != SALT_LENGTH or len(iv) != IV_LENGTH or len(tag) != GCM_TAG_LENGTH:
            raise IntegrityError("Encrypted fields have unexpected lengths")

        key = bytearray(self.derive_key(salt))
        try:
            plaintext = aes_gcm_decrypt_detached(key, iv, ciphertext, tag)
        except InvalidTag as exc:
            raise IntegrityError("Authentication tag verification failed") from exc
        finally:
            secure_zero(key)
        return plaintext.decode("utf-8")

    def seal(self, plaintext: str) -> SealedContent:
        """Write path: derive metadata, encrypt and pack."""
        metadata = derive_metadata(plaintext)
        packed = pack_encrypted_data(self.encrypt(plaintext))
        return SealedContent(packed=packed, metadata=metadata)

    def unseal(self, content: str, iv: str) -> str:
        """Read path: unpack stored fields and decrypt."""
        return self.decrypt(unpack_encrypted_data(content, iv))
