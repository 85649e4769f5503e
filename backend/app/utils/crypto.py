"""Low-level cryptographic primitives for the journal backend.

Pure functions with no domain knowledge. Reusable building blocks.
"""

from __future__ import annotations

import ctypes
import hashlib
import os

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

GCM_TAG_LENGTH = 16

# argon2-cffi defaults are Argon2id with RFC 9106 low-memory parameters
_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a login password with Argon2id. Returns the PHC-formatted string."""
    return _password_hasher.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """Check a password against a stored Argon2 hash without raising."""
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    return _password_hasher.check_needs_rehash(password_hash)


def pbkdf2_sha256(secret: str, salt: bytes, iterations: int, length: int = 32) -> bytes:
    """Derive a key from a text secret with PBKDF2-HMAC-SHA256."""
    kdf = PBKDF2HMAC(
        algorithm=SHA256(),
        length=length,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(secret.encode("utf-8"))


def aes_gcm_encrypt_detached(
    key: bytes, iv: bytes, plaintext: bytes
) -> tuple[bytes, bytes]:
    """Encrypt plaintext with AES-256-GCM under a caller-supplied IV.

    Returns (ciphertext, tag) with the 16-byte tag split off the end.
    """
    sealed = AESGCM(key).encrypt(iv, plaintext, None)
    return sealed[:-GCM_TAG_LENGTH], sealed[-GCM_TAG_LENGTH:]


def aes_gcm_decrypt_detached(
    key: bytes, iv: bytes, ciphertext: bytes, tag: bytes
) -> bytes:
    """Decrypt data produced by aes_gcm_encrypt_detached.

    Raises cryptography.exceptions.InvalidTag on tampered data.
    """
    return AESGCM(key).decrypt(iv, ciphertext + tag, None)


def random_bytes(length: int) -> bytes:
    """Return cryptographically secure random bytes from the OS."""
    return os.urandom(length)


def secure_zero(buf: bytearray) -> None:
    """Overwrite a bytearray with zeros to remove key material from memory."""
    n = len(buf)
    if n == 0:
        return
    ctypes.memset((ctypes.c_char * n).from_buffer(buf), 0, n)


def sha256_hash(data: bytes) -> str:
    """Compute SHA-256 hash. Returns hex-encoded digest."""
    return hashlib.sha256(data).hexdigest()
