"""
Cryptographic primitives for passphrase-protected envelope encryption.

This module provides:
- SecureKey: Key material holder, zeroed on collection
- EncryptedBlob: IV and ciphertext pair in ``iv || ciphertext`` layout
- AesCbcCipher: AES-256-CBC encryption/decryption with PKCS7 padding
- derive_kek: PBKDF2-HMAC-SHA256 key derivation from a passphrase
"""

from __future__ import annotations

import base64
import binascii
import hmac
import secrets
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import CryptoError, DecryptionFailedError, MalformedBlobError

# Cryptographic constants
AES_256_KEY_SIZE: int = 32  # 256 bits
IV_SIZE: int = 16  # one AES block
SALT_SIZE: int = 16  # 128 bits
BLOCK_SIZE: int = 16

# PBKDF2 parameters (envelope version 1)
PBKDF2_ITERATIONS: int = 600_000
KEK_LENGTH: int = 32  # 256 derived bits


class SecureKey:
    """
    Holder for DEK and KEK material.

    The bytes live in a bytearray that is overwritten with zeros when the
    holder is collected. Copies handed out by ``as_bytes`` are not covered.
    """

    __slots__ = ("_bytes",)

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        """
        Args:
            key_bytes: Raw key material, 32 bytes for AES-256
        """
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise CryptoError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)

    @classmethod
    def generate(cls) -> SecureKey:
        """Generate a cryptographically secure random 32-byte key."""
        return cls(secrets.token_bytes(AES_256_KEY_SIZE))

    def as_bytes(self) -> bytes:
        """Copy of the key material, for handing to cipher constructors."""
        return bytes(self._bytes)

    def __len__(self) -> int:
        return len(self._bytes)

    def __eq__(self, other: object) -> bool:
        """Constant-time comparison of key material."""
        if not isinstance(other, SecureKey):
            return NotImplemented
        return hmac.compare_digest(bytes(self._bytes), bytes(other._bytes))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "SecureKey([REDACTED])"

    def __del__(self) -> None:
        # Same length slice assignment overwrites the buffer in place
        if hasattr(self, "_bytes"):
            self._bytes[:] = bytes(len(self._bytes))


@dataclass(frozen=True)
class EncryptedBlob:
    """
    IV and ciphertext produced by one CBC encryption.

    The serialized form is ``iv (16 bytes) || ciphertext``.
    """

    iv: bytes  # 16 bytes
    ciphertext: bytes  # PKCS7-padded, multiple of 16 bytes

    def to_blob(self) -> bytes:
        """Concatenate into the ``iv || ciphertext`` byte layout."""
        return self.iv + self.ciphertext

    @classmethod
    def from_blob(cls, blob: bytes) -> EncryptedBlob:
        """
        Split an ``iv || ciphertext`` blob.

        Args:
            blob: Raw blob bytes

        Returns:
            EncryptedBlob instance

        Raises:
            MalformedBlobError: If blob is shorter than one IV
        """
        if len(blob) < IV_SIZE:
            raise MalformedBlobError(
                f"Blob too small: expected at least {IV_SIZE} bytes, got {len(blob)}"
            )
        return cls(iv=bytes(blob[:IV_SIZE]), ciphertext=bytes(blob[IV_SIZE:]))

    def to_base64(self) -> str:
        """Encode as base64 string."""
        return base64.standard_b64encode(self.to_blob()).decode("ascii")

    @classmethod
    def from_base64(cls, encoded: str) -> EncryptedBlob:
        """
        Decode from base64 string.

        Raises:
            MalformedBlobError: If decoding fails or the blob is too short
        """
        try:
            decoded = base64.standard_b64decode(encoded)
        except (binascii.Error, ValueError) as e:
            raise MalformedBlobError(f"Base64 decode error: {e}")
        return cls.from_blob(decoded)


def _check_key(key: SecureKey) -> None:
    if len(key) != AES_256_KEY_SIZE:
        raise CryptoError(
            f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key)}"
        )


class AesCbcCipher:
    """
    AES-256-CBC encryption with PKCS7 padding.

    Every call builds its own cipher context, so the static methods are
    safe to use from many threads with the same key.
    """

    @staticmethod
    def encrypt(
        key: SecureKey,
        plaintext: bytes,
        iv: Optional[bytes] = None,
    ) -> EncryptedBlob:
        """
        Encrypt plaintext with AES-256-CBC.

        Args:
            key: 32-byte encryption key
            plaintext: Data to encrypt
            iv: Optional 16-byte IV; a fresh random IV is drawn when omitted

        Returns:
            EncryptedBlob with IV and padded ciphertext

        Raises:
            CryptoError: If key or IV size is invalid
        """
        _check_key(key)

        if iv is None:
            iv = secrets.token_bytes(IV_SIZE)
        elif len(iv) != IV_SIZE:
            raise CryptoError(f"Invalid IV size: expected {IV_SIZE}, got {len(iv)}")

        padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key.as_bytes()), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return EncryptedBlob(iv=iv, ciphertext=ciphertext)

    @staticmethod
    def decrypt(key: SecureKey, encrypted: EncryptedBlob) -> bytes:
        """
        Decrypt ciphertext with AES-256-CBC and strip PKCS7 padding.

        Args:
            key: 32-byte decryption key
            encrypted: EncryptedBlob with IV and ciphertext

        Returns:
            Decrypted plaintext bytes

        Raises:
            CryptoError: If key size is invalid
            MalformedBlobError: If the IV is not 16 bytes
            DecryptionFailedError: If block length or padding is invalid
        """
        _check_key(key)

        if len(encrypted.iv) != IV_SIZE:
            raise MalformedBlobError(
                f"Invalid IV size: expected {IV_SIZE}, got {len(encrypted.iv)}"
            )

        decryptor = Cipher(
            algorithms.AES(key.as_bytes()), modes.CBC(encrypted.iv)
        ).decryptor()
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()

        try:
            padded = decryptor.update(encrypted.ciphertext) + decryptor.finalize()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError:
            # Generic error to prevent padding oracle attacks
            raise DecryptionFailedError("Decryption failed") from None


def derive_kek(passphrase: str, salt: bytes) -> SecureKey:
    """
    Derive a 256-bit key encryption key with PBKDF2-HMAC-SHA256.

    Args:
        passphrase: Master passphrase (UTF-8 encoded before derivation)
        salt: 16-byte salt stored in the envelope

    Returns:
        Derived KEK

    Raises:
        CryptoError: If the salt has the wrong size
    """
    if len(salt) != SALT_SIZE:
        raise CryptoError(f"Invalid salt size: expected {SALT_SIZE}, got {len(salt)}")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEK_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return SecureKey(kdf.derive(passphrase.encode("utf-8")))


def generate_random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of bytes to generate

    Returns:
        Random bytes of specified length
    """
    return secrets.token_bytes(length)
