"""
Record cipher: encrypts individual secret values with the unwrapped DEK.

Blob layout: ``iv (16 bytes) || AES-256-CBC ciphertext``.

A ``RecordCipher`` is the key handle that bootstrap code constructs once and
passes to every component that stores or reads secrets. It holds no mutable
state besides the key, so one instance serves concurrent callers without locks.
"""

from __future__ import annotations

from typing import Protocol

from .crypto import AES_256_KEY_SIZE, AesCbcCipher, EncryptedBlob, SecureKey
from .errors import CryptoError, DecryptionFailedError


class EncryptionService(Protocol):
    """What storage and business code needs from the encryption layer."""

    def encrypt(self, plaintext: str) -> bytes:
        ...

    def decrypt(self, blob: bytes) -> str:
        ...


class RecordCipher:
    """
    Text encryption bound to one data encryption key.

    Every ``encrypt`` call draws a fresh random IV, so encrypting the same
    value twice yields different blobs.
    """

    __slots__ = ("_dek",)

    def __init__(self, dek: SecureKey) -> None:
        """
        Args:
            dek: 32-byte data encryption key from the key envelope

        Raises:
            CryptoError: If the key is not 32 bytes
        """
        if len(dek) != AES_256_KEY_SIZE:
            raise CryptoError(
                f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(dek)}"
            )
        self._dek = dek

    def encrypt(self, plaintext: str) -> bytes:
        """
        Encrypt a text value.

        Args:
            plaintext: Value to encrypt (UTF-8 encoded before encryption)

        Returns:
            ``iv || ciphertext`` blob
        """
        return AesCbcCipher.encrypt(self._dek, plaintext.encode("utf-8")).to_blob()

    def decrypt(self, blob: bytes) -> str:
        """
        Decrypt a blob produced by ``encrypt``.

        Args:
            blob: ``iv || ciphertext`` bytes

        Returns:
            The original text

        Raises:
            MalformedBlobError: If the blob is shorter than one IV
            DecryptionFailedError: If the ciphertext or padding is invalid
        """
        plaintext = AesCbcCipher.decrypt(self._dek, EncryptedBlob.from_blob(blob))
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionFailedError("Decryption failed") from None

    def encrypt_text(self, plaintext: str) -> str:
        """Encrypt and return the blob as base64 text."""
        return EncryptedBlob.from_blob(self.encrypt(plaintext)).to_base64()

    def decrypt_text(self, encoded: str) -> str:
        """Decrypt a base64 blob produced by ``encrypt_text``."""
        return self.decrypt(EncryptedBlob.from_base64(encoded).to_blob())

    def __repr__(self) -> str:
        return "RecordCipher(dek=[REDACTED])"


def encrypt(dek: SecureKey, plaintext: str) -> bytes:
    """Encrypt ``plaintext`` under ``dek``; see ``RecordCipher.encrypt``."""
    return RecordCipher(dek).encrypt(plaintext)


def decrypt(dek: SecureKey, blob: bytes) -> str:
    """Decrypt ``blob`` under ``dek``; see ``RecordCipher.decrypt``."""
    return RecordCipher(dek).decrypt(blob)
