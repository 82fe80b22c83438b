"""
Exception classes for key envelope and record cipher operations.

Envelope errors (``KeyUnavailableError`` and subclasses) are fatal at startup.
Record errors (``RecordCipherError`` and subclasses) are scoped to one call.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all credvault operations."""

    pass


class ConfigError(VaultError):
    """Configuration error (settings, passphrase input)."""

    pass


class CryptoError(VaultError):
    """Cryptographic primitive misused (wrong key or salt size)."""

    pass


class KeyUnavailableError(VaultError):
    """The envelope file could not yield a data encryption key."""

    pass


class CorruptEnvelopeError(KeyUnavailableError):
    """Envelope file is present but too short or malformed."""

    pass


class WrongPassphraseError(KeyUnavailableError):
    """
    The derived KEK failed to unwrap the stored DEK.

    Raised both for an incorrect passphrase and for a tampered envelope;
    the two cases are deliberately not told apart.
    """

    pass


class RecordCipherError(VaultError):
    """A single record could not be decrypted."""

    pass


class MalformedBlobError(RecordCipherError):
    """Ciphertext blob is too short to contain an IV."""

    pass


class DecryptionFailedError(RecordCipherError):
    """Cipher rejected the ciphertext or its padding."""

    pass
