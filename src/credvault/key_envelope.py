"""
Key envelope manager.

This module provides:
- KeyEnvelope: Creates or unlocks the passphrase-protected envelope file
- Ok / Err: Tagged result of opening an envelope
- EnvelopeErrorKind: Why an envelope could not be opened
- obtain_dek: Exception-raising entry point used at process startup

Key hierarchy:
- Passphrase + salt -> KEK (PBKDF2-HMAC-SHA256, never persisted)
- KEK -> wrapped DEK (AES-256-CBC, stored in the envelope file)
- DEK -> record ciphertext (see record_cipher)

Losing or regenerating the envelope makes every record encrypted under the
previous DEK permanently unrecoverable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NoReturn, Union

from .crypto import (
    AES_256_KEY_SIZE,
    IV_SIZE,
    SALT_SIZE,
    AesCbcCipher,
    EncryptedBlob,
    SecureKey,
    derive_kek,
    generate_random_bytes,
)
from .envelope_file import EnvelopeFile
from .errors import (
    CorruptEnvelopeError,
    RecordCipherError,
    WrongPassphraseError,
)

logger = logging.getLogger("credvault")

_WRONG_PASSPHRASE_MESSAGE = "Failed to unlock key file: wrong passphrase or corrupted file"


class EnvelopeErrorKind(Enum):
    """Reason an envelope could not be opened."""

    CORRUPT = "corrupt"
    WRONG_PASSPHRASE = "wrong_passphrase"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Ok:
    """Envelope opened; carries the data encryption key."""

    dek: SecureKey


@dataclass(frozen=True)
class Err:
    """Envelope could not be opened."""

    kind: EnvelopeErrorKind
    message: str

    def raise_error(self) -> NoReturn:
        """Raise the exception matching ``kind``."""
        if self.kind is EnvelopeErrorKind.CORRUPT:
            raise CorruptEnvelopeError(self.message)
        raise WrongPassphraseError(self.message)


EnvelopeResult = Union[Ok, Err]


class KeyEnvelope:
    """
    Passphrase-protected envelope holding the wrapped DEK.

    The envelope is created on first use and only read afterwards.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Args:
            path: Location of the envelope file
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Get the envelope file path."""
        return self._path

    @property
    def exists(self) -> bool:
        """Check if an envelope file is present."""
        return self._path.exists()

    def create(self, passphrase: str) -> SecureKey:
        """
        Generate a new DEK, wrap it under the passphrase and write the envelope.

        Args:
            passphrase: Master passphrase

        Returns:
            The new plaintext DEK

        Raises:
            FileExistsError: If an envelope already exists at the path
        """
        dek = SecureKey.generate()
        salt = generate_random_bytes(SALT_SIZE)
        iv = generate_random_bytes(IV_SIZE)

        kek = derive_kek(passphrase, salt)
        wrapped = AesCbcCipher.encrypt(kek, dek.as_bytes(), iv)

        EnvelopeFile(salt=salt, iv=iv, wrapped_dek=wrapped.ciphertext).write_new(
            self._path
        )
        return dek

    def unlock(self, passphrase: str) -> SecureKey:
        """
        Read the envelope and unwrap the DEK.

        Args:
            passphrase: Master passphrase

        Returns:
            The plaintext DEK

        Raises:
            CorruptEnvelopeError: If the file is shorter than its header
            WrongPassphraseError: If the DEK cannot be unwrapped
        """
        envelope = EnvelopeFile.read(self._path)
        kek = derive_kek(passphrase, envelope.salt)

        try:
            dek_bytes = AesCbcCipher.decrypt(
                kek, EncryptedBlob(iv=envelope.iv, ciphertext=envelope.wrapped_dek)
            )
        except RecordCipherError:
            raise WrongPassphraseError(_WRONG_PASSPHRASE_MESSAGE) from None

        # A wrong KEK passes PKCS7 validation by chance about once in 256
        # tries; only a full 32-byte key with a whole padding block is valid.
        if len(dek_bytes) != AES_256_KEY_SIZE:
            raise WrongPassphraseError(_WRONG_PASSPHRASE_MESSAGE)

        return SecureKey(dek_bytes)

    def obtain(self, passphrase: str) -> SecureKey:
        """
        Unlock the envelope, creating it first if it does not exist.

        Raises:
            CorruptEnvelopeError: If the existing file is too short
            WrongPassphraseError: If the DEK cannot be unwrapped
        """
        if not self.exists:
            logger.info("No key file found at: %s", self._path.resolve())
            try:
                dek = self.create(passphrase)
            except FileExistsError:
                # Created concurrently; never overwrite it.
                logger.info("Key file appeared at %s, unlocking it", self._path)
            else:
                logger.warning(
                    "New key file created at: %s. Records encrypted under any "
                    "previous key file cannot be decrypted.",
                    self._path.resolve(),
                )
                return dek

        logger.info("Key file found at: %s", self._path.resolve())
        return self.unlock(passphrase)

    def open(self, passphrase: str) -> EnvelopeResult:
        """
        Like ``obtain`` but returns ``Ok`` or ``Err`` instead of raising.

        Args:
            passphrase: Master passphrase

        Returns:
            Ok(dek) on success, Err(kind, message) otherwise
        """
        try:
            return Ok(self.obtain(passphrase))
        except CorruptEnvelopeError as e:
            return Err(EnvelopeErrorKind.CORRUPT, str(e))
        except WrongPassphraseError as e:
            return Err(EnvelopeErrorKind.WRONG_PASSPHRASE, str(e))

    def __repr__(self) -> str:
        return f"KeyEnvelope(path={str(self._path)!r})"


def obtain_dek(passphrase: str, envelope_path: Path | str) -> SecureKey:
    """
    Obtain the DEK for ``envelope_path``, creating the envelope if absent.

    Args:
        passphrase: Master passphrase
        envelope_path: Location of the envelope file

    Returns:
        The plaintext DEK

    Raises:
        KeyUnavailableError: CorruptEnvelopeError or WrongPassphraseError
    """
    return KeyEnvelope(envelope_path).obtain(passphrase)

