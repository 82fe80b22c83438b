"""
Binary layout of the key envelope file.

Layout (version 1, no version byte)::

    salt (16 bytes) || iv (16 bytes) || wrapped_dek (remainder)

The file is written once and never modified in place.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .crypto import IV_SIZE, SALT_SIZE
from .errors import CorruptEnvelopeError

HEADER_SIZE: int = SALT_SIZE + IV_SIZE  # 32 bytes

_O_BINARY = getattr(os, "O_BINARY", 0)


@dataclass(frozen=True)
class EnvelopeFile:
    """Parsed contents of an envelope file."""

    salt: bytes
    iv: bytes
    wrapped_dek: bytes

    def to_bytes(self) -> bytes:
        """Serialize to ``salt || iv || wrapped_dek``."""
        return self.salt + self.iv + self.wrapped_dek

    @classmethod
    def from_bytes(cls, data: bytes) -> EnvelopeFile:
        """
        Split raw file contents into salt, IV and wrapped DEK.

        Raises:
            CorruptEnvelopeError: If data is shorter than the header
        """
        if len(data) < HEADER_SIZE:
            raise CorruptEnvelopeError(
                f"Key file is too short or corrupted: expected at least "
                f"{HEADER_SIZE} bytes, got {len(data)}"
            )
        return cls(
            salt=data[:SALT_SIZE],
            iv=data[SALT_SIZE:HEADER_SIZE],
            wrapped_dek=data[HEADER_SIZE:],
        )

    @classmethod
    def read(cls, path: Path) -> EnvelopeFile:
        """Read and parse the envelope at ``path``."""
        return cls.from_bytes(path.read_bytes())

    def write_new(self, path: Path) -> None:
        """
        Write the envelope to ``path`` without ever replacing an existing file.

        The data is written to a temporary file in the same directory,
        flushed to disk, and hard-linked to ``path``. The link fails if
        ``path`` already exists, so checking and creating is a single step.
        Filesystems without hard links get an exclusive create instead.

        Raises:
            FileExistsError: If an envelope already exists at ``path``
        """
        directory = path.parent
        directory.mkdir(parents=True, exist_ok=True)
        data = self.to_bytes()

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            try:
                os.link(tmp_name, path)
            except FileExistsError:
                raise
            except OSError:
                # FAT and some network mounts refuse hard links
                _write_exclusive(path, data)
        finally:
            os.unlink(tmp_name)

        _fsync_directory(directory)


def _write_exclusive(path: Path, data: bytes) -> None:
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY | _O_BINARY, 0o600)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
    except BaseException:
        os.unlink(path)
        raise


def _fsync_directory(directory: Path) -> None:
    """Persist the new directory entry. No-op where directories can't be opened."""
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
