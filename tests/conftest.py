"""
Pytest configuration and fixtures for credvault tests.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Tuple

import pytest

from credvault import RecordCipher, SecureKey, obtain_dek

_ENV_VARS = ("CREDVAULT_KEY_FILE", "CREDVAULT_LOG_LEVEL")


@pytest.fixture(scope="session")
def master_passphrase() -> str:
    """Passphrase the shared test envelope is sealed with."""
    return "correct horse"


@pytest.fixture
def dek() -> SecureKey:
    """Create a random data encryption key."""
    return SecureKey.generate()


@pytest.fixture
def cipher(dek: SecureKey) -> RecordCipher:
    """Create a record cipher bound to the random DEK."""
    return RecordCipher(dek)


@pytest.fixture
def key_path(tmp_path: Path) -> Path:
    """Path for an envelope file that does not exist yet."""
    return tmp_path / "keys" / "secret.key"


@pytest.fixture(scope="module")
def sealed_envelope(
    tmp_path_factory: pytest.TempPathFactory, master_passphrase: str
) -> Tuple[Path, SecureKey]:
    """
    Create one envelope per test module.

    Key derivation is deliberately slow, so modules share a pristine copy
    and tests work on their own duplicate (see ``envelope_copy``).
    """
    path = tmp_path_factory.mktemp("sealed") / "secret.key"
    created = obtain_dek(master_passphrase, path)
    return path, created


@pytest.fixture
def envelope_copy(sealed_envelope: Tuple[Path, SecureKey], tmp_path: Path) -> Path:
    """Private copy of the sealed envelope file."""
    source, _ = sealed_envelope
    target = tmp_path / "copy.key"
    shutil.copyfile(source, target)
    return target


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    """Remove credvault variables and run from an empty directory."""
    for name in _ENV_VARS:
        # setenv first so monkeypatch restores the variable's absence
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch
