"""
Startup unlock of the data encryption key.

Usage:
    credvault-unlock [--key-file PATH]

Or run directly:
    python -m credvault.bootstrap

The passphrase is requested once and the envelope opened once. If the
envelope cannot be unlocked the process exits without serving anything.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import VaultSettings
from .errors import ConfigError, KeyUnavailableError
from .key_envelope import obtain_dek
from .passphrase import PassphraseSource, acquire_passphrase
from .record_cipher import RecordCipher

logger = logging.getLogger("credvault")


def unlock(
    settings: VaultSettings,
    acquire: PassphraseSource = acquire_passphrase,
) -> RecordCipher:
    """
    Acquire the passphrase and unlock the envelope named in ``settings``.

    Args:
        settings: Bootstrap settings with the envelope path
        acquire: Passphrase source, called exactly once

    Returns:
        RecordCipher holding the DEK for the rest of the process lifetime

    Raises:
        KeyUnavailableError: If the envelope is corrupt or the passphrase wrong
    """
    passphrase = acquire()
    dek = obtain_dek(passphrase, settings.key_file)
    return RecordCipher(dek)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="credvault-unlock",
        description="Unlock (or create on first run) the credential key file.",
    )
    parser.add_argument(
        "--key-file",
        type=Path,
        default=None,
        help="envelope file path (overrides CREDVAULT_KEY_FILE)",
    )
    return parser.parse_args(argv)


def main(
    argv: Optional[Sequence[str]] = None,
    acquire: PassphraseSource = acquire_passphrase,
) -> int:
    """Console entry point. Returns the process exit status."""
    args = _parse_args(argv)

    try:
        settings = VaultSettings.from_env()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.key_file is not None:
        settings = VaultSettings(key_file=args.key_file, log_level=settings.log_level)

    logging.basicConfig(
        level=settings.log_level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        unlock(settings, acquire)
    except KeyUnavailableError as e:
        logger.error("Failed to load secret key: %s", e)
        print(
            "ERROR: The master password may be incorrect or the key file "
            "is damaged. Exiting.",
            file=sys.stderr,
        )
        return 1
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print("Secret key has been loaded successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
