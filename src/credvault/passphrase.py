"""
Master passphrase acquisition.

Uses a masked prompt on a terminal and falls back to reading one line from
stdin when input is piped.
"""

from __future__ import annotations

import getpass
import sys
from typing import Callable, Optional, TextIO

from .errors import ConfigError

PassphraseSource = Callable[[], str]

DEFAULT_PROMPT = "Enter master password: "


def acquire_passphrase(
    prompt: str = DEFAULT_PROMPT,
    stream: Optional[TextIO] = None,
) -> str:
    """
    Ask the operator for the master passphrase.

    Args:
        prompt: Text shown before input
        stream: Input stream; defaults to ``sys.stdin``

    Returns:
        The passphrase without its trailing newline

    Raises:
        ConfigError: If the stream is exhausted before any input
    """
    stream = sys.stdin if stream is None else stream

    if stream.isatty():
        return getpass.getpass(prompt, stream=sys.stderr)

    sys.stderr.write(prompt)
    sys.stderr.flush()
    line = stream.readline()
    if not line:
        raise ConfigError("No master password provided on standard input")
    return line.rstrip("\r\n")
