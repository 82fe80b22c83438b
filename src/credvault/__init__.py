"""
Credential Vault Key Management

Envelope encryption for a small set of stored credentials protected by one
master passphrase.

Overview
--------
- **Key Encryption Key (KEK)** is derived from the master passphrase and a
  random salt with PBKDF2-HMAC-SHA256 (600,000 iterations)
- **Data Encryption Key (DEK)** is a random 256-bit key wrapped by the KEK
  and stored in a small binary envelope file
- **Records** are encrypted with the DEK using AES-256-CBC and a fresh IV
  per value

Quick Start
-----------
```python
from credvault import RecordCipher, obtain_dek

dek = obtain_dek("correct horse", "secret.key")
cipher = RecordCipher(dek)

blob = cipher.encrypt("hunter2")
assert cipher.decrypt(blob) == "hunter2"
```

Losing the envelope file means losing every record encrypted under it.

Modules
-------
- `crypto`: AES-256-CBC and PBKDF2 primitives
- `envelope_file`: Binary envelope file layout
- `key_envelope`: Create/unlock the envelope and obtain the DEK
- `record_cipher`: Per-record encryption with the DEK
- `config`: Environment settings
- `passphrase`: Master passphrase prompt
- `bootstrap`: Startup unlock and console entry point
- `errors`: Error types and exception classes
"""

__version__ = "0.1.0"

# ============================================================================
# Crypto Exports
# ============================================================================

from .crypto import (
    AES_256_KEY_SIZE,
    IV_SIZE,
    PBKDF2_ITERATIONS,
    SALT_SIZE,
    AesCbcCipher,
    EncryptedBlob,
    SecureKey,
    derive_kek,
    generate_random_bytes,
)

# ============================================================================
# Error Exports
# ============================================================================

from .errors import (
    ConfigError,
    CorruptEnvelopeError,
    CryptoError,
    DecryptionFailedError,
    KeyUnavailableError,
    MalformedBlobError,
    RecordCipherError,
    VaultError,
    WrongPassphraseError,
)

# ============================================================================
# Key Envelope Exports
# ============================================================================

from .envelope_file import HEADER_SIZE, EnvelopeFile

from .key_envelope import (
    EnvelopeErrorKind,
    EnvelopeResult,
    Err,
    KeyEnvelope,
    Ok,
    obtain_dek,
)

# ============================================================================
# Record Cipher Exports
# ============================================================================

from .record_cipher import EncryptionService, RecordCipher, decrypt, encrypt

# ============================================================================
# Bootstrap Exports
# ============================================================================

from .config import VaultSettings
from .passphrase import PassphraseSource, acquire_passphrase
from .bootstrap import unlock

# ============================================================================
# Public API
# ============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "AES_256_KEY_SIZE",
    "IV_SIZE",
    "SALT_SIZE",
    "PBKDF2_ITERATIONS",
    "AesCbcCipher",
    "EncryptedBlob",
    "SecureKey",
    "derive_kek",
    "generate_random_bytes",
    # Errors
    "VaultError",
    "ConfigError",
    "CryptoError",
    "KeyUnavailableError",
    "CorruptEnvelopeError",
    "WrongPassphraseError",
    "RecordCipherError",
    "MalformedBlobError",
    "DecryptionFailedError",
    # Key envelope
    "HEADER_SIZE",
    "EnvelopeFile",
    "KeyEnvelope",
    "EnvelopeErrorKind",
    "EnvelopeResult",
    "Ok",
    "Err",
    "obtain_dek",
    # Record cipher
    "EncryptionService",
    "RecordCipher",
    "encrypt",
    "decrypt",
    # Bootstrap
    "VaultSettings",
    "PassphraseSource",
    "acquire_passphrase",
    "unlock",
]
