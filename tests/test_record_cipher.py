"""
Tests for per-record encryption with the data encryption key.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from credvault import (
    IV_SIZE,
    AesCbcCipher,
    CryptoError,
    DecryptionFailedError,
    MalformedBlobError,
    RecordCipher,
    RecordCipherError,
    SecureKey,
    decrypt,
    encrypt,
)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "plaintext",
        [
            "",
            "hunter2",
            "exactly sixteen!",
            "пароль",
            "密码 🔑 contraseña",
            "x" * 1000,
        ],
    )
    def test_roundtrip(self, cipher, plaintext):
        assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext

    def test_blob_layout(self, cipher):
        blob = cipher.encrypt("hunter2")
        # iv + one padded block
        assert len(blob) == IV_SIZE + 16
        assert (len(blob) - IV_SIZE) % 16 == 0

    def test_full_block_gets_extra_padding_block(self, cipher):
        assert len(cipher.encrypt("exactly sixteen!")) == IV_SIZE + 32

    def test_module_functions(self, dek):
        assert decrypt(dek, encrypt(dek, "hunter2")) == "hunter2"

    def test_base64_text(self, cipher):
        encoded = cipher.encrypt_text("hunter2")
        assert isinstance(encoded, str)
        assert cipher.decrypt_text(encoded) == "hunter2"

    def test_other_key_cannot_read(self, cipher):
        blob = cipher.encrypt("hunter2")
        other = RecordCipher(SecureKey.generate())
        try:
            result = other.decrypt(blob)
        except RecordCipherError:
            return
        assert result != "hunter2"


class TestNonDeterminism:
    def test_same_plaintext_different_blobs(self, cipher):
        blobs = {cipher.encrypt("hunter2") for _ in range(100)}
        assert len(blobs) == 100

    def test_fresh_iv_each_call(self, cipher):
        ivs = {cipher.encrypt("hunter2")[:IV_SIZE] for _ in range(100)}
        assert len(ivs) == 100


class TestFailures:
    @pytest.mark.parametrize("size", [0, 1, IV_SIZE - 1])
    def test_short_blob_is_malformed(self, cipher, size):
        with pytest.raises(MalformedBlobError):
            cipher.decrypt(b"\x00" * size)

    def test_iv_only_blob_fails(self, cipher):
        with pytest.raises(DecryptionFailedError):
            cipher.decrypt(b"\x00" * IV_SIZE)

    def test_partial_block_fails(self, cipher):
        blob = cipher.encrypt("hunter2")
        with pytest.raises(DecryptionFailedError):
            cipher.decrypt(blob[:-1])

    def test_tampered_padding_fails(self, cipher):
        blob = bytearray(cipher.encrypt("hunter2"))
        # Last IV byte maps onto the final padding byte of the only block
        blob[IV_SIZE - 1] ^= 0x01
        with pytest.raises(DecryptionFailedError):
            cipher.decrypt(bytes(blob))

    def test_invalid_utf8_fails(self, dek, cipher):
        blob = AesCbcCipher.encrypt(dek, b"\xff\xfe\xfd").to_blob()
        with pytest.raises(DecryptionFailedError):
            cipher.decrypt(blob)

    def test_invalid_base64_is_malformed(self, cipher):
        with pytest.raises(MalformedBlobError):
            cipher.decrypt_text("abc")

    def test_failure_does_not_poison_cipher(self, cipher):
        with pytest.raises(MalformedBlobError):
            cipher.decrypt(b"short")
        assert cipher.decrypt(cipher.encrypt("still fine")) == "still fine"


class TestKeyHandle:
    def test_rejects_short_key(self):
        with pytest.raises(CryptoError):
            RecordCipher(SecureKey(b"k" * 16))

    def test_repr_is_redacted(self, cipher):
        assert repr(cipher) == "RecordCipher(dek=[REDACTED])"


def test_concurrent_use(cipher):
    def work(n: int) -> bytes:
        plaintext = f"secret-{n}"
        blob = cipher.encrypt(plaintext)
        assert cipher.decrypt(blob) == plaintext
        return blob

    with ThreadPoolExecutor(max_workers=8) as pool:
        blobs = list(pool.map(work, range(400)))

    assert len({blob[:IV_SIZE] for blob in blobs}) == len(blobs)
