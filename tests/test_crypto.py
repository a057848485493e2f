"""
Tests for the crypto envelope: key derivation, AES-GCM records, verifier.
"""
import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from vault_hygiene.exceptions import DecryptionError
from vault_hygiene.models import Envelope
from vault_hygiene.vault.crypto import (
    KDF_ITERATIONS,
    NONCE_SIZE,
    SALT_SIZE,
    MasterKey,
    check_verifier,
    create_verifier,
    decrypt,
    derive_key,
    deserialize_value,
    encrypt,
    generate_iv,
    generate_salt,
    serialize_value,
)


@pytest.fixture(scope="module")
def salt():
    return generate_salt()


@pytest.fixture(scope="module")
def key(salt):
    return derive_key("correct horse battery staple", salt)


class TestRandomness:
    """Salt and IV generation."""

    def test_salt_size(self):
        assert len(generate_salt()) == SALT_SIZE == 16

    def test_iv_size(self):
        assert len(generate_iv()) == NONCE_SIZE == 12

    def test_values_differ(self):
        assert generate_salt() != generate_salt()
        assert generate_iv() != generate_iv()


class TestKeyDerivation:
    """PBKDF2-SHA256 derivation."""

    def test_default_iterations(self):
        assert KDF_ITERATIONS == 100_000

    def test_deterministic(self, key, salt):
        """Same password and salt open each other's envelopes."""
        again = derive_key("correct horse battery staple", salt)
        envelope = encrypt(key, {"a": 1})
        assert decrypt(again, envelope.iv, envelope.ciphertext) == {"a": 1}

    def test_different_salt_gives_different_key(self, key):
        other = derive_key("correct horse battery staple", generate_salt())
        envelope = encrypt(key, "secret")
        with pytest.raises(DecryptionError):
            decrypt(other, envelope.iv, envelope.ciphertext)

    def test_repr_hides_material(self, key):
        assert repr(key) == "<MasterKey AES-256-GCM>"

    def test_rejects_short_raw_key(self):
        with pytest.raises(ValueError):
            MasterKey(b"short")


class TestEncryptDecrypt:
    """Record-layer round trips and failures."""

    @pytest.mark.parametrize("value", [
        {"title": "Email", "password": "Tr0ub4dor&3"},
        ["a", 1, None, True],
        "plain string",
        42,
        None,
        b"\x00\x01raw",
    ])
    def test_round_trip(self, key, value):
        envelope = encrypt(key, value)
        assert decrypt(key, envelope.iv, envelope.ciphertext) == value

    def test_fresh_iv_per_call(self, key):
        first = encrypt(key, {"a": 1})
        second = encrypt(key, {"a": 1})
        assert first.iv != second.iv
        assert first.ciphertext != second.ciphertext

    def test_ciphertext_hides_plaintext(self, key):
        envelope = encrypt(key, {"password": "Tr0ub4dor&3"})
        assert b"Tr0ub4dor" not in envelope.ciphertext

    def test_wrong_key_fails(self, key, salt):
        wrong = derive_key("not the password", salt)
        envelope = encrypt(key, {"a": 1})
        with pytest.raises(DecryptionError):
            decrypt(wrong, envelope.iv, envelope.ciphertext)

    def test_mutated_ciphertext_fails(self, key):
        envelope = encrypt(key, {"a": 1})
        tampered = bytearray(envelope.ciphertext)
        tampered[0] ^= 0x01
        with pytest.raises(DecryptionError):
            decrypt(key, envelope.iv, bytes(tampered))

    def test_mutated_iv_fails(self, key):
        envelope = encrypt(key, {"a": 1})
        iv = bytes([envelope.iv[0] ^ 0x01]) + envelope.iv[1:]
        with pytest.raises(DecryptionError):
            decrypt(key, iv, envelope.ciphertext)

    def test_truncated_input_fails(self, key):
        envelope = encrypt(key, {"a": 1})
        with pytest.raises(DecryptionError):
            decrypt(key, envelope.iv, envelope.ciphertext[:4])
        with pytest.raises(DecryptionError):
            decrypt(key, envelope.iv[:8], envelope.ciphertext)

    def test_authentic_but_undecodable_payload_fails(self):
        raw = bytes(range(32))
        iv = generate_iv()
        ciphertext = AESGCM(raw).encrypt(iv, b"\xff\xfe not json", None)
        with pytest.raises(DecryptionError):
            decrypt(MasterKey(raw), iv, ciphertext)


class TestVerifier:
    """Master password verification."""

    def test_verifier_opens_with_same_key(self, key):
        verifier = create_verifier(key)
        assert check_verifier(key, verifier) is True

    def test_verifier_rejects_wrong_key(self, key, salt):
        verifier = create_verifier(key)
        assert check_verifier(derive_key("nope", salt), verifier) is False

    def test_verifier_rejects_other_payload(self, key):
        envelope = encrypt(key, {"check": "INVALID"})
        assert check_verifier(key, Envelope(iv=envelope.iv, ciphertext=envelope.ciphertext)) is False


class TestSerialization:
    """Canonical plaintext encoding."""

    def test_sorted_keys(self):
        assert serialize_value({"b": 1, "a": 2}) == serialize_value({"a": 2, "b": 1})

    def test_bytes_wrapped(self):
        assert deserialize_value(serialize_value(b"abc")) == b"abc"
