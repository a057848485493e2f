"""
Vault Crypto Core — Key derivation, encryption/decryption, and serialization.

Implements the envelope used for every persisted vault record:
- Key derivation: PBKDF2-HMAC-SHA256(master password, 16-byte salt, 100k) → AES-256 key
- Record layer: AES-256-GCM(fresh 96-bit IV) over orjson-encoded plaintext → {iv, ciphertext}

Security Note:
    Never log plaintext, key material, IVs or ciphertext values.
    IVs are random 96-bit; collision probability negligible under normal usage.
"""
import os
import base64
import logging
from typing import Any

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import DecryptionError
from ..models import Envelope

logger = logging.getLogger("vault_hygiene.vault")

SALT_SIZE = 16  # 128-bit salt, one per vault
NONCE_SIZE = 12  # 96-bit IV, one per encryption
KEY_LENGTH = 32  # AES-256
TAG_SIZE = 16
KDF_ITERATIONS = 100_000

VERIFIER_PAYLOAD = {"check": "VALID"}

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------

def generate_salt() -> bytes:
    """Return 16 bytes from the OS CSPRNG."""
    return os.urandom(SALT_SIZE)


def generate_iv() -> bytes:
    """Return 12 bytes from the OS CSPRNG."""
    return os.urandom(NONCE_SIZE)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

class MasterKey:
    """Opaque AES-256-GCM key handle.

    The raw key bytes are handed straight to the cipher and are not kept
    on the handle; only the session holds a reference to it.
    """

    __slots__ = ("_cipher",)

    def __init__(self, raw: bytes) -> None:
        if len(raw) != KEY_LENGTH:
            raise ValueError(
                f"Master key must be {KEY_LENGTH} bytes, got {len(raw)}"
            )
        self._cipher = AESGCM(raw)

    def __repr__(self) -> str:
        return "<MasterKey AES-256-GCM>"

    def _seal(self, nonce: bytes, data: bytes) -> bytes:
        return self._cipher.encrypt(nonce, data, None)

    def _open(self, nonce: bytes, data: bytes) -> bytes:
        return self._cipher.decrypt(nonce, data, None)


def derive_key(
    password: str, salt: bytes, iterations: int = KDF_ITERATIONS
) -> MasterKey:
    """Derive the vault key from the master password using PBKDF2-HMAC-SHA256.

    Args:
        password: Master password (UTF-8 encoded before derivation).
        salt: Per-vault salt from the meta collection.
        iterations: PBKDF2 iteration count.

    Returns:
        MasterKey handle for AES-256-GCM.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return MasterKey(kdf.derive(password.encode("utf-8")))


# ---------------------------------------------------------------------------
# Record-layer encryption
# ---------------------------------------------------------------------------

def encrypt(key: MasterKey, value: Any) -> Envelope:
    """Serialize and encrypt a value under a fresh IV.

    Args:
        key: Session master key.
        value: JSON-serializable value (bytes are wrapped, see serialize_value).

    Returns:
        Envelope with the IV and the ciphertext (GCM tag appended).
    """
    iv = generate_iv()
    ct = key._seal(iv, serialize_value(value))
    return Envelope(iv=iv, ciphertext=ct)


def decrypt(key: MasterKey, iv: bytes, ciphertext: bytes) -> Any:
    """Decrypt and deserialize an envelope.

    Args:
        key: Session master key.
        iv: IV stored with the record.
        ciphertext: Ciphertext with GCM tag.

    Returns:
        The original value.

    Raises:
        DecryptionError: Wrong key, tampered or truncated data, or a
            payload that is not valid serialized data.
    """
    if len(iv) != NONCE_SIZE or len(ciphertext) < TAG_SIZE:
        raise DecryptionError("Invalid key or corrupted data")
    try:
        plaintext = key._open(iv, ciphertext)
    except InvalidTag as err:
        raise DecryptionError("Invalid key or corrupted data") from err
    try:
        return deserialize_value(plaintext)
    except orjson.JSONDecodeError as err:
        raise DecryptionError("Invalid key or corrupted data") from err


def open_envelope(key: MasterKey, envelope: Envelope) -> Any:
    return decrypt(key, envelope.iv, envelope.ciphertext)


# ---------------------------------------------------------------------------
# Master password verifier
# ---------------------------------------------------------------------------

def create_verifier(key: MasterKey) -> Envelope:
    """Encrypt the known constant used to check a master password later."""
    return encrypt(key, VERIFIER_PAYLOAD)


def check_verifier(key: MasterKey, verifier: Envelope) -> bool:
    """True iff ``verifier`` decrypts under ``key`` to the known constant."""
    try:
        payload = open_envelope(key, verifier)
    except DecryptionError:
        return False
    return payload == VERIFIER_PAYLOAD


# ---------------------------------------------------------------------------
# Value serialization
# ---------------------------------------------------------------------------

def serialize_value(value: Any) -> bytes:
    """Serialize a Python value to canonical bytes for encryption.

    Supports: str, int, float, dict, list, bytes, bool, None.
    bytes values are wrapped as {"__vault_bytes_b64__": "<base64>"} for safe
    JSON round-trip. Object keys are sorted so equal values encode equally.

    Args:
        value: Python value to serialize.

    Returns:
        orjson-encoded bytes.
    """
    if isinstance(value, bytes):
        wrapped = {_BYTES_WRAPPER_KEY: base64.b64encode(value).decode("ascii")}
        return orjson.dumps(wrapped)
    return orjson.dumps(value, option=orjson.OPT_SORT_KEYS)


def deserialize_value(data: bytes) -> Any:
    """Deserialize bytes back to a Python value.

    Args:
        data: orjson-encoded bytes from serialize_value.

    Returns:
        Original Python value.
    """
    parsed = orjson.loads(data)
    if isinstance(parsed, dict) and _BYTES_WRAPPER_KEY in parsed and len(parsed) == 1:
        return base64.b64decode(parsed[_BYTES_WRAPPER_KEY])
    return parsed
