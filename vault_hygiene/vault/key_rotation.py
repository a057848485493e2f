"""
Vault Key Rotation — Re-encryption of every record under a new master password.

A new salt is generated and a new key derived; each record is decrypted with
the current key and re-encrypted under a fresh IV. All records are decrypted
before anything is staged, so an undecryptable record aborts the rotation
with storage untouched. The re-encrypted records, the new verifier and the
new salt are committed as one batch: a failed write leaves every record
readable under the old password.

Security Note:
    Plaintext exists in memory only during re-encryption of each record.
    Never log plaintext or ciphertext values.
"""
import asyncio
import logging
from typing import Any, Optional

from ..conf import META_COLLECTION, SALT_KEY, VAULT_COLLECTION, VERIFIER_KEY
from ..exceptions import VaultNotInitializedError
from ..models import EncryptedRecord, Envelope
from ..storage import Storage, Write
from .crypto import (
    KDF_ITERATIONS,
    MasterKey,
    check_verifier,
    create_verifier,
    decrypt,
    derive_key,
    encrypt,
    generate_salt,
)

logger = logging.getLogger("vault_hygiene.vault")


async def rotate_master_password(
    storage: Storage,
    old_password: str,
    new_password: str,
    iterations: int = KDF_ITERATIONS,
) -> tuple[Optional[MasterKey], dict]:
    """Re-encrypt the whole vault from the old to the new master password.

    Args:
        storage: Vault storage.
        old_password: Current master password.
        new_password: Replacement master password.
        iterations: PBKDF2 iteration count for both derivations.

    Returns:
        Tuple of (new key, stats). The key is None and nothing is written
        when ``old_password`` does not open the verifier. Stats has keys
        total and rotated.

    Raises:
        VaultNotInitializedError: If the vault has no salt or verifier.
        DecryptionError: If a record cannot be decrypted with the old key.
        StorageError: If the batch cannot be written; storage is unchanged.
    """
    salt = await storage.get(META_COLLECTION, SALT_KEY)
    raw_verifier = await storage.get(META_COLLECTION, VERIFIER_KEY)
    if not salt or not raw_verifier:
        raise VaultNotInitializedError("Vault has no salt or verifier")

    old_key = await asyncio.to_thread(derive_key, old_password, salt, iterations)
    if not check_verifier(old_key, Envelope.model_validate(raw_verifier)):
        logger.info("Key rotation rejected: wrong master password")
        return None, {"total": 0, "rotated": 0}

    rows = await storage.get_all(VAULT_COLLECTION)
    stats = {"total": len(rows), "rotated": 0}

    records = [EncryptedRecord.model_validate(row) for row in rows]
    plaintexts: list[Any] = [
        decrypt(old_key, record.iv, record.ciphertext) for record in records
    ]

    new_salt = generate_salt()
    new_key = await asyncio.to_thread(derive_key, new_password, new_salt, iterations)

    logger.info("Starting key rotation of %d record(s)", len(records))
    writes: list[Write] = []
    for record, plaintext in zip(records, plaintexts):
        envelope = encrypt(new_key, plaintext)
        rotated = record.model_copy(
            update={"iv": envelope.iv, "ciphertext": envelope.ciphertext}
        )
        writes.append((VAULT_COLLECTION, rotated.model_dump(), None))
    writes.append(
        (META_COLLECTION, create_verifier(new_key).model_dump(), VERIFIER_KEY)
    )
    writes.append((META_COLLECTION, new_salt, SALT_KEY))

    try:
        await storage.put_many(writes)
    except Exception:
        logger.error("Key rotation aborted; vault left under the old password")
        raise
    stats["rotated"] = len(records)

    logger.info("Key rotation complete: %s", stats)
    return new_key, stats
