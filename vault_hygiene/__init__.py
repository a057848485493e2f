"""Vault Hygiene.

Local password vault with authenticated encryption and continuous
password hygiene scoring.
"""
from .version import (
    __title__, __description__, __version__, __author__, __author_email__
)
from .exceptions import (
    VaultError,
    DecryptionError,
    VaultLockedError,
    VaultNotInitializedError,
    StorageError,
)
from .models import Credential, VaultItem
from .session import VaultSession
from .storage import Storage, MemoryStorage, FileStorage
from .vault import SessionVault, VaultConfig

__all__ = (
    "SessionVault",
    "VaultConfig",
    "VaultSession",
    "Credential",
    "VaultItem",
    "Storage",
    "MemoryStorage",
    "FileStorage",
    "VaultError",
    "DecryptionError",
    "VaultLockedError",
    "VaultNotInitializedError",
    "StorageError",
)
