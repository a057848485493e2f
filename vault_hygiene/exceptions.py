"""Vault Hygiene exceptions."""


class VaultError(Exception):
    """Base class for all vault errors."""


class DecryptionError(VaultError):
    """Authentication tag mismatch, truncated envelope or undecodable payload.

    Wrong keys and corrupted ciphertexts raise the same error.
    """


class VaultLockedError(VaultError):
    """An item operation was attempted without an unlocked session."""


class VaultNotInitializedError(VaultError):
    """The vault has no salt/verifier, or is initialised twice."""


class StorageError(VaultError):
    """The storage backend failed to read or write a collection."""
