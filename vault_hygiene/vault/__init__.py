"""Session Vault — Encrypted password storage bound to an unlocked session.

Security Note (Threat Model):
    Credentials are decrypted in process memory while the session is
    unlocked. A memory dump of the process, or a compromised host, can
    expose them. This is an accepted limitation; locking the session
    drops the key and the decrypted items.
"""

from .crypto import MasterKey, derive_key, encrypt, decrypt, generate_salt, generate_iv
from .config import VaultConfig
from .key_rotation import rotate_master_password
from .session_vault import SessionVault, VaultMetrics, analyze

__all__ = [
    "MasterKey",
    "derive_key",
    "encrypt",
    "decrypt",
    "generate_salt",
    "generate_iv",
    "VaultConfig",
    "rotate_master_password",
    "SessionVault",
    "VaultMetrics",
    "analyze",
]
