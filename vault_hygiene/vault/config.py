"""
Vault Configuration — Validated settings for a local vault.

Reads optional overrides from environment variables:
    VAULT_STORAGE_PATH = <path to the vault document>   (unset: in-memory)
    VAULT_KDF_ITERATIONS = <integer, at least 100000>
    VAULT_AUDIT = <true|false>
    VAULT_TIMELINE = <true|false>
    VAULT_LOG_LEVEL = <DEBUG|INFO|WARNING|ERROR|CRITICAL>

Security Note:
    The salt and the master password are never configuration values.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..conf import LOGGER_NAME
from .crypto import KDF_ITERATIONS

logger = logging.getLogger(f"{LOGGER_NAME}.vault")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    storage_path: Optional[Path] = None
    kdf_iterations: int = Field(default=KDF_ITERATIONS, ge=KDF_ITERATIONS)
    audit_enabled: bool = True
    timeline_enabled: bool = True
    log_level: str = Field(default="INFO")

    @field_validator("storage_path")
    @classmethod
    def expand_storage_path(cls, v: Optional[Path]) -> Optional[Path]:
        return v.expanduser() if v is not None else None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        v = v.upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {v}")
        return v

    def configure_logging(self) -> None:
        """Apply ``log_level`` to the package logger.

        SessionVault calls this on construction.
        """
        logging.getLogger(LOGGER_NAME).setLevel(self.log_level)

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        storage_path = os.environ.get("VAULT_STORAGE_PATH") or None
        iterations = int(os.environ.get("VAULT_KDF_ITERATIONS", KDF_ITERATIONS))
        config = cls(
            storage_path=storage_path,
            kdf_iterations=iterations,
            audit_enabled=_env_flag("VAULT_AUDIT", True),
            timeline_enabled=_env_flag("VAULT_TIMELINE", True),
            log_level=os.environ.get("VAULT_LOG_LEVEL", "INFO"),
        )
        logger.debug(
            "Vault config loaded: storage=%s iterations=%d",
            "file" if config.storage_path else "memory",
            config.kdf_iterations,
        )
        return config
