"""Shared fixtures for the vault_hygiene test-suite."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from vault_hygiene.models import VaultItem
from vault_hygiene.storage import MemoryStorage
from vault_hygiene.vault import SessionVault

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

# 16 characters, all four classes, no dictionary words or sequences: 104 bits
STRONG = ("x7#Kq!9vLm@2Rz$w", "P@9vT!e4Wq#Lm2Zs", "N8$rYu!3Kp@Qw7Xe")


def build_item(password, title="Item", days_old=0, id=None, now=NOW):
    changed = now - timedelta(days=days_old)
    return VaultItem(
        id=id or uuid.uuid4().hex,
        title=title,
        username="user@example.com",
        password=password,
        site="https://example.com",
        created_at=changed,
        updated_at=changed,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_item():
    """Factory for plaintext vault items aged relative to NOW."""
    return build_item


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def vault(storage):
    return SessionVault(storage=storage)


@pytest.fixture
def strong():
    """Three distinct strong passwords."""
    return STRONG
