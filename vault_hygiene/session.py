import uuid
from typing import TYPE_CHECKING, Optional
from datetime import datetime, timezone

from .exceptions import VaultLockedError
from .models import VaultItem

if TYPE_CHECKING:
    from .vault.crypto import MasterKey


class VaultSession:
    """Unlocked vault session.

    Holds the MasterKey and the decrypted item snapshot. The presence of
    the key is the only definition of "unlocked"; ``invalidate`` drops the
    key and every plaintext item at once.
    """

    __slots__ = ('_id_', '_key', '_items', '__created__')

    def __init__(self, key: "MasterKey", id: Optional[str] = None) -> None:
        self._id_ = id or uuid.uuid4().hex
        self._key: Optional["MasterKey"] = key
        self._items: list[VaultItem] = []
        self.__created__ = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        state = 'unlocked' if self.is_unlocked else 'locked'
        return (
            f'<Vault-Session [{state}, created:{self.created}] '
            f'items={len(self._items)}>'
        )

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._id_

    @property
    def logon_time(self) -> datetime:
        return self.__created__

    @property
    def created(self) -> int:
        return int(self.__created__.timestamp())

    @property
    def is_unlocked(self) -> bool:
        return self._key is not None

    @property
    def key(self) -> "MasterKey":
        if self._key is None:
            raise VaultLockedError('Vault session is locked')
        return self._key

    @property
    def items(self) -> list[VaultItem]:
        if self._key is None:
            raise VaultLockedError('Vault session is locked')
        return list(self._items)

    def replace_items(self, items: list[VaultItem]) -> None:
        """Swap in a freshly decrypted item snapshot."""
        if self._key is None:
            raise VaultLockedError('Vault session is locked')
        self._items = list(items)

    def rekey(self, key: "MasterKey") -> None:
        if self._key is None:
            raise VaultLockedError('Vault session is locked')
        self._key = key

    def invalidate(self) -> None:
        """Discard the key and all decrypted items."""
        self._key = None
        self._items = []
