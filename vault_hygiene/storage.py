"""
Vault Storage — async key-value collections backing the vault.

Collections:
- ``vault``: encrypted records keyed by their ``id`` field
- ``meta``: explicit keys (``salt``, ``verifier``)
- ``audit`` / ``timeline``: auto-increment integer keys

Every mutation is staged on a copy of the collections, persisted, and only
then made visible. ``put_many`` applies a batch of writes the same way, so
the batch lands completely or not at all.
"""
import os
import copy
import base64
import asyncio
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import orjson

from .conf import (
    COLLECTIONS,
    VAULT_COLLECTION,
    AUDIT_COLLECTION,
    TIMELINE_COLLECTION,
)
from .exceptions import StorageError

logger = logging.getLogger("vault_hygiene.storage")

Key = Union[str, int]
# (collection, value, key); key None means "derive it from the collection"
Write = tuple[str, Any, Optional[Key]]
Collections = dict[str, dict[Key, Any]]
Counters = dict[str, int]

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"

# Collections whose key is read from a field of the stored value.
_KEY_PATHS = {VAULT_COLLECTION: "id"}
# Collections that assign increasing integer keys.
_AUTO_INCREMENT = frozenset({AUDIT_COLLECTION, TIMELINE_COLLECTION})


class Storage:
    """Interface of the key-value collaborator."""

    async def put(self, collection: str, value: Any, key: Optional[Key] = None) -> Key:
        raise NotImplementedError

    async def put_many(self, writes: Iterable[Write]) -> list[Key]:
        """Apply several puts as one unit: all of them or none."""
        raise NotImplementedError

    async def get(self, collection: str, key: Key) -> Any:
        raise NotImplementedError

    async def get_all(self, collection: str) -> list[Any]:
        raise NotImplementedError

    async def delete(self, collection: str, key: Key) -> None:
        raise NotImplementedError

    async def clear(self, collection: str) -> None:
        raise NotImplementedError


def _lookup(collections: Collections, name: str) -> dict[Key, Any]:
    try:
        return collections[name]
    except KeyError:
        raise ValueError(f"Unknown collection: {name}") from None


class MemoryStorage(Storage):
    """Process-local storage; contents vanish with the process."""

    def __init__(self) -> None:
        self._collections: Collections = {name: {} for name in COLLECTIONS}
        self._counters: Counters = {name: 0 for name in _AUTO_INCREMENT}
        self._lock = asyncio.Lock()

    def _snapshot(self) -> tuple[Collections, Counters]:
        """Shallow copies that a mutation can stage its changes on."""
        return (
            {name: dict(store) for name, store in self._collections.items()},
            dict(self._counters),
        )

    def _resolve_key(
        self, collection: str, value: Any, key: Optional[Key], counters: Counters
    ) -> Key:
        if key is not None:
            return key
        if collection in _KEY_PATHS:
            field = _KEY_PATHS[collection]
            if not isinstance(value, dict) or field not in value:
                raise ValueError(
                    f"Values in '{collection}' must carry a '{field}' field"
                )
            return value[field]
        if collection in _AUTO_INCREMENT:
            counters[collection] += 1
            new_key = counters[collection]
            if isinstance(value, dict):
                value["id"] = new_key
            return new_key
        raise ValueError(f"Collection '{collection}' requires an explicit key")

    async def put(self, collection: str, value: Any, key: Optional[Key] = None) -> Key:
        keys = await self.put_many([(collection, value, key)])
        return keys[0]

    async def put_many(self, writes: Iterable[Write]) -> list[Key]:
        async with self._lock:
            collections, counters = self._snapshot()
            keys: list[Key] = []
            for collection, value, key in writes:
                store = _lookup(collections, collection)
                value = copy.deepcopy(value)
                resolved = self._resolve_key(collection, value, key, counters)
                store[resolved] = value
                keys.append(resolved)
            await self._commit(collections, counters)
        return keys

    async def get(self, collection: str, key: Key) -> Any:
        value = _lookup(self._collections, collection).get(key)
        return copy.deepcopy(value)

    async def get_all(self, collection: str) -> list[Any]:
        return [copy.deepcopy(v) for v in _lookup(self._collections, collection).values()]

    async def delete(self, collection: str, key: Key) -> None:
        async with self._lock:
            collections, counters = self._snapshot()
            store = _lookup(collections, collection)
            if key not in store:
                return
            del store[key]
            await self._commit(collections, counters)

    async def clear(self, collection: str) -> None:
        async with self._lock:
            collections, counters = self._snapshot()
            _lookup(collections, collection).clear()
            await self._commit(collections, counters)

    async def _commit(self, collections: Collections, counters: Counters) -> None:
        """Make a staged state visible.

        Persistent subclasses write the state out first and raise before
        calling this when the write fails, leaving the old state in place.
        """
        self._collections = collections
        self._counters = counters


# ---------------------------------------------------------------------------
# File-backed storage
# ---------------------------------------------------------------------------

def _default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray)):
        return {_BYTES_WRAPPER_KEY: base64.b64encode(bytes(obj)).decode("ascii")}
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _restore(obj: Any) -> Any:
    """Recursively unwrap base64 byte markers produced by ``_default``."""
    if isinstance(obj, dict):
        if len(obj) == 1 and _BYTES_WRAPPER_KEY in obj:
            return base64.b64decode(obj[_BYTES_WRAPPER_KEY])
        return {k: _restore(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_restore(v) for v in obj]
    return obj


class FileStorage(MemoryStorage):
    """MemoryStorage mirrored to a single orjson document on disk.

    The document is rewritten through a temporary file and an atomic
    rename, so a crash mid-write leaves the previous document intact. A
    failed write leaves the in-memory state unchanged as well.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            document = _restore(orjson.loads(self.path.read_bytes()))
        except (OSError, orjson.JSONDecodeError) as err:
            raise StorageError(f"Cannot read vault document {self.path}: {err}") from err
        for name, pairs in document.get("collections", {}).items():
            if name in self._collections:
                self._collections[name] = {key: value for key, value in pairs}
        for name, counter in document.get("counters", {}).items():
            if name in self._counters:
                self._counters[name] = int(counter)
        logger.debug("Loaded vault document %s", self.path)

    def _dump(self, collections: Collections, counters: Counters) -> bytes:
        document = {
            "collections": {
                name: [[key, value] for key, value in store.items()]
                for name, store in collections.items()
            },
            "counters": counters,
        }
        try:
            return orjson.dumps(document, default=_default)
        except TypeError as err:
            raise StorageError(f"Cannot encode vault document: {err}") from err

    def _write(self, data: bytes) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(data)
        os.replace(tmp, self.path)

    async def _commit(self, collections: Collections, counters: Counters) -> None:
        data = self._dump(collections, counters)
        try:
            await asyncio.to_thread(self._write, data)
        except OSError as err:
            raise StorageError(
                f"Cannot write vault document {self.path}: {err}"
            ) from err
        await super()._commit(collections, counters)
