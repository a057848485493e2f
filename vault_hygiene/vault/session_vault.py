"""
SessionVault — Encrypted password vault bound to an unlocked session.

Provides the public API consumed by the presentation layer:
- ``signup(password)`` / ``login(password)`` — open a ``VaultSession``
- ``logout()`` / ``panic_lock()`` — discard the session key immediately
- ``add_password(data)`` / ``update_password(id, data)`` / ``delete_password(id)``
- ``items``, ``reuse_map``, ``health_score``, ``radar_metrics``, ``tips``,
  ``security_report``, ``progress`` — derived views of the current items
- ``timeline()`` / ``audit_events()`` — journals

Every mutation commits to storage first, then recomputes the derived
metrics, then runs the audit and timeline hooks. Hook failures are logged
and never reach the caller.

Security Note:
    Never log plaintext or ciphertext values. Only log item ids, counts
    and operation names. Decrypted items exist in process memory while the
    session is unlocked — this is an accepted limitation.
"""
import uuid
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from ..conf import (
    CRACKABLE_BITS,
    META_COLLECTION,
    SALT_KEY,
    VAULT_COLLECTION,
    VERIFIER_KEY,
)
from ..exceptions import DecryptionError, VaultLockedError, VaultNotInitializedError
from ..analytics.advisor import generate_security_report, get_smart_tips
from ..analytics.entropy import calculate_entropy
from ..analytics.hygiene import (
    ReuseMap,
    calculate_health_score,
    calculate_radar_metrics,
    check_reuse,
    count_weak_labels,
)
from ..analytics.progress import Progress, calculate_progress
from ..journal.audit import AuditLog
from ..journal.timeline import TimelineRecorder
from ..models import (
    AuditEvent,
    AuditType,
    Credential,
    EncryptedRecord,
    Envelope,
    RadarMetrics,
    SecurityReport,
    TimelineSnapshot,
    Tip,
    VaultItem,
    utcnow,
)
from ..session import VaultSession
from ..storage import FileStorage, MemoryStorage, Storage
from .config import VaultConfig
from .crypto import (
    MasterKey,
    check_verifier,
    create_verifier,
    decrypt,
    derive_key,
    encrypt,
    generate_salt,
)
from .key_rotation import rotate_master_password

logger = logging.getLogger("vault_hygiene.vault")


@dataclass(frozen=True)
class VaultMetrics:
    """Derived views of one item snapshot."""

    reuse_map: ReuseMap
    health_score: int
    weak_count: int
    radar: RadarMetrics
    tips: list[Tip]
    report: SecurityReport
    progress: Progress


def analyze(items: list[VaultItem], now: Optional[datetime] = None) -> VaultMetrics:
    """Compute every derived metric for an item snapshot."""
    now = now or utcnow()
    reuse_map = check_reuse(items)
    health = calculate_health_score(items, reuse_map, now)
    return VaultMetrics(
        reuse_map=reuse_map,
        health_score=health,
        weak_count=count_weak_labels(items),
        radar=calculate_radar_metrics(items, reuse_map, now),
        tips=get_smart_tips(health, reuse_map, items, now),
        report=generate_security_report(items, health, reuse_map, now),
        progress=calculate_progress(items, reuse_map, health, now),
    )


class SessionVault:
    """Password vault over a key-value storage collaborator.

    The attached ``VaultSession`` is the only record of whether the vault
    is unlocked; the vault itself keeps no separate flag.
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        config: Optional[VaultConfig] = None,
    ):
        self.config = config or VaultConfig()
        self.config.configure_logging()
        if storage is None:
            if self.config.storage_path is not None:
                storage = FileStorage(self.config.storage_path)
            else:
                storage = MemoryStorage()
        self._storage = storage
        self.audit = AuditLog(storage)
        self.timeline_recorder = TimelineRecorder(storage)
        self.session: Optional[VaultSession] = None
        self._metrics: Optional[VaultMetrics] = None
        self._last_recorded: Optional[tuple[int, int]] = None
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    @property
    def is_unlocked(self) -> bool:
        return self.session is not None and self.session.is_unlocked

    def _require_session(self) -> VaultSession:
        if self.session is None or not self.session.is_unlocked:
            raise VaultLockedError("Vault is locked")
        return self.session

    def _open_session(self, key: MasterKey) -> VaultSession:
        if self.session is not None:
            self.session.invalidate()
        self.session = VaultSession(key)
        self._metrics = None
        self._last_recorded = None
        return self.session

    def _close_session(self) -> None:
        if self.session is not None:
            self.session.invalidate()
        self.session = None
        self._metrics = None
        self._last_recorded = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def is_setup(self) -> bool:
        """True once a salt has been persisted by ``signup``."""
        return await self._storage.get(META_COLLECTION, SALT_KEY) is not None

    async def _derive(self, password: str, salt: bytes) -> MasterKey:
        return await asyncio.to_thread(
            derive_key, password, salt, self.config.kdf_iterations,
        )

    async def signup(self, password: str) -> VaultSession:
        """Initialise the vault and unlock it.

        Args:
            password: New master password.

        Returns:
            The unlocked session.

        Raises:
            ValueError: If the password is empty.
            VaultNotInitializedError: If the vault already has a salt.
        """
        if not password:
            raise ValueError("Master password cannot be empty")
        if await self.is_setup():
            raise VaultNotInitializedError("Vault is already initialised")

        salt = generate_salt()
        key = await self._derive(password, salt)
        verifier = create_verifier(key)

        await self._storage.put(META_COLLECTION, salt, SALT_KEY)
        await self._storage.put(META_COLLECTION, verifier.model_dump(), VERIFIER_KEY)

        session = self._open_session(key)
        await self._refresh(session)
        logger.info("Vault initialised: session=%s", session.session_id)
        return session

    async def login(self, password: str) -> bool:
        """Unlock the vault with the master password.

        Returns False for a missing vault, a malformed verifier or a wrong
        password alike.
        """
        salt = await self._storage.get(META_COLLECTION, SALT_KEY)
        raw_verifier = await self._storage.get(META_COLLECTION, VERIFIER_KEY)
        if not salt or not raw_verifier:
            logger.info("Login rejected")
            return False
        try:
            verifier = Envelope.model_validate(raw_verifier)
        except ValueError:
            logger.warning("Login rejected: stored verifier is malformed")
            return False

        key = await self._derive(password, salt)
        if not check_verifier(key, verifier):
            logger.info("Login rejected")
            return False

        session = self._open_session(key)
        await self._refresh(session)
        logger.info(
            "Vault unlocked: session=%s, %d item(s)",
            session.session_id, len(session.items),
        )
        return True

    def logout(self) -> None:
        """Discard the session key and every decrypted item."""
        self._close_session()
        logger.info("Vault locked")

    def panic_lock(self) -> Optional[asyncio.Task]:
        """Lock immediately, then log the event in the background.

        The key is gone before this function returns. The audit entry is
        scheduled on the running event loop, if any, and may be dropped.

        Returns:
            The scheduled audit task, or None when nothing was scheduled.
        """
        self._close_session()
        logger.warning("Emergency lock activated")
        if not self.config.audit_enabled:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        task = loop.create_task(
            self._audit(AuditType.WARNING, "Emergency lock activated")
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # ------------------------------------------------------------------
    # Loading and derived metrics
    # ------------------------------------------------------------------

    async def _load_items(self, session: VaultSession) -> list[VaultItem]:
        """Decrypt every record; undecryptable records are skipped."""
        rows = await self._storage.get_all(VAULT_COLLECTION)
        items: list[VaultItem] = []
        for row in rows:
            item_id = row.get("id") if isinstance(row, dict) else None
            try:
                record = EncryptedRecord.model_validate(row)
                payload = decrypt(session.key, record.iv, record.ciphertext)
                credential = Credential.model_validate(payload)
                items.append(
                    VaultItem(
                        **credential.model_dump(),
                        id=record.id,
                        created_at=record.created_at,
                        updated_at=record.updated_at or record.created_at,
                    )
                )
            except (DecryptionError, ValueError, TypeError) as err:
                logger.error("Failed to decrypt vault item id=%s: %s", item_id, err)
        items.sort(key=lambda i: i.created_at, reverse=True)
        return items

    async def _refresh(self, session: VaultSession) -> None:
        """Reload items, recompute metrics and run the timeline hook."""
        items = await self._load_items(session)
        if not session.is_unlocked:
            return
        session.replace_items(items)
        self._metrics = analyze(items)
        await self._record_timeline(len(items))

    def _require_metrics(self) -> VaultMetrics:
        session = self._require_session()
        if self._metrics is None:
            self._metrics = analyze(session.items)
        return self._metrics

    async def refresh(self) -> None:
        await self._refresh(self._require_session())

    @property
    def items(self) -> list[VaultItem]:
        """Decrypted items, newest first."""
        return self._require_session().items

    @property
    def reuse_map(self) -> ReuseMap:
        return dict(self._require_metrics().reuse_map)

    @property
    def health_score(self) -> int:
        return self._require_metrics().health_score

    @property
    def radar_metrics(self) -> RadarMetrics:
        return self._require_metrics().radar

    @property
    def tips(self) -> list[Tip]:
        return list(self._require_metrics().tips)

    @property
    def security_report(self) -> SecurityReport:
        return self._require_metrics().report

    @property
    def progress(self) -> Progress:
        return self._require_metrics().progress

    async def timeline(self) -> list[TimelineSnapshot]:
        """Recorded snapshots, oldest first."""
        return await self.timeline_recorder.snapshots()

    async def audit_events(self) -> list[AuditEvent]:
        """Audit events, newest first."""
        return await self.audit.events()

    # ------------------------------------------------------------------
    # Post-commit hooks
    # ------------------------------------------------------------------

    async def _audit(self, type: AuditType, msg: str) -> None:
        if not self.config.audit_enabled:
            return
        try:
            await self.audit.add_log(type, msg)
        except Exception as err:
            logger.warning("Audit log failed: %s", err)

    async def _record_timeline(self, item_count: int) -> None:
        metrics = self._metrics
        if not self.config.timeline_enabled or metrics is None or not item_count:
            return
        state = (metrics.health_score, item_count)
        if state == self._last_recorded:
            return
        self._last_recorded = state
        try:
            await self.timeline_recorder.record_snapshot(
                metrics.health_score,
                metrics.weak_count,
                len(metrics.reuse_map),
            )
        except Exception as err:
            logger.warning("Failed to record timeline snapshot: %s", err)

    async def _warn_if_weak(self, credential: Credential) -> None:
        entropy = calculate_entropy(credential.password)
        if entropy < CRACKABLE_BITS:
            await self._audit(
                AuditType.WARNING,
                f"Weak password detected for {credential.title} ({entropy} bits)",
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _find(self, session: VaultSession, item_id: str) -> Optional[VaultItem]:
        return next((i for i in session.items if i.id == item_id), None)

    async def _store(
        self,
        session: VaultSession,
        item_id: str,
        credential: Credential,
        created_at: datetime,
        updated_at: datetime,
    ) -> None:
        envelope = encrypt(session.key, credential.model_dump())
        record = EncryptedRecord(
            id=item_id,
            created_at=created_at,
            updated_at=updated_at,
            iv=envelope.iv,
            ciphertext=envelope.ciphertext,
        )
        await self._storage.put(VAULT_COLLECTION, record.model_dump())

    async def add_password(self, data: Union[Credential, dict[str, Any]]) -> VaultItem:
        """Encrypt and persist a new credential.

        Args:
            data: Credential fields (title, username, password, site).

        Returns:
            The stored item.

        Raises:
            VaultLockedError: If no session is unlocked.
            ValueError: If the credential is invalid.
        """
        session = self._require_session()
        credential = Credential.model_validate(data)
        item_id = str(uuid.uuid4())
        now = utcnow()

        await self._store(session, item_id, credential, now, now)
        await self._refresh(session)
        logger.debug("Vault add: id=%s", item_id)

        await self._audit(AuditType.CREATE, f"Added password for {credential.title}")
        await self._warn_if_weak(credential)
        return VaultItem(
            **credential.model_dump(), id=item_id, created_at=now, updated_at=now,
        )

    async def update_password(
        self, item_id: str, data: Union[Credential, dict[str, Any]]
    ) -> VaultItem:
        """Re-encrypt an existing item with changed fields.

        ``created_at`` is kept; ``updated_at`` moves to now.

        Raises:
            VaultLockedError: If no session is unlocked.
            KeyError: If no item has this id.
        """
        session = self._require_session()
        existing = self._find(session, item_id)
        if existing is None:
            raise KeyError(f"Vault item {item_id} not found")
        changes = data.model_dump() if isinstance(data, Credential) else dict(data)
        merged = existing.model_dump(include=set(Credential.model_fields))
        merged.update(
            {k: v for k, v in changes.items() if k in Credential.model_fields}
        )
        credential = Credential.model_validate(merged)
        now = utcnow()

        await self._store(session, item_id, credential, existing.created_at, now)
        await self._refresh(session)
        logger.debug("Vault update: id=%s", item_id)

        if credential.password != existing.password:
            await self._warn_if_weak(credential)
        return VaultItem(
            **credential.model_dump(),
            id=item_id,
            created_at=existing.created_at,
            updated_at=now,
        )

    async def delete_password(self, item_id: str) -> None:
        """Remove an item from storage.

        Raises:
            VaultLockedError: If no session is unlocked.
        """
        session = self._require_session()
        existing = self._find(session, item_id)

        await self._storage.delete(VAULT_COLLECTION, item_id)
        await self._refresh(session)
        logger.debug("Vault delete: id=%s", item_id)

        if existing is not None:
            await self._audit(AuditType.DELETE, f"Deleted password for {existing.title}")

    async def change_master_password(self, old_password: str, new_password: str) -> bool:
        """Re-encrypt the vault under a new master password.

        Returns:
            False if ``old_password`` is wrong; True once rotated.

        Raises:
            VaultLockedError: If no session is unlocked.
            ValueError: If the new password is empty.
            DecryptionError: If a stored record cannot be decrypted.
            StorageError: If the re-encrypted vault cannot be written. Storage
                and the session both stay on the old password.
        """
        session = self._require_session()
        if not new_password:
            raise ValueError("Master password cannot be empty")
        try:
            key, stats = await rotate_master_password(
                self._storage,
                old_password,
                new_password,
                iterations=self.config.kdf_iterations,
            )
        except VaultNotInitializedError:
            return False
        if key is None:
            return False
        session.rekey(key)
        await self._refresh(session)
        await self._audit(
            AuditType.WARNING,
            f"Master password changed ({stats['rotated']} item(s) re-encrypted)",
        )
        return True
