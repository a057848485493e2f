"""
Vault Hygiene Models — persisted records and analytics results.

Plaintext credentials (``Credential`` / ``VaultItem``) only ever live in
process memory; the persisted form of an item is ``EncryptedRecord``.
"""
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Vault records
# ---------------------------------------------------------------------------

class Credential(BaseModel):
    """The encrypted payload of a vault item."""

    title: str
    username: str = ""
    password: str = Field(default="", repr=False)
    site: str = ""

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Titles are used in audit messages and reports; keep them non-empty."""
        v = v.strip()
        if not v:
            raise ValueError("Credential title cannot be empty")
        return v


class VaultItem(Credential):
    """Decrypted vault item, held only inside an unlocked session."""

    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def last_changed(self) -> datetime:
        return self.updated_at or self.created_at

    def age(self, now: Optional[datetime] = None) -> timedelta:
        """Time elapsed since the password was last changed."""
        return (now or utcnow()) - self.last_changed

    def older_than(self, days: int, now: Optional[datetime] = None) -> bool:
        return self.age(now) > timedelta(days=days)


class Envelope(BaseModel):
    """AES-GCM output: a fresh 96-bit IV and ciphertext with tag."""

    iv: bytes
    ciphertext: bytes


class EncryptedRecord(Envelope):
    """Persisted form of a vault item."""

    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Journal records
# ---------------------------------------------------------------------------

class AuditType(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    WARNING = "warning"


class AuditEvent(BaseModel):
    timestamp: datetime
    type: AuditType
    msg: str
    time_string: str


class TimelineSnapshot(BaseModel):
    timestamp: datetime
    health_score: int = Field(ge=0, le=100)
    weak_count: int = Field(ge=0)
    reuse_count: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Analytics results
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class RepeatedPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str
    count: int
    coverage: int  # percent of the password covered by the repeats


class Weakness(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    severity: Severity
    message: str


class RadarMetrics(BaseModel):
    """Five normalised 0-100 axes; higher is better on every axis."""

    model_config = ConfigDict(frozen=True)

    entropy: int = Field(ge=0, le=100)
    reuse: int = Field(ge=0, le=100)
    aging: int = Field(ge=0, le=100)
    breach_risk: int = Field(ge=0, le=100)
    health: int = Field(ge=0, le=100)


class TipType(str, Enum):
    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


class Tip(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: TipType
    title: str
    msg: str


class Sentiment(str, Enum):
    NEUTRAL = "neutral"
    CRITICAL = "critical"
    WARNING = "warning"
    POSITIVE = "positive"
    EXCELLENT = "excellent"


class Problem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    severity: str
    text: str


class Action(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    text: str


class SecurityReport(BaseModel):
    risk_summary: str
    sentiment: Sentiment
    problems: list[Problem] = Field(default_factory=list, max_length=3)
    actions: list[Action] = Field(default_factory=list, max_length=3)
