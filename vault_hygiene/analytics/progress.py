"""
Progress — experience points, level and readiness checklist for a vault.
"""
import re
import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..conf import ROTATION_AGE_DAYS
from ..models import VaultItem, utcnow
from .hygiene import ReuseMap

XP_PER_POINT = 50
XP_PER_LEVEL = 1000
HEALTHY_SCORE = 80
READY_VOLUME = 5

_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SYMBOL_RE = re.compile(r"[^A-Za-z0-9]")


class ChecklistEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    met: bool


class Readiness(BaseModel):
    percent: int
    checklist: list[ChecklistEntry]
    is_ready: bool


class Progress(BaseModel):
    total_xp: int
    level: int
    next_level_xp: int
    progress_in_level: int
    width_percent: float
    readiness: Readiness


def strength_points(password: str) -> int:
    """0-5 points: length over 8, length over 12, uppercase, digit, symbol."""
    if not password:
        return 0
    points = 0
    if len(password) > 8:
        points += 1
    if len(password) > 12:
        points += 1
    if _UPPER_RE.search(password):
        points += 1
    if _DIGIT_RE.search(password):
        points += 1
    if _SYMBOL_RE.search(password):
        points += 1
    return points


def calculate_progress(
    items: list[VaultItem],
    reuse_map: ReuseMap,
    health_score: int,
    now: Optional[datetime] = None,
) -> Progress:
    now = now or utcnow()
    total_xp = sum(strength_points(item.password) * XP_PER_POINT for item in items)
    level = 1 + total_xp // XP_PER_LEVEL
    level_start = (level - 1) * XP_PER_LEVEL
    in_level = total_xp - level_start

    checklist = [
        ChecklistEntry(id="reuse", label="No Reused Passwords", met=not reuse_map),
        ChecklistEntry(
            id="weak", label=f"Vault Health > {HEALTHY_SCORE}",
            met=health_score >= HEALTHY_SCORE,
        ),
        ChecklistEntry(
            id="old", label=f"No Old Passwords (>{ROTATION_AGE_DAYS}d)",
            met=not any(i.older_than(ROTATION_AGE_DAYS, now) for i in items),
        ),
        ChecklistEntry(
            id="volume", label=f"At least {READY_VOLUME} Items",
            met=len(items) >= READY_VOLUME,
        ),
    ]
    completed = sum(1 for entry in checklist if entry.met)
    percent = math.floor(completed / len(checklist) * 100)

    return Progress(
        total_xp=total_xp,
        level=level,
        next_level_xp=level * XP_PER_LEVEL,
        progress_in_level=in_level,
        width_percent=min(100.0, max(0.0, in_level / XP_PER_LEVEL * 100)),
        readiness=Readiness(percent=percent, checklist=checklist, is_ready=percent == 100),
    )
