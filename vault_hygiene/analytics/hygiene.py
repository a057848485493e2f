"""
Hygiene Aggregator — vault-wide metrics derived from the decrypted items.

All functions are pure: they take the current item snapshot and return a
fresh result. Nothing here is persisted.
"""
import math
from collections import Counter
from datetime import datetime
from typing import Optional

from ..conf import HEALTH_WEAK_BITS, LABEL_WEAK_BITS, RADAR_TARGET_BITS, ROTATION_AGE_DAYS
from ..models import RadarMetrics, VaultItem, utcnow
from .entropy import calculate_entropy, contains_common_word

ReuseMap = dict[str, int]

MAX_WEAK_PENALTY = 40
REUSE_PENALTY_PER_ITEM = 5
MAX_REUSE_PENALTY = 30
MAX_AGING_PENALTY = 20
SMALL_VAULT_PENALTY = 10
SMALL_VAULT_SIZE = 3


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def check_reuse(items: list[VaultItem]) -> ReuseMap:
    """Map each item sharing its exact password to the size of its group.

    Items with an empty password never count as reused.
    """
    counts = Counter(item.password for item in items if item.password)
    return {
        item.id: counts[item.password]
        for item in items
        if item.password and counts[item.password] > 1
    }


def is_weak(item: VaultItem) -> bool:
    """Weak for health scoring: raw entropy below 50 bits."""
    return calculate_entropy(item.password) < HEALTH_WEAK_BITS


def is_weak_label(item: VaultItem) -> bool:
    """Weak as labelled in the vault list: raw entropy below 45 bits."""
    return calculate_entropy(item.password) < LABEL_WEAK_BITS


def count_weak_labels(items: list[VaultItem]) -> int:
    return sum(1 for item in items if is_weak_label(item))


def calculate_health_score(
    items: list[VaultItem],
    reuse_map: ReuseMap,
    now: Optional[datetime] = None,
) -> int:
    """Composite 0-100 hygiene score.

    Deductions from 100:
    - up to 40 for the fraction of weak items
    - 5 per reused item, capped at 30
    - up to 20 for the fraction of items unchanged for 90+ days
    - 10 when the vault holds fewer than three items

    An empty vault scores 100.
    """
    if not items:
        return 100
    now = now or utcnow()
    total = len(items)

    score = 100.0
    weak = sum(1 for item in items if is_weak(item))
    score -= (weak / total) * MAX_WEAK_PENALTY

    score -= min(MAX_REUSE_PENALTY, len(reuse_map) * REUSE_PENALTY_PER_ITEM)

    old = sum(1 for item in items if item.older_than(ROTATION_AGE_DAYS, now))
    score -= (old / total) * MAX_AGING_PENALTY

    if total < SMALL_VAULT_SIZE:
        score -= SMALL_VAULT_PENALTY

    return math.floor(min(100.0, max(0.0, score)))


def calculate_radar_metrics(
    items: list[VaultItem],
    reuse_map: ReuseMap,
    now: Optional[datetime] = None,
) -> RadarMetrics:
    """Normalised 5-axis risk profile; every axis is 100 for an empty vault."""
    if not items:
        return RadarMetrics(entropy=100, reuse=100, aging=100, breach_risk=100, health=100)
    now = now or utcnow()
    total = len(items)

    avg_entropy = sum(calculate_entropy(item.password) for item in items) / total
    entropy_score = min(100.0, avg_entropy / RADAR_TARGET_BITS * 100)

    reuse_score = max(0.0, 100 - len(reuse_map) / total * 100)

    old = sum(1 for item in items if item.older_than(ROTATION_AGE_DAYS, now))
    aging_score = max(0.0, 100 - old / total * 100)

    common = sum(1 for item in items if contains_common_word(item.password))
    breach_score = max(0.0, 100 - common / total * 100)

    return RadarMetrics(
        entropy=_round_half_up(entropy_score),
        reuse=_round_half_up(reuse_score),
        aging=_round_half_up(aging_score),
        breach_risk=_round_half_up(breach_score),
        health=calculate_health_score(items, reuse_map, now),
    )
