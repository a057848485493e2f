"""
Advisory Engine — ordered rules turning vault metrics into tips and a report.

Rule order is the priority shown to the reader: tips and problems are
emitted in the order their rules are declared below.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..conf import (
    ANCIENT_AGE_DAYS,
    CRACKABLE_BITS,
    ROTATION_AGE_DAYS,
    STALE_AGE_DAYS,
)
from ..models import (
    Action,
    Problem,
    SecurityReport,
    Sentiment,
    Tip,
    TipType,
    VaultItem,
    utcnow,
)
from .entropy import calculate_entropy
from .hygiene import ReuseMap

MAX_PROBLEMS = 3
MAX_ACTIONS = 3
SHORT_PASSWORD_LENGTH = 8

# Titles of accounts whose compromise exposes other accounts.
CRITICAL_ACCOUNT_RE = re.compile(r"mail|bank|google|apple", re.IGNORECASE)


@dataclass
class AdvisoryContext:
    """Inputs shared by every rule."""

    items: list[VaultItem]
    reuse_map: ReuseMap
    health_score: int
    now: datetime = field(default_factory=utcnow)

    def older_than(self, days: int) -> list[VaultItem]:
        return [i for i in self.items if i.older_than(days, self.now)]

    def aged_between(self, low_days: int, high_days: int) -> list[VaultItem]:
        """Items older than ``low_days`` but not older than ``high_days``."""
        return [
            i for i in self.items
            if i.older_than(low_days, self.now) and not i.older_than(high_days, self.now)
        ]

    def reused(self) -> list[VaultItem]:
        return [i for i in self.items if i.id in self.reuse_map]


def _plural(count: int, one: str, many: str) -> str:
    return one if count == 1 else many


# ---------------------------------------------------------------------------
# Smart tips
# ---------------------------------------------------------------------------

TipRule = Callable[[AdvisoryContext], Optional[Tip]]


def _reuse_tip(ctx: AdvisoryContext) -> Optional[Tip]:
    # every reuse group has at least two members
    count = len(ctx.reuse_map)
    if not count:
        return None
    return Tip(
        type=TipType.DANGER,
        title=f"{count} Reused Passwords",
        msg=f"You have {count} accounts sharing passwords. "
            "One breach could expose them all.",
    )


def _ancient_tip(ctx: AdvisoryContext) -> Optional[Tip]:
    ancient = ctx.older_than(ANCIENT_AGE_DAYS)
    if not ancient:
        return None
    return Tip(
        type=TipType.DANGER,
        title="Ancient Passwords Detected",
        msg=f"{len(ancient)} passwords are over a year old. Rotate them immediately.",
    )


def _low_health_tip(ctx: AdvisoryContext) -> Optional[Tip]:
    if ctx.health_score >= 50:
        return None
    return Tip(
        type=TipType.WARNING,
        title="Weak Overall Hygiene",
        msg="Your vault health is critical. Prioritize updating weak passwords.",
    )


def _crackable_tip(ctx: AdvisoryContext) -> Optional[Tip]:
    weak = [i for i in ctx.items if calculate_entropy(i.password) < CRACKABLE_BITS]
    if not weak:
        return None
    return Tip(
        type=TipType.WARNING,
        title="Strengthen Weak Passwords",
        msg=f"{len(weak)} passwords are easily crackable. "
            "Aim for > 50 bits of entropy.",
    )


def _rotation_tip(ctx: AdvisoryContext) -> Optional[Tip]:
    due = ctx.aged_between(ROTATION_AGE_DAYS, ANCIENT_AGE_DAYS)
    if not due:
        return None
    return Tip(
        type=TipType.INFO,
        title="Rotation Suggested",
        msg=f"{len(due)} passwords haven't been changed in 3 months.",
    )


TIP_RULES: tuple[TipRule, ...] = (
    _reuse_tip,
    _ancient_tip,
    _low_health_tip,
    _crackable_tip,
    _rotation_tip,
)

SUCCESS_TIP = Tip(
    type=TipType.SUCCESS,
    title="Great Job!",
    msg="Your password hygiene is excellent. Keep it up!",
)


def get_smart_tips(
    health_score: int,
    reuse_map: ReuseMap,
    items: list[VaultItem],
    now: Optional[datetime] = None,
) -> list[Tip]:
    """Evaluate every tip rule in order; at most one tip per rule.

    Returns a single success tip when no rule fires.
    """
    ctx = AdvisoryContext(items, reuse_map, health_score, now or utcnow())
    tips = [tip for tip in (rule(ctx) for rule in TIP_RULES) if tip is not None]
    return tips or [SUCCESS_TIP]


# ---------------------------------------------------------------------------
# Security report
# ---------------------------------------------------------------------------

EMPTY_SUMMARY = (
    "Your vault is empty. Start by adding your most critical accounts "
    "(email, banking) to build your security foundation."
)

# (exclusive upper bound on the health score, sentiment, summary)
SENTIMENT_BANDS = (
    (50, Sentiment.CRITICAL,
     "Your vault is in critical condition. Immediate action is required to "
     "secure your digital identity. Multiple high-risk vulnerabilities detected."),
    (75, Sentiment.WARNING,
     "Your security posture is average. While you have some strong passwords, "
     "there are significant vulnerabilities that attackers could exploit."),
    (90, Sentiment.POSITIVE,
     "Good job! Your vault is secure, but there are a few specific "
     "opportunities to reach perfection and eliminate all re-use."),
)
EXCELLENT_SUMMARY = (
    "Excellent! Your vault is fortress-level secure. You are effectively "
    "invisible to most automated attacks. Keep up the great maintenance."
)

GENERAL_ACTION = Action(
    type="general",
    text="Run the Threat Model analyzer to see if you are protected against "
         "specific attack vectors.",
)

ProblemRule = Callable[[AdvisoryContext], Optional[tuple[Problem, Action]]]


def _reuse_problem(ctx: AdvisoryContext) -> Optional[tuple[Problem, Action]]:
    reused = ctx.reused()
    count = len(ctx.reuse_map)
    if not count:
        return None
    problem = Problem(
        type="reuse",
        severity="high",
        text=f"{count} password{_plural(count, ' is', 's are')} "
             "reused across multiple accounts.",
    )
    target = next(
        (i for i in reused if CRITICAL_ACCOUNT_RE.search(i.title)),
        reused[0] if reused else None,
    )
    if target is not None:
        action = Action(
            type="reuse",
            text=f"Urgent: Stop using the same password for {target.title}. "
                 "Rotate it immediately.",
        )
    else:
        action = Action(
            type="reuse",
            text="Review your reused passwords and generate unique ones for each account.",
        )
    return problem, action


def _short_problem(ctx: AdvisoryContext) -> Optional[tuple[Problem, Action]]:
    short = [i for i in ctx.items if len(i.password) < SHORT_PASSWORD_LENGTH]
    if not short:
        return None
    count = len(short)
    problem = Problem(
        type="weak",
        severity="critical",
        text=f"{count} password{_plural(count, ' is', 's are')} extremely weak (short).",
    )
    action = Action(
        type="weak",
        text=f"Strengthen the password for {short[0].title} using the Generator.",
    )
    return problem, action


def _stale_problem(ctx: AdvisoryContext) -> Optional[tuple[Problem, Action]]:
    stale = ctx.older_than(STALE_AGE_DAYS)
    if not stale:
        return None
    count = len(stale)
    problem = Problem(
        type="aging",
        severity="medium",
        text=f"{count} password{_plural(count, ' has', 's have')} "
             "not been updated in over 6 months.",
    )
    action = Action(
        type="aging",
        text=f"Consider rotating the password for {stale[0].title} "
             "to stay ahead of breaches.",
    )
    return problem, action


PROBLEM_RULES: tuple[ProblemRule, ...] = (
    _reuse_problem,
    _short_problem,
    _stale_problem,
)


def summarize_risk(items: list[VaultItem], health_score: int) -> tuple[str, Sentiment]:
    """Pick the summary sentence and sentiment for a health score."""
    if not items:
        return EMPTY_SUMMARY, Sentiment.NEUTRAL
    for bound, sentiment, summary in SENTIMENT_BANDS:
        if health_score < bound:
            return summary, sentiment
    return EXCELLENT_SUMMARY, Sentiment.EXCELLENT


def generate_security_report(
    items: list[VaultItem],
    health_score: int,
    reuse_map: ReuseMap,
    now: Optional[datetime] = None,
) -> SecurityReport:
    """Build the narrative security report.

    Args:
        items: Decrypted vault items, newest first.
        health_score: Current health score.
        reuse_map: Current reuse map.
        now: Reference time for age checks.

    Returns:
        SecurityReport with at most three problems and three actions.
    """
    ctx = AdvisoryContext(items, reuse_map, health_score, now or utcnow())
    risk_summary, sentiment = summarize_risk(items, health_score)

    problems: list[Problem] = []
    actions: list[Action] = []
    for rule in PROBLEM_RULES:
        found = rule(ctx)
        if found is None:
            continue
        problem, action = found
        problems.append(problem)
        if len(actions) < MAX_ACTIONS:
            actions.append(action)

    if not actions and items:
        actions.append(GENERAL_ACTION)

    return SecurityReport(
        risk_summary=risk_summary,
        sentiment=sentiment,
        problems=problems[:MAX_PROBLEMS],
        actions=actions[:MAX_ACTIONS],
    )
