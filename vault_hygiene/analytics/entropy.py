"""
Entropy Analyzer — character-pool entropy, pattern penalties and
human-readable weakness explanations for a single password.
"""
import re
import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..models import RepeatedPattern, Severity, Weakness

# Character pools
LOWER_POOL = 26
UPPER_POOL = 26
DIGIT_POOL = 10
SYMBOL_POOL = 32

_LOWER_RE = re.compile(r"[a-z]")
_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SYMBOL_RE = re.compile(r"[^a-zA-Z0-9]")
_LETTER_RE = re.compile(r"[a-zA-Z]")
_REPEATED_CHAR_RE = re.compile(r"(.)\1{2,}")
_WORD_DIGITS_RE = re.compile(r"[a-zA-Z]+[0-9]+")

# Word lists used by the effective-entropy penalty
PENALTY_WORDS = (
    "password", "admin", "user", "login", "welcome", "letmein", "monkey",
    "dragon", "master",
)
PENALTY_SEQUENCES = (
    "123", "234", "345", "456", "567", "678", "789", "abc", "bcd", "cde",
)

# Word lists used for explanations and breach risk
COMMON_WORDS = PENALTY_WORDS + (
    "sunshine", "princess", "football", "shadow", "michael", "jennifer",
    "computer", "baseball", "jordan", "harley",
)
SEQUENCES = PENALTY_SEQUENCES + ("def", "efg", "fgh", "xyz")
KEYBOARD_PATTERNS = ("qwerty", "asdf", "zxcv", "qazwsx", "1qaz2wsx")

MIN_REPEAT_LENGTH = 3
REPEAT_COVERAGE = 0.7


class CrackTime(str, Enum):
    """Offline brute-force time bucket for a given entropy."""

    INSTANT = "instant"
    SECONDS_MINUTES = "seconds-minutes"
    HOURS_DAYS = "hours-days"
    WEEKS_MONTHS = "weeks-months"
    YEARS = "years"
    CENTURIES = "centuries+"

    @property
    def label(self) -> str:
        return _CRACK_TIME_LABELS[self]


_CRACK_TIME_LABELS = {
    CrackTime.INSTANT: "Instantly",
    CrackTime.SECONDS_MINUTES: "Seconds to Minutes",
    CrackTime.HOURS_DAYS: "Hours to Days",
    CrackTime.WEEKS_MONTHS: "Weeks to Months",
    CrackTime.YEARS: "Years",
    CrackTime.CENTURIES: "Centuries+",
}

# (exclusive upper bound in bits, bucket), checked in order
_CRACK_TIME_THRESHOLDS = (
    (28, CrackTime.INSTANT),
    (40, CrackTime.SECONDS_MINUTES),
    (50, CrackTime.HOURS_DAYS),
    (65, CrackTime.WEEKS_MONTHS),
    (80, CrackTime.YEARS),
)


def character_pool(password: str) -> int:
    """Sum of the pool sizes of the character classes present."""
    pool = 0
    if _LOWER_RE.search(password):
        pool += LOWER_POOL
    if _UPPER_RE.search(password):
        pool += UPPER_POOL
    if _DIGIT_RE.search(password):
        pool += DIGIT_POOL
    if _SYMBOL_RE.search(password):
        pool += SYMBOL_POOL
    return pool


def calculate_entropy(password: str) -> int:
    """Raw entropy in bits: ``floor(length * log2(pool))``."""
    if not password:
        return 0
    pool = character_pool(password)
    if pool == 0:
        return 0
    return math.floor(len(password) * math.log2(pool))


def detect_repeated_substrings(password: str) -> Optional[RepeatedPattern]:
    """Detect a password built from consecutive repeats of its leading substring.

    Lengths from 3 up to half the password are tried smallest first; the
    first one whose repeats (at least two) cover 70% of the password wins.
    Matching is case-insensitive, e.g. ``likeboysLikeBoyslikeboys``.
    """
    if not password:
        return None
    pwd = password.lower()
    length = len(pwd)
    for sub_len in range(MIN_REPEAT_LENGTH, length // 2 + 1):
        substring = pwd[:sub_len]
        count = 0
        pos = 0
        while pos < length and pwd[pos:pos + sub_len] == substring:
            count += 1
            pos += sub_len
        coverage = (count * sub_len) / length
        if count >= 2 and coverage >= REPEAT_COVERAGE:
            return RepeatedPattern(
                pattern=substring,
                count=count,
                coverage=math.floor(coverage * 100 + 0.5),
            )
    return None


def _first_contained(haystack: str, needles: tuple[str, ...]) -> Optional[str]:
    for needle in needles:
        if needle in haystack:
            return needle
    return None


def calculate_effective_entropy(password: str) -> int:
    """Raw entropy scaled down by multiplicative pattern penalties.

    Repeats: x0.3 for three or more, x0.6 for exactly two.
    Common word: x0.7. Sequential run: x0.8.
    """
    if not password:
        return 0
    entropy = calculate_entropy(password)
    factor = 1.0

    repeated = detect_repeated_substrings(password)
    if repeated is not None:
        if repeated.count >= 3:
            factor *= 0.3
        elif repeated.count == 2:
            factor *= 0.6

    pwd = password.lower()
    if _first_contained(pwd, PENALTY_WORDS):
        factor *= 0.7
    if _first_contained(pwd, PENALTY_SEQUENCES):
        factor *= 0.8

    return math.floor(entropy * factor)


def estimate_crack_time(entropy: float) -> CrackTime:
    for bound, bucket in _CRACK_TIME_THRESHOLDS:
        if entropy < bound:
            return bucket
    return CrackTime.CENTURIES


# (minimum effective bits, score, label), strongest first
_STRENGTH_TIERS = (
    (80, 5, "Excellent"),
    (65, 4, "Strong"),
    (50, 3, "Good"),
    (40, 2, "Fair"),
    (1, 1, "Weak"),
)


class PasswordStrength(BaseModel):
    """Strength meter reading: a 0-5 score over effective entropy."""

    score: int
    label: str
    effective_entropy: int
    crack_time: CrackTime


def strength_meter(password: str) -> PasswordStrength:
    """Rate a password as None, Weak, Fair, Good, Strong or Excellent.

    The score uses effective entropy, so patterned passwords rate lower
    than their length and character classes alone suggest.
    """
    entropy = calculate_effective_entropy(password)
    score, label = 0, "None"
    for minimum, tier_score, tier_label in _STRENGTH_TIERS:
        if entropy >= minimum:
            score, label = tier_score, tier_label
            break
    return PasswordStrength(
        score=score,
        label=label,
        effective_entropy=entropy,
        crack_time=estimate_crack_time(entropy),
    )


class Complexity(str, Enum):
    NONE = "None"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class PasswordAnalysis(BaseModel):
    """Raw-entropy summary of a single password."""

    entropy: int
    complexity: Complexity
    crack_time: CrackTime


def analyze_password(password: str) -> PasswordAnalysis:
    """Raw entropy, a complexity band (over 35 bits Medium, over 60 High)
    and the matching crack-time bucket."""
    if not password:
        return PasswordAnalysis(
            entropy=0, complexity=Complexity.NONE, crack_time=CrackTime.INSTANT
        )
    entropy = calculate_entropy(password)
    complexity = Complexity.LOW
    if entropy > 60:
        complexity = Complexity.HIGH
    elif entropy > 35:
        complexity = Complexity.MEDIUM
    return PasswordAnalysis(
        entropy=entropy, complexity=complexity, crack_time=estimate_crack_time(entropy)
    )


def contains_common_word(password: str) -> bool:
    return _first_contained(password.lower(), COMMON_WORDS) is not None


def explain_weakness(password: str) -> list[Weakness]:
    """Explain why a password is weak.

    Checks run in a fixed order and every applicable one is reported,
    except the word, sequence and keyboard lists which report their first
    match only.

    Args:
        password: Plaintext password.

    Returns:
        Ordered list of weaknesses, empty for a password with no findings.
    """
    weaknesses: list[Weakness] = []
    pwd = password.lower()
    entropy = calculate_entropy(password)
    length = len(password)

    def report(kind: str, severity: Severity, message: str) -> None:
        weaknesses.append(Weakness(type=kind, severity=severity, message=message))

    if length < 8:
        report(
            "length", Severity.CRITICAL,
            f"Only {length} characters long. Passwords should be at least 12 characters.",
        )
    elif length < 12:
        report(
            "length", Severity.WARNING,
            f"{length} characters is below the recommended 12+ character minimum.",
        )

    if entropy < 28:
        report(
            "entropy", Severity.CRITICAL,
            f"Extremely low randomness ({entropy} bits). Can be cracked instantly.",
        )
    elif entropy < 40:
        report(
            "entropy", Severity.WARNING,
            f"Low randomness ({entropy} bits). Vulnerable to brute-force attacks.",
        )

    repeated = detect_repeated_substrings(password)
    if repeated is not None:
        report(
            "repetition",
            Severity.CRITICAL if repeated.count >= 3 else Severity.WARNING,
            f'Contains repeated pattern "{repeated.pattern}" {repeated.count} times '
            f"({repeated.coverage}% of password). This drastically reduces security.",
        )

    word = _first_contained(pwd, COMMON_WORDS)
    if word:
        report(
            "dictionary", Severity.CRITICAL,
            f'Contains common word "{word}". Easily guessed by attackers.',
        )

    sequence = _first_contained(pwd, SEQUENCES)
    if sequence:
        report(
            "pattern", Severity.WARNING,
            f'Contains sequential pattern "{sequence}". Predictable and easy to guess.',
        )

    keyboard = _first_contained(pwd, KEYBOARD_PATTERNS)
    if keyboard:
        report(
            "pattern", Severity.WARNING,
            f'Contains keyboard pattern "{keyboard}". Common and easily cracked.',
        )

    match = _REPEATED_CHAR_RE.search(password)
    if match:
        report(
            "repetition", Severity.WARNING,
            f'Character "{match.group(1)}" repeated {len(match.group(0))} times. '
            "Reduces password strength.",
        )

    if _WORD_DIGITS_RE.fullmatch(password) and length < 15:
        report(
            "structure", Severity.WARNING,
            "Predictable structure: word followed by numbers. "
            "Common pattern attackers try first.",
        )

    if _LETTER_RE.search(password):
        if password == pwd:
            report(
                "charset", Severity.INFO,
                "Only lowercase letters. Add uppercase, numbers, and symbols "
                "for better security.",
            )
        elif password == password.upper():
            report(
                "charset", Severity.INFO,
                "Only uppercase letters. Mix case and add numbers/symbols "
                "for better security.",
            )

    if not _SYMBOL_RE.search(password):
        report(
            "charset", Severity.INFO,
            "No special characters. Adding symbols (!@#$%^&*) significantly "
            "increases strength.",
        )

    return weaknesses
