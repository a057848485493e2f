"""Password analytics: entropy, vault hygiene, advice and progress."""

from .entropy import (
    Complexity,
    CrackTime,
    PasswordAnalysis,
    PasswordStrength,
    analyze_password,
    calculate_entropy,
    calculate_effective_entropy,
    detect_repeated_substrings,
    estimate_crack_time,
    explain_weakness,
    strength_meter,
)
from .hygiene import (
    ReuseMap,
    check_reuse,
    calculate_health_score,
    calculate_radar_metrics,
    count_weak_labels,
    is_weak_label,
)
from .advisor import get_smart_tips, generate_security_report
from .generator import generate_password
from .progress import Progress, calculate_progress

__all__ = [
    "Complexity",
    "CrackTime",
    "PasswordAnalysis",
    "PasswordStrength",
    "analyze_password",
    "calculate_entropy",
    "calculate_effective_entropy",
    "detect_repeated_substrings",
    "estimate_crack_time",
    "explain_weakness",
    "strength_meter",
    "ReuseMap",
    "check_reuse",
    "calculate_health_score",
    "calculate_radar_metrics",
    "count_weak_labels",
    "is_weak_label",
    "get_smart_tips",
    "generate_security_report",
    "generate_password",
    "Progress",
    "calculate_progress",
]
