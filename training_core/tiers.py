# training_core/tiers.py
from __future__ import annotations
from typing import Iterable, Optional, Tuple

from . import config

_MESSAGES = {
    "threat-hunting": {
        "excellent": "Excellent! You have strong threat detection skills.",
        "good": "Good work! You identified most threats correctly.",
        "fair": "Not bad, but there's room for improvement in threat analysis.",
        "needs practice": "Keep practicing! Threat detection requires experience and attention to detail.",
    },
    "phishing-awareness": {
        "excellent": "Excellent! You have strong phishing detection skills.",
        "good": "Good work! You caught most phishing attempts.",
        "fair": "Not bad, but be more careful with suspicious emails.",
        "needs practice": "Keep practicing! Phishing emails can be very convincing.",
    },
    "password-security": {
        "excellent": "Excellent! You have strong password security knowledge.",
        "good": "Good work! You understand most password security principles.",
        "fair": "Not bad, but review password security best practices.",
        "needs practice": "Keep learning! Password security is crucial for cybersecurity.",
    },
    "network-security": {
        "excellent": "Excellent! You have strong network security knowledge.",
        "good": "Good work! You understand most network security concepts.",
        "fair": "Not bad, but review network security fundamentals.",
        "needs practice": "Keep studying! Network security is crucial for cybersecurity professionals.",
    },
}

_GENERIC = {
    "excellent": "Excellent work!",
    "good": "Good work!",
    "fair": "Not bad, but there's room for improvement.",
    "needs practice": "Keep practicing!",
}


def feedback_tier(percentage: float, thresholds: Optional[Iterable[Tuple[int, str]]] = None) -> str:
    """Map a 0..100 percentage onto the tier ladder.

    Each threshold is closed below and open above: with the default ladder
    90 is "excellent", 89 is "good", 59 is "needs practice".
    """
    s = float(percentage)
    ladder = sorted(thresholds if thresholds is not None else config.FEEDBACK_TIERS,
                    key=lambda t: t[0], reverse=True)
    for lo, label in ladder:
        if s >= lo:
            return label
    return config.FEEDBACK_FALLBACK


def feedback_message(module_id: str, tier: str) -> str:
    return _MESSAGES.get(module_id, {}).get(tier) or _GENERIC.get(tier, "")


def encouragement(score: float) -> str:
    s = float(score)
    if s >= 90: return "Outstanding work! You're ready for the next challenge."
    if s >= 75: return "Great job! Let's continue building your skills."
    if s >= 60: return "Good progress! The next module will help strengthen your knowledge."
    return "Keep learning! Each module builds important cybersecurity skills."
