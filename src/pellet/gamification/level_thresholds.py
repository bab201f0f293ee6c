"""Level thresholds and computation.

These values MUST match the mobile client's level table exactly.
Level N is reached at LEVEL_THRESHOLDS[N - 1] cumulative experience.
"""

from __future__ import annotations

from bisect import bisect_right

LEVEL_THRESHOLDS: list[int] = [
    0,      # Level 1
    100,    # Level 2
    250,    # Level 3
    500,    # Level 4
    1000,   # Level 5
    2000,   # Level 6
    3500,   # Level 7
    5000,   # Level 8
    7500,   # Level 9
    10000,  # Level 10
    15000,  # Level 11
    20000,  # Level 12
    30000,  # Level 13
    50000,  # Level 14
    75000,  # Level 15
]

MAX_LEVEL = len(LEVEL_THRESHOLDS)


def level_for(experience: int) -> int:
    """Level for a cumulative experience total, saturating at MAX_LEVEL."""
    # lo=1: the level-1 floor of 0 is not a crossing
    return bisect_right(LEVEL_THRESHOLDS, experience, lo=1)


def compute_level(experience: int) -> dict:
    """Compute level info from cumulative experience.

    Must match the client's getExpForNextLevel() progress bar.
    """
    level = level_for(experience)
    current = LEVEL_THRESHOLDS[level - 1]

    # At max level the bar is full and next == current
    if level >= MAX_LEVEL:
        return {
            "level": level,
            "experience": experience,
            "exp_into_level": experience - current,
            "exp_for_level": 0,
            "next_level": level,
            "next_threshold": current,
            "progress": 100,
        }

    next_threshold = LEVEL_THRESHOLDS[level]
    span = next_threshold - current
    into = experience - current
    return {
        "level": level,
        "experience": experience,
        "exp_into_level": into,
        "exp_for_level": span,
        "next_level": level + 1,
        "next_threshold": next_threshold,
        "progress": min(100, into * 100 // span),
    }
