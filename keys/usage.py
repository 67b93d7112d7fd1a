"""
Usage accounting for API keys.

Pure derivations from (usage, usage_limit); nothing here holds state.
The dashboard colours its progress bar from threshold_state() and sizes it
from usage_percentage().
"""

from enum import Enum
from typing import Any, Dict

from keys.domain import ApiKey

WARNING_RATIO = 0.8

# Largest value the usage and usage_limit INTEGER columns hold
MAX_USAGE_LIMIT = 2**31 - 1

# Offered by the create-key dialog
USAGE_LIMIT_PRESETS = (100, 500, 1000, 5000, 10000)


class ThresholdState(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    EXCEEDED = "exceeded"


def _check_limit(usage_limit: int) -> None:
    if usage_limit < 1:
        raise ValueError(f"usage_limit must be >= 1, got {usage_limit}")


def threshold_state(usage: int, usage_limit: int, warning_ratio: float = WARNING_RATIO) -> ThresholdState:
    """
    Classify usage against its limit.

    Examples:
        >>> threshold_state(0, 1000)
        <ThresholdState.NORMAL: 'normal'>
        >>> threshold_state(800, 1000)
        <ThresholdState.WARNING: 'warning'>
        >>> threshold_state(1000, 1000)
        <ThresholdState.EXCEEDED: 'exceeded'>
    """
    _check_limit(usage_limit)
    if usage >= usage_limit:
        return ThresholdState.EXCEEDED
    if usage >= warning_ratio * usage_limit:
        return ThresholdState.WARNING
    return ThresholdState.NORMAL


def usage_percentage(usage: int, usage_limit: int) -> float:
    """Share of the limit consumed, capped at 100 regardless of overage."""
    _check_limit(usage_limit)
    return min(usage / usage_limit * 100, 100.0)


def summarize_usage(key: ApiKey, warning_ratio: float = WARNING_RATIO) -> Dict[str, Any]:
    return {
        "usage": key.usage,
        "usage_limit": key.usage_limit,
        "remaining": max(key.usage_limit - key.usage, 0),
        "percentage": round(usage_percentage(key.usage, key.usage_limit), 2),
        "state": threshold_state(key.usage, key.usage_limit, warning_ratio).value,
    }
