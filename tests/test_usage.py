from datetime import datetime, timezone

import pytest

from keys.domain import ApiKey
from keys.usage import (
    USAGE_LIMIT_PRESETS,
    ThresholdState,
    summarize_usage,
    threshold_state,
    usage_percentage,
)


@pytest.mark.parametrize("usage, expected", [
    (0, ThresholdState.NORMAL),
    (799, ThresholdState.NORMAL),
    (800, ThresholdState.WARNING),
    (999, ThresholdState.WARNING),
    (1000, ThresholdState.EXCEEDED),
    (1500, ThresholdState.EXCEEDED),
])
def test_threshold_state(usage, expected):
    assert threshold_state(usage, 1000) is expected


def test_custom_warning_ratio():
    assert threshold_state(500, 1000, warning_ratio=0.5) is ThresholdState.WARNING
    assert threshold_state(499, 1000, warning_ratio=0.5) is ThresholdState.NORMAL


def test_percentage_is_capped():
    assert usage_percentage(250, 1000) == 25.0
    assert usage_percentage(1000, 1000) == 100.0
    assert usage_percentage(5000, 1000) == 100.0


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_rejected(limit):
    with pytest.raises(ValueError):
        usage_percentage(1, limit)
    with pytest.raises(ValueError):
        threshold_state(1, limit)


def test_summarize_usage():
    key = ApiKey(
        id="k", name="n", secret="nani_s",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        usage=801, usage_limit=1000,
    )

    assert summarize_usage(key) == {
        "usage": 801,
        "usage_limit": 1000,
        "remaining": 199,
        "percentage": 80.1,
        "state": "warning",
    }


def test_presets():
    assert USAGE_LIMIT_PRESETS == (100, 500, 1000, 5000, 10000)
