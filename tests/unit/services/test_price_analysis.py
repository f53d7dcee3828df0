# tests/unit/services/test_price_analysis.py
from datetime import datetime, timedelta, timezone

import pytest

from agricoventas.services.price_analysis import (
    detect_anomalies,
    moving_average,
    percent_change,
    price_trend,
    volatility,
)

START = datetime(2026, 1, 1, tzinfo=timezone.utc)


def days(n):
    return [START + timedelta(days=i) for i in range(n)]


def test_moving_average():
    assert moving_average([10, 20, 30, 40], 2) == [15, 25, 35]
    assert moving_average([10], 3) == []


def test_volatility():
    assert volatility([5]) == 0.0
    assert volatility([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0


def test_price_trend_increasing():
    result = price_trend([100, 110, 120, 130], days(4))

    assert result["trend"] == "increasing"
    assert result["slope"] == pytest.approx(10.0)
    assert result["correlation"] == pytest.approx(1.0)


def test_price_trend_decreasing_and_stable():
    assert price_trend([130, 120, 110], days(3))["trend"] == "decreasing"
    assert price_trend([100, 100, 100], days(3))["trend"] == "stable"


def test_price_trend_same_timestamp_is_stable():
    same_day = [START, START, START]

    assert price_trend([100, 120, 140], same_day) == {"slope": 0.0, "correlation": 0.0, "trend": "stable"}


def test_price_trend_mixed_naive_and_aware_dates():
    naive = [d.replace(tzinfo=None) for d in days(2)]

    assert price_trend([100, 200], [naive[0], days(2)[1]])["trend"] == "increasing"


def test_percent_change():
    assert percent_change(100, 120) == 20.0
    assert percent_change(80, 60) == -25.0
    assert percent_change(0, 60) == 0.0


def test_detect_anomalies():
    prices = [100, 101, 99, 100, 102, 98, 100, 500]

    assert detect_anomalies(prices) == [7]
    assert detect_anomalies([100, 100, 100]) == []
