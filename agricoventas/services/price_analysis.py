# agricoventas/services/price_analysis.py
"""
Small statistics helpers for product price series.
"""
import math
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Union

STABLE_SLOPE = 0.01


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def moving_average(prices: Sequence[float], window: int) -> List[float]:
    """Simple moving average; empty when the series is shorter than the window."""
    if window <= 0 or len(prices) < window:
        return []
    return [
        round(sum(prices[i - window + 1:i + 1]) / window, 2)
        for i in range(window - 1, len(prices))
    ]


def volatility(prices: Sequence[float]) -> float:
    """Population standard deviation, rounded to cents."""
    if len(prices) < 2:
        return 0.0
    mean = sum(prices) / len(prices)
    variance = sum((price - mean) ** 2 for price in prices) / len(prices)
    return round(math.sqrt(variance), 2)


def price_trend(prices: Sequence[float], dates: Sequence[datetime]) -> Dict[str, Union[float, str]]:
    """
    Least-squares slope of price against days elapsed.

    Returns:
        ``{"slope", "correlation", "trend"}`` where trend is one of
        increasing, decreasing or stable
    """
    if len(prices) < 2 or len(prices) != len(dates):
        return {"slope": 0.0, "correlation": 0.0, "trend": "stable"}

    stamps = [_as_naive_utc(d) for d in dates]
    x = [(d - stamps[0]).total_seconds() / 86400 for d in stamps]
    y = list(prices)
    n = len(x)

    sum_x = sum(x)
    sum_y = sum(y)
    sum_xy = sum(a * b for a, b in zip(x, y))
    sum_xx = sum(a * a for a in x)
    sum_yy = sum(b * b for b in y)

    denom_x = n * sum_xx - sum_x ** 2
    if denom_x == 0:
        return {"slope": 0.0, "correlation": 0.0, "trend": "stable"}

    numerator = n * sum_xy - sum_x * sum_y
    slope = numerator / denom_x
    denom = math.sqrt(denom_x * (n * sum_yy - sum_y ** 2)) if n * sum_yy - sum_y ** 2 > 0 else 0
    correlation = numerator / denom if denom else 0.0

    if abs(slope) < STABLE_SLOPE:
        trend = "stable"
    elif slope > 0:
        trend = "increasing"
    else:
        trend = "decreasing"

    return {
        "slope": round(slope, 3),
        "correlation": round(correlation, 3),
        "trend": trend,
    }


def percent_change(old: float, new: float) -> float:
    if not old:
        return 0.0
    return round((new - old) / old * 100, 2)


def detect_anomalies(prices: Sequence[float], threshold: float = 2.0) -> List[int]:
    """Indices whose z-score exceeds the threshold."""
    if len(prices) < 3:
        return []
    mean = sum(prices) / len(prices)
    std_dev = volatility(prices)
    if std_dev == 0:
        return []
    return [i for i, price in enumerate(prices) if abs((price - mean) / std_dev) > threshold]
