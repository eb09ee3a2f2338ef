"""
Response-Time Statistics
========================

Reduces response pairs to per-user and overall latency statistics.

Values stay unrounded here; rounding for display happens in the DTO layer.
"""

from math import floor
from typing import Dict, Iterable, List, Sequence, Tuple

from src.response_time.domain.entities import LatencySummary, ResponsePair, UserLatency


def median(sorted_values: Sequence[float]) -> float:
    """Median of an ascending sequence; 0 when empty."""
    n = len(sorted_values)
    if n == 0:
        return 0.0
    middle = n // 2
    if n % 2 == 0:
        return (sorted_values[middle - 1] + sorted_values[middle]) / 2
    return sorted_values[middle]


def percentile_90(sorted_values: Sequence[float]) -> float:
    """Element at floor(0.9 * n), clamped to the last index; 0 when empty."""
    n = len(sorted_values)
    if n == 0:
        return 0.0
    return sorted_values[min(floor(0.9 * n), n - 1)]


def summarize(values: Iterable[float], sla_minutes: int) -> LatencySummary:
    """Descriptive statistics for one group of response times."""
    ordered = sorted(values)
    count = len(ordered)
    if count == 0:
        return LatencySummary()

    within_sla = sum(1 for value in ordered if value <= sla_minutes)

    return LatencySummary(
        count=count,
        mean=sum(ordered) / count,
        median=median(ordered),
        p90=percentile_90(ordered),
        within_sla=within_sla,
        sla_rate=within_sla / count * 100,
    )


def aggregate(
    pairs: Iterable[ResponsePair],
    sla_minutes: int
) -> Tuple[List[UserLatency], LatencySummary]:
    """
    Per-user statistics (ordered by user id) and the overall statistics.

    Pairs are grouped by the user responsible when the customer wrote in.
    """
    by_user: Dict[int, List[float]] = {}
    everything: List[float] = []

    for pair in pairs:
        by_user.setdefault(pair.responsible_user_id, []).append(pair.response_minutes)
        everything.append(pair.response_minutes)

    user_metrics = [
        UserLatency(user_id=user_id, summary=summarize(values, sla_minutes))
        for user_id, values in sorted(by_user.items())
    ]
    return user_metrics, summarize(everything, sla_minutes)
