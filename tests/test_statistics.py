"""Unit tests for response-time statistics."""

import pytest

from src.response_time.domain import LatencySummary, ResponsePair, aggregate, summarize
from src.response_time.domain.statistics import median, percentile_90


def _pair(user_id: int, minutes: float, entity_id: int = 1) -> ResponsePair:
    return ResponsePair(
        entity_id=entity_id,
        incoming_at=0,
        outgoing_at=int(minutes * 60),
        response_minutes=minutes,
        responsible_user_id=user_id,
    )


class TestMedian:
    """Tests for the median."""

    def test_even_count_averages_middle(self) -> None:
        assert median([2, 4, 6, 8]) == 5

    def test_odd_count_takes_middle(self) -> None:
        assert median([2, 4, 6]) == 4

    def test_empty(self) -> None:
        assert median([]) == 0


class TestPercentile90:
    """Tests for the 90th percentile."""

    def test_single_value(self) -> None:
        assert percentile_90([7.5]) == 7.5

    def test_ten_values_clamped_to_last(self) -> None:
        assert percentile_90(list(range(1, 11))) == 10

    def test_twenty_values(self) -> None:
        assert percentile_90(list(range(1, 21))) == 19

    def test_empty(self) -> None:
        assert percentile_90([]) == 0


class TestSummarize:
    """Tests for one group's statistics."""

    def test_empty_is_all_zero(self) -> None:
        summary = summarize([], sla_minutes=10)
        assert summary == LatencySummary()
        assert summary.sla_rate == 0

    def test_basic_statistics(self) -> None:
        summary = summarize([15, 5, 10], sla_minutes=10)

        assert summary.count == 3
        assert summary.mean == 10
        assert summary.median == 10
        assert summary.p90 == 15
        assert summary.within_sla == 2
        assert summary.sla_rate == pytest.approx(66.6667, rel=1e-4)

    def test_threshold_inclusive(self) -> None:
        summary = summarize([10.0], sla_minutes=10)
        assert summary.within_sla == 1
        assert summary.sla_rate == 100

    def test_values_stay_unrounded(self) -> None:
        summary = summarize([1.25, 1.3], sla_minutes=10)
        assert summary.mean == pytest.approx(1.275)


class TestAggregate:
    """Tests for per-user and overall aggregation."""

    def test_per_user_and_overall(self) -> None:
        pairs = [_pair(2, 4), _pair(1, 20), _pair(2, 6), _pair(1, 2)]

        user_metrics, overall = aggregate(pairs, sla_minutes=10)

        assert [metric.user_id for metric in user_metrics] == [1, 2]
        by_user = {metric.user_id: metric.summary for metric in user_metrics}
        assert by_user[1].count == 2
        assert by_user[1].median == 11
        assert by_user[1].within_sla == 1
        assert by_user[2].mean == 5
        assert by_user[2].sla_rate == 100
        assert overall.count == 4
        assert overall.median == 5
        assert overall.within_sla == 3

    def test_user_counts_sum_to_overall(self) -> None:
        pairs = [_pair(user_id % 3, user_id) for user_id in range(12)]

        user_metrics, overall = aggregate(pairs, sla_minutes=5)

        assert sum(metric.summary.count for metric in user_metrics) == overall.count
        assert sum(metric.summary.within_sla for metric in user_metrics) == overall.within_sla

    def test_no_pairs(self) -> None:
        user_metrics, overall = aggregate([], sla_minutes=10)
        assert user_metrics == []
        assert overall.count == 0
        assert overall.mean == 0


class TestResponsePair:
    """Tests for the pair entity."""

    def test_negative_minutes_rejected(self) -> None:
        with pytest.raises(ValueError):
            _pair(1, -1)
