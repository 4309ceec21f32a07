"""
Tests for the KPI summary, including the unaudited sample rule.
"""

import pytest

from src.core.kpis import expected_samples, summarize, unaudited_sample_promoter_rate
from src.core.store import NPSTargets, Task, WeekLabel


def _scored(scores):
    return [
        Task.from_dict({"id": f"s{i}", "evaluationScore": score})
        for i, score in enumerate(scores)
    ]


class TestSummary:
    """Headline metrics."""

    def test_dataset_summary(self, tasks):
        summary = summarize(tasks)

        assert summary.total == 6
        assert summary.scored == 5
        assert (summary.promoters, summary.neutrals, summary.detractors) == (2, 1, 2)
        assert summary.validated == 4
        assert summary.compliance_rate == 66.7
        assert summary.promoter_rate == 33
        assert summary.neutral_rate == 17
        assert summary.detractor_rate == 33
        assert summary.nps == 0
        assert summary.avg_score == 7.4

    def test_unscored_tasks_in_no_segment(self):
        summary = summarize(_scored([None, None, 10]))
        assert summary.promoters == 1
        assert summary.detractors == 0
        assert summary.avg_score == 10.0

    def test_empty_input_is_all_zero(self):
        summary = summarize([])

        assert summary.total == 0
        assert summary.compliance_rate == 0.0
        assert summary.promoter_rate == 0
        assert summary.avg_score == 0.0
        assert summary.nps == 0
        assert not summary.promoter_alarm
        assert not summary.detractor_alarm

    def test_alarms_use_targets(self):
        healthy = summarize(_scored([10] * 19 + [3]), targets=NPSTargets(promoters=75, detractors=9))
        assert healthy.promoter_rate == 95
        assert healthy.detractor_rate == 5
        assert not healthy.promoter_alarm
        assert not healthy.detractor_alarm

        unhealthy = summarize(_scored([10, 8, 2]), targets=NPSTargets(promoters=75, detractors=9))
        assert unhealthy.promoter_alarm
        assert unhealthy.detractor_alarm

    @pytest.mark.parametrize(
        "scores",
        [[10, 9, 8, 7, 6, 0], [None, 5], [10], [7, 7, None], [0, 0, 0]],
    )
    def test_rates_within_bounds(self, scores):
        summary = summarize(_scored(scores))
        for rate in (
            summary.compliance_rate,
            summary.promoter_rate,
            summary.neutral_rate,
            summary.detractor_rate,
        ):
            assert 0 <= rate <= 100
        assert 0 <= summary.avg_score <= 10


class TestUnauditedSamples:
    """Sampled customers that were never audited count as promoters."""

    def test_nps_adjustment(self):
        tasks = _scored([10] * 40 + [3] * 10 + [8] * 30)

        summary = summarize(tasks, total_expected_samples=100)

        assert summary.total == 80
        assert summary.promoter_rate == 60
        assert summary.detractor_rate == 10
        assert summary.neutral_rate == 30
        assert summary.nps == 50

    def test_named_rule(self):
        assert unaudited_sample_promoter_rate(40, 80, 100) == 60

    def test_not_applied_when_sample_not_larger(self, tasks):
        assert summarize(tasks, total_expected_samples=3).promoter_rate == 33
        assert unaudited_sample_promoter_rate(2, 6, 6) == 33


class TestExpectedSamples:
    """Summing externally supplied weekly sample sizes."""

    SAMPLES = [
        {"year": 2025, "weekNumber": 10, "sampleSize": 50},
        {"year": 2025, "week_number": 11, "sample_size": 30},
        {"year": "next", "weekNumber": 12, "sampleSize": 5},
        "garbage",
    ]

    def test_sums_matching_weeks(self):
        assert expected_samples(self.SAMPLES, {WeekLabel(2025, 10)}) == 50

    def test_all_weeks_when_unbounded(self):
        assert expected_samples(self.SAMPLES) == 80

    def test_no_matching_weeks(self):
        assert expected_samples(self.SAMPLES, {WeekLabel(2024, 10)}) == 0
