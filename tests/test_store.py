"""
Tests for task normalization and the value objects in store.py.

Backend records mix camelCase keys, bare strings and lists for the same
multi-valued field, and occasionally malformed dates or scores. Everything
must come out of Task.from_dict in one shape.
"""

from datetime import date, datetime, timezone

import pytest

from src.core.store import (
    AdvancedSearch,
    AnalyticsSnapshot,
    DateFilter,
    FilterSet,
    Task,
    WeekConfig,
    WeekLabel,
    category_values,
    classify_score,
    normalize_field,
    parse_timestamp,
    percent,
    to_list,
)


class TestToList:
    """Dual-shape categorical adapter."""

    def test_bare_string_becomes_singleton(self):
        assert to_list("Installation") == ["Installation"]

    def test_list_keeps_order(self):
        assert to_list(["B", "A", "C"]) == ["B", "A", "C"]

    def test_blank_and_none_entries_dropped(self):
        assert to_list(["A", "", None, "  ", "B"]) == ["A", "B"]

    def test_missing_value_is_empty(self):
        assert to_list(None) == []
        assert to_list("") == []


class TestTaskFromDict:
    """Normalization of backend records."""

    def test_camel_case_keys_are_mapped(self):
        task = Task.from_dict(
            {
                "_id": "abc",
                "teamName": "Team 7",
                "subReason": "Delay",
                "evaluationScore": "9",
                "interviewDate": "2025-03-04T10:00:00Z",
            }
        )

        assert task.id == "abc"
        assert task.team_name == "Team 7"
        assert task.sub_reason == ["Delay"]
        assert task.evaluation_score == 9.0
        assert task.interview_date == datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)

    def test_missing_id_uses_position(self):
        assert Task.from_dict({}, index=4).id == "task_4"

    def test_malformed_values_do_not_raise(self):
        task = Task.from_dict(
            {"interviewDate": "not a date", "evaluationScore": "n/a", "reason": None}
        )

        assert task.interview_date is None
        assert task.evaluation_score is None
        assert task.reason == []

    def test_naive_timestamps_are_utc(self):
        ts = parse_timestamp("2025-01-02T08:30:00")
        assert ts.tzinfo is not None
        assert ts.utcoffset().total_seconds() == 0

    def test_empty_scalar_is_none(self):
        task = Task.from_dict({"priority": "  ", "status": "Todo"})
        assert task.priority is None
        assert task.status == "Todo"

    def test_raw_record_excluded_from_dict(self):
        task = Task.from_dict({"id": "t1", "reason": "A"})
        data = task.to_dict()
        assert "raw" not in data
        assert data["reason"] == ["A"]


class TestHelpers:
    """Scoring and field-name helpers."""

    @pytest.mark.parametrize(
        "score,segment",
        [(10, "promoter"), (9, "promoter"), (8, "neutral"), (7, "neutral"),
         (6, "detractor"), (0, "detractor"), (None, None)],
    )
    def test_classify_score(self, score, segment):
        assert classify_score(score) == segment

    def test_percent_rounds_half_up(self):
        # 1/8 = 12.5% -> 13 (banker's rounding would give 12)
        assert percent(1, 8) == 13
        assert percent(3, 8) == 38

    def test_percent_zero_denominator(self):
        assert percent(3, 0) == 0

    def test_normalize_field_accepts_both_spellings(self):
        assert normalize_field("rootCause") == "root_cause"
        assert normalize_field("root_cause") == "root_cause"

    def test_normalize_field_rejects_unknown(self):
        with pytest.raises(ValueError):
            normalize_field("favouriteColour")

    def test_category_values_defaults_to_unknown(self):
        task = Task.from_dict({"id": "t1"})
        assert category_values(task, "reason") == ["Unknown"]
        assert category_values(task, "governorate") == ["Unknown"]


class TestValueObjects:
    """Configuration and filter value objects."""

    def test_week_config_rejects_bad_start_day(self):
        with pytest.raises(ValueError):
            WeekConfig(week_start_day=7)

    def test_week_config_from_camel_case(self):
        config = WeekConfig.from_dict(
            {"weekStartDay": 1, "week1StartDate": "2025-01-06", "startWeekNumber": 2}
        )
        assert config.week_start_day == 1
        assert config.week1_start_date == date(2025, 1, 6)
        assert config.calibration_end == date(2025, 1, 12)
        assert config.calibrated

    def test_week_config_from_dict_wraps_errors(self):
        with pytest.raises(ValueError):
            WeekConfig.from_dict({"weekStartDay": "monday"})

    def test_week_labels_order_by_year_then_week(self):
        labels = [WeekLabel(2025, 1), WeekLabel(2024, 52), WeekLabel(2025, 2)]
        assert sorted(labels) == [WeekLabel(2024, 52), WeekLabel(2025, 1), WeekLabel(2025, 2)]
        assert WeekLabel(2025, 7).key == "2025-W7"
        assert WeekLabel(2025, 7).display == "W7"

    def test_unknown_date_type_rejected(self):
        with pytest.raises(ValueError):
            DateFilter(type="yesterday")

    def test_date_filter_accepts_ui_preset_names(self):
        assert DateFilter.from_dict({"type": "thisWeek"}).type == "this_week"

    def test_filter_set_top_level_selects(self):
        filter_set = FilterSet.from_dict({"priority": "High", "teamName": "Team 7"})
        assert filter_set.selects == {"priority": "High", "team_name": "Team 7"}

    def test_filter_set_is_replaced_not_mutated(self):
        original = FilterSet()
        updated = original.with_select("status", "Closed")

        assert original.selects == {}
        assert updated.selects == {"status": "Closed"}

    def test_advanced_search_accepts_flat_or_nested_fields(self):
        nested = AdvancedSearch.from_dict({"active": True, "fields": {"teamName": "Alpha"}})
        flat = AdvancedSearch.from_dict({"active": True, "teamName": "Alpha"})
        assert nested == flat == AdvancedSearch(active=True, fields={"team_name": "Alpha"})

    @pytest.mark.parametrize("data", [{"active": True, "fields": ["x"]}, ["x"], "x"])
    def test_malformed_advanced_search_rejected(self, data):
        with pytest.raises(ValueError):
            AdvancedSearch.from_dict(data)

    def test_snapshot_requires_aware_timestamp(self):
        with pytest.raises(ValueError):
            AnalyticsSnapshot(snapshot_id="x", snapshot_version=1, timestamp=datetime(2025, 1, 1))
