"""
Tests for the predicate filter engine.

Covers each predicate group on the shared dataset plus the two algebraic
properties the dashboard relies on: filtering twice changes nothing, and
adding a predicate never grows the result.
"""

from datetime import date

import pytest

from src.core.filters import filter_tasks, period_labels
from src.core.store import AdvancedSearch, DateFilter, FilterSet, Task, WeekLabel
from src.core.week_calendar import WeekCalendar


def ids(tasks):
    return [t.id for t in tasks]


FILTER_SETS = [
    FilterSet(),
    FilterSet(selects={"priority": "High"}),
    FilterSet(selects={"governorate": "Cairo", "status": "Todo"}),
    FilterSet(text={"team": "fiber"}),
    FilterSet(multi={"reason": "speed"}),
    FilterSet(date=DateFilter(type="custom", start=date(2025, 3, 1), end=date(2025, 3, 31))),
    FilterSet(search="SL-100", segment="promoters"),
    FilterSet(advanced=AdvancedSearch(active=True, fields={"slid": "1003"})),
]


class TestScenarios:
    """Basic select behavior."""

    def test_basic_priority_filter(self):
        tasks = [
            Task.from_dict({"id": "1", "priority": "High", "status": "Todo"}),
            Task.from_dict({"id": "2", "priority": "Low", "status": "Closed"}),
        ]

        result = filter_tasks(tasks, FilterSet.from_dict({"priority": "High"}))

        assert ids(result) == ["1"]

    def test_all_disables_select(self, tasks):
        result = filter_tasks(tasks, FilterSet(selects={"status": "all", "priority": ""}))
        assert len(result) == len(tasks)

    def test_missing_priority_counts_as_normal(self, tasks):
        result = filter_tasks(tasks, FilterSet(selects={"priority": "Normal"}))
        assert ids(result) == ["t3", "t5"]

    def test_missing_field_fails_active_select(self, tasks):
        result = filter_tasks(tasks, FilterSet(selects={"validation_status": "Validated"}))
        assert "t5" not in ids(result)

    def test_selects_are_anded(self, tasks):
        result = filter_tasks(tasks, FilterSet(selects={"governorate": "Cairo", "status": "Todo"}))
        assert ids(result) == ["t1", "t3"]

    def test_output_preserves_input_order(self, tasks):
        reversed_tasks = list(reversed(tasks))
        result = filter_tasks(reversed_tasks, FilterSet(selects={"priority": "High"}))
        assert ids(result) == ["t4", "t1"]


class TestTextFilters:
    """Column substring filters and alias groups."""

    def test_location_alias(self, tasks):
        assert ids(filter_tasks(tasks, FilterSet(text={"location": "giz"}))) == ["t2", "t5"]

    def test_location_alias_matches_district(self, tasks):
        assert ids(filter_tasks(tasks, FilterSet(text={"location": "MAADI"}))) == ["t3"]

    def test_team_alias_matches_company(self, tasks):
        result = filter_tasks(tasks, FilterSet(text={"team": "fiber"}))
        assert ids(result) == ["t1", "t3", "t4", "t6"]

    def test_customer_alias_matches_contact(self, tasks):
        assert ids(filter_tasks(tasks, FilterSet(text={"customer": "0100000002"}))) == ["t2"]

    def test_multi_valued_substring(self, tasks):
        assert ids(filter_tasks(tasks, FilterSet(multi={"reason": "speed"}))) == ["t1", "t3", "t5"]

    def test_multi_valued_empty_list_excluded(self, tasks):
        assert ids(filter_tasks(tasks, FilterSet(multi={"rootCause": "line"}))) == ["t1", "t3"]


class TestDateFilters:
    """Interview date predicates."""

    def test_custom_range_is_inclusive(self, tasks):
        date_filter = DateFilter(type="custom", start=date(2025, 3, 4), end=date(2025, 3, 5))
        assert ids(filter_tasks(tasks, FilterSet(date=date_filter))) == ["t1", "t2"]

    def test_custom_range_with_missing_bound_is_noop(self, tasks):
        date_filter = DateFilter(type="custom", start=date(2025, 3, 4))
        assert len(filter_tasks(tasks, FilterSet(date=date_filter))) == len(tasks)

    def test_this_week(self, tasks):
        date_filter = DateFilter(type="this_week", today=date(2025, 3, 12))
        assert ids(filter_tasks(tasks, FilterSet(date=date_filter))) == ["t3", "t4"]

    def test_latest_three_weeks_skips_malformed_dates(self, tasks):
        date_filter = DateFilter(type="latest_3_weeks", today=date(2025, 3, 12))
        result = filter_tasks(tasks, FilterSet(date=date_filter))
        assert ids(result) == ["t1", "t2", "t3", "t4", "t6"]

    def test_specific_week(self, tasks):
        date_filter = DateFilter(type="week", year=2025, week=10)
        assert ids(filter_tasks(tasks, FilterSet(date=date_filter))) == ["t1", "t2"]

    def test_custom_month(self, tasks):
        march = DateFilter(type="month", year=2025, month=2)
        february = DateFilter(type="month", year=2025, month=1)

        assert ids(filter_tasks(tasks, FilterSet(date=march))) == ["t1", "t2", "t3", "t4", "t6"]
        assert filter_tasks(tasks, FilterSet(date=february)) == []

    def test_week_filter_requires_week(self, tasks):
        with pytest.raises(ValueError):
            filter_tasks(tasks, FilterSet(date=DateFilter(type="week", year=2025)))

    def test_period_labels(self):
        calendar = WeekCalendar()
        assert period_labels(DateFilter(), calendar) is None
        assert period_labels(DateFilter(type="week", year=2025, week=3), calendar) == {
            WeekLabel(2025, 3)
        }


class TestSearch:
    """Advanced search bag, global search and score segments."""

    def test_inactive_advanced_search_is_ignored(self, tasks):
        advanced = AdvancedSearch(active=False, fields={"slid": "1003"})
        assert len(filter_tasks(tasks, FilterSet(advanced=advanced))) == len(tasks)

    def test_active_advanced_search(self, tasks):
        advanced = AdvancedSearch(active=True, fields={"slid": "1003"})
        assert ids(filter_tasks(tasks, FilterSet(advanced=advanced))) == ["t3"]

    def test_advanced_team_name_matches_either_team_field(self, tasks):
        advanced = AdvancedSearch.from_dict({"active": True, "teamName": "gamma"})
        assert ids(filter_tasks(tasks, FilterSet(advanced=advanced))) == ["t4"]

    def test_global_search_covers_feedback(self, tasks):
        assert ids(filter_tasks(tasks, FilterSet(search="router"))) == ["t6"]

    @pytest.mark.parametrize(
        "segment,expected",
        [
            ("detractors", ["t1", "t6"]),
            ("neutrals", ["t2"]),
            ("promoters", ["t3", "t4"]),
        ],
    )
    def test_score_segment(self, tasks, segment, expected):
        assert ids(filter_tasks(tasks, FilterSet(segment=segment))) == expected

    def test_unknown_segment_rejected(self, tasks):
        with pytest.raises(ValueError):
            filter_tasks(tasks, FilterSet(segment="fans"))


class TestProperties:
    """Algebraic properties of filtering."""

    @pytest.mark.parametrize("filter_set", FILTER_SETS)
    def test_idempotent(self, tasks, filter_set):
        once = filter_tasks(tasks, filter_set)
        twice = filter_tasks(once, filter_set)
        assert ids(twice) == ids(once)

    @pytest.mark.parametrize("filter_set", FILTER_SETS)
    def test_adding_a_predicate_never_grows_result(self, tasks, filter_set):
        base = filter_tasks(tasks, filter_set)
        narrowed = filter_tasks(tasks, filter_set.with_select("team_company", "FiberCo"))
        assert len(narrowed) <= len(base)
        assert set(ids(narrowed)) <= set(ids(base))

    def test_input_not_mutated(self, tasks):
        before = ids(tasks)
        filter_tasks(tasks, FilterSet(selects={"priority": "High"}))
        assert ids(tasks) == before
