"""
Predicate Filter Engine.

Evaluates tasks against a FilterSet. Every active predicate group is compiled
once into a closure and the groups are AND-ed together:

1. Discrete selects (exact match, 'all' disables)
2. Column text filters (case-insensitive substring, with alias groups)
3. Multi-valued filters (substring against any list element)
4. Interview date range (gated by date.type != 'all')
5. Advanced search bag (only when explicitly activated)
6. Global search term and score segment

Filtering is pure and order-preserving, so filtering twice is a no-op and
adding a predicate can only shrink the result.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from src.core.store import (
    FIELD_ALIASES,
    DateFilter,
    FilterSet,
    Task,
    WeekLabel,
    classify_score,
    normalize_field,
)
from src.core.week_calendar import WeekCalendar

logger = logging.getLogger(__name__)

Predicate = Callable[[Task], bool]

ALL = "all"

# Column filters that search several fields (match if ANY field matches)
TEXT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "location": ("governorate", "district"),
    "team": ("team_name", "team_company"),
    "customer": ("customer_name", "contact_number"),
}

ADVANCED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "slid": ("slid",),
    "gaia_id": ("gaia_id",),
    "request_number": ("request_number",),
    "customer_name": ("customer_name",),
    "contact_number": ("contact_number",),
    "team_name": ("team_name", "team_company"),
}

SEARCH_FIELDS: Tuple[str, ...] = (
    "slid",
    "customer_name",
    "contact_number",
    "customer_feedback",
)

SEGMENTS = {
    "promoters": "promoter",
    "neutrals": "neutral",
    "detractors": "detractor",
}

# Priority is optional on older records; the tracker treats it as Normal
DEFAULT_PRIORITY = "Normal"


def is_active(value: Any) -> bool:
    """A filter value is active unless it is absent, empty or 'all'."""
    if value is None:
        return False
    text = str(value).strip()
    return bool(text) and text.lower() != ALL


def _alias_fields(key: str) -> Tuple[str, ...]:
    if key in TEXT_ALIASES:
        return TEXT_ALIASES[key]
    return (normalize_field(key),)


def _contains(task: Task, fields: Iterable[str], needle: str) -> bool:
    """Case-insensitive substring match against any value of any field."""
    needle = needle.lower()
    for name in fields:
        for value in task.values_of(name):
            if needle in value.lower():
                return True
    return False


def _select_predicate(field_name: str, value: Any) -> Predicate:
    expected = str(value).strip()

    if field_name == "priority":
        return lambda task: (task.priority or DEFAULT_PRIORITY) == expected

    return lambda task: expected in task.values_of(field_name)


def _substring_predicate(fields: Tuple[str, ...], value: Any) -> Predicate:
    needle = str(value).strip()
    return lambda task: _contains(task, fields, needle)


def resolve_date_bounds(
    date_filter: DateFilter, calendar: WeekCalendar
) -> Optional[Tuple[date, date]]:
    """
    Inclusive (start, end) bounds of a range-style date filter.

    Returns None for 'all', for 'week'/'month' (matched by label) and for a
    custom range missing either bound.
    """
    if date_filter.type == "custom":
        if date_filter.start is None or date_filter.end is None:
            return None
        return date_filter.start, date_filter.end
    if date_filter.type in ("this_week", "last_week", "latest_3_weeks"):
        return calendar.preset_range(date_filter.type, date_filter.today)
    return None


def period_labels(
    date_filter: DateFilter, calendar: WeekCalendar
) -> Optional[Set[WeekLabel]]:
    """
    Week labels covered by a date filter.

    Used to match externally supplied samples-per-week against the period.
    None means the whole history ('all', or an incomplete custom range).
    """
    if date_filter.type == "week":
        if date_filter.year is None or date_filter.week is None:
            raise ValueError("Week filter requires year and week")
        return {WeekLabel(date_filter.year, date_filter.week)}
    if date_filter.type == "month":
        if date_filter.year is None or date_filter.month is None:
            raise ValueError("Month filter requires year and month")
        return calendar.month_labels(date_filter.year, date_filter.month)

    bounds = resolve_date_bounds(date_filter, calendar)
    if bounds is None:
        return None
    return calendar.labels_between(*bounds)


def _date_predicate(
    date_filter: DateFilter, calendar: WeekCalendar
) -> Optional[Predicate]:
    if not date_filter.active:
        return None

    if date_filter.type in ("week", "month"):
        labels = period_labels(date_filter, calendar)
        assert labels is not None

        if date_filter.type == "week":
            return lambda task: calendar.week_label(task.interview_date) in labels

        target = (date_filter.year, date_filter.month)

        def in_month(task: Task) -> bool:
            label = calendar.week_label(task.interview_date)
            return label is not None and calendar.custom_month(label) == target

        return in_month

    bounds = resolve_date_bounds(date_filter, calendar)
    if bounds is None:
        return None
    start, end = bounds

    def in_range(task: Task) -> bool:
        # Missing or malformed interview dates never match
        if task.interview_date is None:
            return False
        return start <= task.interview_date.date() <= end

    return in_range


def _segment_predicate(segment: str) -> Optional[Predicate]:
    if not is_active(segment):
        return None
    if segment not in SEGMENTS:
        raise ValueError(f"Unknown score segment: {segment!r}")
    wanted = SEGMENTS[segment]
    return lambda task: classify_score(task.evaluation_score) == wanted


def build_predicates(
    filter_set: FilterSet, calendar: Optional[WeekCalendar] = None
) -> List[Predicate]:
    """
    Compile the active groups of a filter set into predicates.

    Parameters
    ----------
    filter_set : FilterSet
        Filters to compile
    calendar : Optional[WeekCalendar]
        Calendar for week-based date filters

    Returns
    -------
    List[Predicate]
        One predicate per active filter (empty when nothing is active)

    Raises
    ------
    ValueError
        On unknown field names, segments or incomplete week/month filters
    """
    calendar = calendar or WeekCalendar()
    predicates: List[Predicate] = []

    for field_name, value in filter_set.selects.items():
        if is_active(value):
            predicates.append(_select_predicate(normalize_field(field_name), value))

    for key, value in filter_set.text.items():
        if is_active(value):
            predicates.append(_substring_predicate(_alias_fields(key), value))

    for key, value in filter_set.multi.items():
        if is_active(value):
            predicates.append(_substring_predicate((normalize_field(key),), value))

    date_predicate = _date_predicate(filter_set.date, calendar)
    if date_predicate is not None:
        predicates.append(date_predicate)

    if filter_set.advanced.active:
        for key, value in filter_set.advanced.fields.items():
            if not is_active(value):
                continue
            name = FIELD_ALIASES.get(key, key)
            fields = ADVANCED_FIELDS.get(name) or (normalize_field(name),)
            predicates.append(_substring_predicate(fields, value))

    if is_active(filter_set.search):
        predicates.append(_substring_predicate(SEARCH_FIELDS, filter_set.search))

    segment_predicate = _segment_predicate(filter_set.segment)
    if segment_predicate is not None:
        predicates.append(segment_predicate)

    return predicates


def filter_tasks(
    tasks: List[Task],
    filter_set: FilterSet,
    calendar: Optional[WeekCalendar] = None,
) -> List[Task]:
    """
    Apply a filter set to a task collection.

    Parameters
    ----------
    tasks : List[Task]
        Tasks to filter (not modified)
    filter_set : FilterSet
        Active filters
    calendar : Optional[WeekCalendar]
        Calendar for date presets and week/month filters

    Returns
    -------
    List[Task]
        Tasks passing every active predicate, in input order
    """
    predicates = build_predicates(filter_set, calendar)
    if not predicates:
        return list(tasks)

    result = [task for task in tasks if all(p(task) for p in predicates)]
    logger.debug(
        f"Filtered {len(tasks)} -> {len(result)} tasks "
        f"({len(predicates)} active predicates)"
    )
    return result
