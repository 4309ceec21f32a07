"""
Weekly Trend Builder.

Buckets tasks into project weeks (via WeekCalendar on interview_date) and
produces chart-ready series. The tracked values are chosen once over the
whole collection so every week carries the same legend, even when a value is
absent that week. Buckets are ordered by (year, week) so series that span a
year boundary stay chronological.
"""

import logging
from typing import Dict, List, Optional, Tuple

from src.core.frequency import top_k
from src.core.store import (
    SegmentPoint,
    Task,
    TrendResult,
    WeekLabel,
    WeekPoint,
    category_values,
    classify_score,
    normalize_field,
)
from src.core.week_calendar import WeekCalendar

logger = logging.getLogger(__name__)


def bucket_by_week(
    tasks: List[Task], calendar: WeekCalendar
) -> List[Tuple[WeekLabel, Tuple, List[Task]]]:
    """
    Group tasks by week label.

    Tasks without a usable interview date are left out entirely (there is no
    'Unknown' week).

    Returns
    -------
    List[Tuple[WeekLabel, Tuple[date, date], List[Task]]]
        (label, (start, end), tasks) sorted by (year, week)
    """
    buckets: Dict[WeekLabel, List[Task]] = {}
    ranges: Dict[WeekLabel, Tuple] = {}
    skipped = 0

    for task in tasks:
        label = calendar.week_label(task.interview_date)
        if label is None:
            skipped += 1
            continue
        if label not in buckets:
            buckets[label] = []
            ranges[label] = calendar.week_range(task.interview_date)
        buckets[label].append(task)

    if skipped:
        logger.debug(f"Skipped {skipped} tasks without a usable interview date")

    return [(label, ranges[label], buckets[label]) for label in sorted(buckets)]


def build_trend(
    tasks: List[Task],
    tracked_field: str,
    calendar: Optional[WeekCalendar] = None,
    top_n: int = 5,
) -> TrendResult:
    """
    Weekly counts of the top values of a field.

    Parameters
    ----------
    tasks : List[Task]
        Filtered tasks
    tracked_field : str
        Field whose top values become the series
    calendar : Optional[WeekCalendar]
        Week numbering rule
    top_n : int
        Number of series (default 5)

    Returns
    -------
    TrendResult
        One WeekPoint per week with data, plus the fixed legend
    """
    calendar = calendar or WeekCalendar()
    tracked_field = normalize_field(tracked_field)

    # Legend is fixed over the entire collection, not per week
    top_entries = top_k(tasks, tracked_field, top_n)
    keys = [entry.name for entry in top_entries]

    series = []
    for label, (start, end), week_tasks in bucket_by_week(tasks, calendar):
        counts = {key: 0 for key in keys}
        for task in week_tasks:
            values = category_values(task, tracked_field)
            for key in keys:
                if key in values:
                    counts[key] += 1
        series.append(
            WeekPoint(label=label, start=start, end=end, total=len(week_tasks), counts=counts)
        )

    logger.debug(f"Built {tracked_field} trend: {len(series)} weeks x {len(keys)} series")
    return TrendResult(
        tracked_field=tracked_field,
        series=series,
        top_keys=[{"name": e.name, "total": e.count} for e in top_entries],
    )


def percentage_change(current: int, previous: int) -> int:
    """Rounded change from previous to current; 100 when starting from zero."""
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


def segment_trend(
    tasks: List[Task], calendar: Optional[WeekCalendar] = None
) -> List[SegmentPoint]:
    """
    Weekly NPS segment history.

    Violations are detractors plus neutrals; three neutrals weigh as one
    detractor in `equivalent_detractors`. `change_pct` compares violations
    with the previous week that has data (None for the first week).
    """
    calendar = calendar or WeekCalendar()
    points: List[SegmentPoint] = []

    for label, (start, end), week_tasks in bucket_by_week(tasks, calendar):
        point = SegmentPoint(label=label, start=start, end=end, total=len(week_tasks))
        for task in week_tasks:
            segment = classify_score(task.evaluation_score)
            if segment == "promoter":
                point.promoters += 1
            elif segment == "neutral":
                point.neutrals += 1
            elif segment == "detractor":
                point.detractors += 1
        point.violations = point.detractors + point.neutrals
        point.equivalent_detractors = point.detractors + point.neutrals // 3
        if points:
            point.change_pct = percentage_change(point.violations, points[-1].violations)
        points.append(point)

    return points
