"""
Project Week Calendar.

Converts dates into project week labels. Two numbering rules are supported:

- default: weeks start on the configured weekday and week 1 of a year is
  the week containing January 1st (labeled with the new year even when it
  starts in December)
- calibrated: an explicit date range is pinned to a week number and every
  following (or preceding) 7 days moves the number by one

The same (date, config) pair always yields the same label; weekly trends and
the externally supplied samples-per-week data both rely on that.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from src.core.store import Task, WeekConfig, WeekLabel, parse_date

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

# Custom 5-4-4 quarters. January opens with week 52 of the previous year.
CUSTOM_MONTH_WEEKS: Dict[int, List[int]] = {
    0: [52, 1, 2, 3, 4],
    1: [5, 6, 7, 8],
    2: [9, 10, 11, 12],
    3: [13, 14, 15, 16, 17],
    4: [18, 19, 20, 21],
    5: [22, 23, 24, 25],
    6: [26, 27, 28, 29, 30],
    7: [31, 32, 33, 34],
    8: [35, 36, 37, 38],
    9: [39, 40, 41, 42, 43],
    10: [44, 45, 46, 47],
    11: [48, 49, 50, 51],
}

PRESETS = ("this_week", "last_week", "latest_3_weeks")


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


class WeekCalendar:
    """
    Week numbering for a given WeekConfig.

    All methods are pure; unparseable dates yield None instead of raising.
    """

    def __init__(self, config: Optional[WeekConfig] = None):
        """
        Initialize the calendar.

        Parameters
        ----------
        config : Optional[WeekConfig]
            Week rule (default: Sunday start, no calibration)
        """
        self.config = config or WeekConfig()

    def week_start(self, day: date) -> date:
        """First day of the (uncalibrated) week containing `day`."""
        # date.weekday() is Monday=0; the config counts from Sunday=0
        sunday_based = (day.weekday() + 1) % 7
        offset = (sunday_based - self.config.week_start_day) % 7
        return day - timedelta(days=offset)

    def _calibrated_week(self, day: date) -> Tuple[int, date, date]:
        cal_start = self.config.week1_start_date
        cal_end = self.config.calibration_end
        assert cal_start is not None and cal_end is not None
        base = self.config.start_week_number

        if cal_start <= day <= cal_end:
            return base, cal_start, cal_end

        if day > cal_end:
            first_after = cal_end + timedelta(days=1)
            index = (day - first_after).days // 7
            start = first_after + timedelta(days=7 * index)
            return base + 1 + index, start, start + timedelta(days=6)

        last_before = cal_start - timedelta(days=1)
        index = (last_before - day).days // 7
        end = last_before - timedelta(days=7 * index)
        return base - 1 - index, end - timedelta(days=6), end

    def week_range(self, value: Any) -> Optional[Tuple[date, date]]:
        """
        Inclusive first and last day of the week containing a date.

        Parameters
        ----------
        value : date | datetime | str
            Date to locate

        Returns
        -------
        Optional[Tuple[date, date]]
            (start, end), or None for a missing/unparseable date or a week
            that runs past the supported date range
        """
        day = _as_date(value)
        if day is None:
            return None
        try:
            if self.config.calibrated:
                _, start, end = self._calibrated_week(day)
                return start, end
            start = self.week_start(day)
            return start, start + timedelta(days=6)
        except OverflowError:
            logger.debug(f"Week of {day} is outside the supported date range")
            return None

    def week_number(self, value: Any, year: Optional[int] = None) -> Optional[int]:
        """
        Week number of a date.

        Parameters
        ----------
        value : date | datetime | str
            Date to number
        year : Optional[int]
            Year whose week 1 is counted from (default: the year of the
            date's week label). Ignored by the calibrated rule.

        Returns
        -------
        Optional[int]
            Week number, or None for a missing/unparseable date
        """
        day = _as_date(value)
        if day is None:
            return None
        if year is None or self.config.calibrated:
            label = self.week_label(day)
            return label.week if label else None

        try:
            origin = self.week_start(date(year, 1, 1))
            return (self.week_start(day) - origin).days // 7 + 1
        except OverflowError:
            logger.debug(f"Week of {day} is outside the supported date range")
            return None

    def week_label(self, value: Any) -> Optional[WeekLabel]:
        """
        (year, week) label of a date, None when the date is unusable.

        The week containing January 1st is week 1 of the new year, even when
        it starts in late December. Weeks running past year 1 or 9999 have no
        label.
        """
        day = _as_date(value)
        if day is None:
            return None
        try:
            if self.config.calibrated:
                number, start, _ = self._calibrated_week(day)
                return WeekLabel(year=start.year, week=number)

            start = self.week_start(day)
            end = start + timedelta(days=6)
            if end.year > start.year:
                return WeekLabel(year=end.year, week=1)
            origin = self.week_start(date(start.year, 1, 1))
        except OverflowError:
            logger.debug(f"Week of {day} is outside the supported date range")
            return None
        return WeekLabel(year=start.year, week=(start - origin).days // 7 + 1)

    def preset_range(self, preset: str, today: Optional[date] = None) -> Tuple[date, date]:
        """
        Resolve a relative date preset to inclusive bounds.

        Parameters
        ----------
        preset : str
            'this_week', 'last_week' or 'latest_3_weeks'
        today : Optional[date]
            Reference date (default: current date)

        Returns
        -------
        Tuple[date, date]
            (start, end)
        """
        today = today or date.today()
        if preset == "this_week":
            current = self.week_range(today)
            assert current is not None
            return current
        if preset == "last_week":
            previous = self.week_range(today - timedelta(days=7))
            assert previous is not None
            return previous
        if preset == "latest_3_weeks":
            first = self.week_range(today - timedelta(days=14))
            current = self.week_range(today)
            assert first is not None and current is not None
            return first[0], current[1]
        raise ValueError(f"Unknown date preset: {preset!r}")

    def labels_between(self, start: date, end: date) -> Set[WeekLabel]:
        """Every week label touching the inclusive range [start, end]."""
        labels: Set[WeekLabel] = set()
        if end < start:
            return labels
        day = start
        # Day steps: a calibration range may be shorter than 7 days
        while day <= end:
            label = self.week_label(day)
            if label is not None:
                labels.add(label)
            day += timedelta(days=1)
        return labels

    def custom_month(self, label: WeekLabel) -> Optional[Tuple[int, int]]:
        """
        Custom (5-4-4) month a week belongs to.

        Weeks 52 and above open January of the following year.

        Returns
        -------
        Optional[Tuple[int, int]]
            (custom_year, month_index 0-11), None for weeks outside 1-53
        """
        if label.week in (52, 53):
            return label.year + 1, 0
        for month, weeks in CUSTOM_MONTH_WEEKS.items():
            if label.week in weeks:
                return label.year, month
        return None

    def month_labels(self, year: int, month: int) -> Set[WeekLabel]:
        """Week labels making up a custom month."""
        if month not in CUSTOM_MONTH_WEEKS:
            raise ValueError(f"Month index must be 0-11, got {month!r}")
        labels = set()
        for week in CUSTOM_MONTH_WEEKS[month]:
            if week >= 52:
                labels.add(WeekLabel(year - 1, week))
                labels.add(WeekLabel(year - 1, week + 1))
            else:
                labels.add(WeekLabel(year, week))
        return labels

    def available_weeks(self, tasks: Iterable[Task]) -> List[Dict[str, Any]]:
        """
        Distinct weeks with interview data, newest first.

        Parameters
        ----------
        tasks : Iterable[Task]
            Tasks to scan

        Returns
        -------
        List[Dict[str, Any]]
            One entry per week: year, week, key, label, start, end
        """
        weeks: Dict[WeekLabel, Dict[str, Any]] = {}
        for task in tasks:
            if task.interview_date is None:
                continue
            label = self.week_label(task.interview_date)
            week_range = self.week_range(task.interview_date)
            if label is None or week_range is None or label in weeks:
                continue
            start, end = week_range
            weeks[label] = {
                "year": label.year,
                "week": label.week,
                "key": label.key,
                "label": (
                    f"Week {label.week} "
                    f"({start.strftime('%b')} {start.day} - {end.strftime('%b')} {end.day})"
                ),
                "start": start.isoformat(),
                "end": end.isoformat(),
            }

        logger.debug(f"Found {len(weeks)} weeks with interview data")
        return [weeks[label] for label in sorted(weeks, reverse=True)]

    def available_months(self, tasks: Iterable[Task]) -> List[Dict[str, Any]]:
        """
        Distinct custom months with interview data, newest first.

        The span shown in a label runs from the first day of the earliest
        week to the last day of the latest week that has data, so a January
        holding week 52 starts in December.

        Parameters
        ----------
        tasks : Iterable[Task]
            Tasks to scan

        Returns
        -------
        List[Dict[str, Any]]
            One entry per month: year, month (0-11), key, label, start, end,
            weeks
        """
        spans: Dict[Tuple[int, int], List[date]] = {}
        for task in tasks:
            label = self.week_label(task.interview_date)
            week_range = self.week_range(task.interview_date)
            if label is None or week_range is None:
                continue
            target = self.custom_month(label)
            if target is None:
                continue
            start, end = week_range
            span = spans.get(target)
            if span is None:
                spans[target] = [start, end]
            else:
                span[0] = min(span[0], start)
                span[1] = max(span[1], end)

        months = []
        for (year, month), (start, end) in sorted(spans.items(), reverse=True):
            weeks = CUSTOM_MONTH_WEEKS[month]
            months.append(
                {
                    "year": year,
                    "month": month,
                    "key": f"{year}-{month}",
                    "label": (
                        f"{MONTH_NAMES[month]} {year} "
                        f"({start.strftime('%b')} {start.day} - {end.strftime('%b')} {end.day})"
                        f" / Wk{weeks[0]}-{weeks[-1]}"
                    ),
                    "start": start.isoformat(),
                    "end": end.isoformat(),
                    "weeks": list(weeks),
                }
            )

        logger.debug(f"Found {len(months)} custom months with interview data")
        return months
