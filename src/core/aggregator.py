"""
Unified Analytics Aggregator for Field Audit Tasks.

Runs one recomputation pass over a task collection and returns an immutable
AnalyticsSnapshot holding every derived view. The pass order is fixed:

1. Normalize raw records (dual-shape fields -> lists, timestamps -> UTC)
2. Apply the filter set (filtered_tasks)
3. Compute KPIs, top-K rankings, breakdowns, weekly trends, cross-tabs
4. Return the snapshot

Nothing is cached between passes: each call recomputes from its input, so
concurrent API requests never share aggregation state.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.core import crosstab, drilldown, export, frequency, kpis, trends
from src.core.filters import filter_tasks, period_labels
from src.core.store import (
    CATEGORICAL_FIELDS,
    AnalyticsLimits,
    AnalyticsSnapshot,
    FilterSet,
    NPSTargets,
    Task,
    WeekConfig,
)
from src.core.week_calendar import WeekCalendar

logger = logging.getLogger(__name__)


class Aggregator:
    """
    Unified aggregator that creates analytics snapshots.

    One instance holds configuration only (week rule, NPS targets, top-K
    limits); task data is passed to every call.
    """

    def __init__(
        self,
        week_config: Optional[WeekConfig] = None,
        targets: Optional[NPSTargets] = None,
        limits: Optional[AnalyticsLimits] = None,
    ):
        """
        Initialize the aggregator.

        Parameters
        ----------
        week_config : Optional[WeekConfig]
            Week numbering rule (default: Sunday start, no calibration)
        targets : Optional[NPSTargets]
            NPS alarm thresholds
        limits : Optional[AnalyticsLimits]
            Top-K sizes for rankings, matrices and trend series
        """
        self.calendar = WeekCalendar(week_config)
        self.targets = targets or NPSTargets()
        self.limits = limits or AnalyticsLimits()
        self.snapshot_version_counter = 0

        logger.info(
            f"Initialized Aggregator: week_start_day={self.calendar.config.week_start_day}, "
            f"calibrated={self.calendar.config.calibrated}"
        )

    @staticmethod
    def load_tasks(raw_tasks: Iterable[Any]) -> List[Task]:
        """
        Normalize raw records; already normalized Tasks pass through.

        Non-object entries are skipped with a warning.
        """
        tasks: List[Task] = []
        skipped = 0
        for index, record in enumerate(raw_tasks):
            if isinstance(record, Task):
                tasks.append(record)
            elif isinstance(record, dict):
                tasks.append(Task.from_dict(record, index))
            else:
                skipped += 1
        if skipped:
            logger.warning(f"Skipped {skipped} task records that are not objects")
        return tasks

    def _filtered(
        self, raw_tasks: Iterable[Any], filter_set: Optional[FilterSet]
    ) -> Tuple[List[Task], List[Task]]:
        tasks = self.load_tasks(raw_tasks)
        filtered = filter_tasks(tasks, filter_set or FilterSet(), self.calendar)
        return tasks, filtered

    def create_snapshot(
        self,
        raw_tasks: Iterable[Any],
        filter_set: Optional[FilterSet] = None,
        samples: Optional[List[Dict[str, Any]]] = None,
        trend_field: str = "reason",
    ) -> AnalyticsSnapshot:
        """
        Create a complete analytics snapshot.

        Parameters
        ----------
        raw_tasks : Iterable[Any]
            Backend task records (dicts) or normalized Tasks
        filter_set : Optional[FilterSet]
            Active filters (None = no filtering)
        samples : Optional[List[Dict[str, Any]]]
            Weekly sample sizes; the weeks covered by the date filter give the
            expected sample count for the unaudited sample rule
        trend_field : str
            Field whose top values are tracked week by week

        Returns
        -------
        AnalyticsSnapshot
            Every derived view of the filtered collection
        """
        filter_set = filter_set or FilterSet()
        tasks, filtered = self._filtered(raw_tasks, filter_set)
        return self._build_snapshot(tasks, filtered, filter_set, samples, trend_field)

    def _build_snapshot(
        self,
        tasks: List[Task],
        filtered: List[Task],
        filter_set: FilterSet,
        samples: Optional[List[Dict[str, Any]]],
        trend_field: str,
    ) -> AnalyticsSnapshot:
        snapshot_start = datetime.now(timezone.utc)
        self.snapshot_version_counter += 1
        limits = self.limits

        logger.info(
            f"Creating snapshot v{self.snapshot_version_counter}: "
            f"{len(filtered)}/{len(tasks)} tasks after filtering, trend={trend_field}"
        )

        total_expected_samples = None
        if samples:
            labels = period_labels(filter_set.date, self.calendar)
            total_expected_samples = kpis.expected_samples(samples, labels)

        snapshot = AnalyticsSnapshot(
            snapshot_id=str(uuid.uuid4()),
            snapshot_version=self.snapshot_version_counter,
            timestamp=snapshot_start,
            total_tasks=len(tasks),
            filtered_count=len(filtered),
            kpis=kpis.summarize(filtered, total_expected_samples, self.targets),
            top_values={
                name: frequency.top_k(filtered, name, limits.top_k)
                for name in CATEGORICAL_FIELDS
            },
            reason_breakdown=frequency.breakdown(filtered, "reason", limits.breakdown_top_k),
            owner_breakdown=frequency.breakdown(
                filtered, "responsible", limits.breakdown_top_k
            ),
            reason_trend=trends.build_trend(
                filtered, trend_field, self.calendar, limits.trend_series
            ),
            segment_trend=trends.segment_trend(filtered, self.calendar),
            owner_by_reason=crosstab.owner_by_reason(
                filtered, limits.matrix_rows, limits.matrix_cols
            ),
            owner_by_root_cause=crosstab.owner_by_root_cause(
                filtered, limits.matrix_rows, limits.matrix_cols
            ),
            hierarchy=frequency.hierarchy(filtered),
            team_violations=frequency.team_violations(filtered),
            timezone="UTC",
        )

        elapsed_ms = (datetime.now(timezone.utc) - snapshot_start).total_seconds() * 1000
        logger.info(
            f"Snapshot v{self.snapshot_version_counter} created in {elapsed_ms:.1f}ms: "
            f"nps={snapshot.kpis.nps if snapshot.kpis else 0}, "
            f"{len(snapshot.segment_trend)} weeks"
        )
        return snapshot

    def drill_down(
        self,
        raw_tasks: Iterable[Any],
        constraints: Dict[str, Any],
        filter_set: Optional[FilterSet] = None,
    ) -> List[Task]:
        """
        Tasks behind a chart cell, within the filtered view.

        Parameters
        ----------
        raw_tasks : Iterable[Any]
            Backend task records
        constraints : Dict[str, Any]
            field -> value pairs identifying the cell
        filter_set : Optional[FilterSet]
            Filters of the view the cell belongs to

        Returns
        -------
        List[Task]
            Matching tasks in input order
        """
        _, filtered = self._filtered(raw_tasks, filter_set)
        return drilldown.resolve(filtered, constraints)

    def export(
        self,
        raw_tasks: Iterable[Any],
        filter_set: Optional[FilterSet] = None,
        samples: Optional[List[Dict[str, Any]]] = None,
        trend_field: str = "reason",
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Export sheets (sheet name -> rows) of the filtered view."""
        filter_set = filter_set or FilterSet()
        tasks, filtered = self._filtered(raw_tasks, filter_set)
        snapshot = self._build_snapshot(tasks, filtered, filter_set, samples, trend_field)
        return export.build_export_sheets(snapshot, filtered, self.calendar)

    def available_weeks(self, raw_tasks: Iterable[Any]) -> List[Dict[str, Any]]:
        """Weeks that have interview data, newest first."""
        return self.calendar.available_weeks(self.load_tasks(raw_tasks))

    def available_months(self, raw_tasks: Iterable[Any]) -> List[Dict[str, Any]]:
        """Custom 5-4-4 months that have interview data, newest first."""
        return self.calendar.available_months(self.load_tasks(raw_tasks))
