"""
Data Models for the Field Audit Analytics Engine.

This module defines the normalized task record, the immutable filter set and
every derived view produced by the analytics pass. Raw records arrive from the
tracker backend with camelCase keys and dual-shape categorical fields; they
are normalized exactly once here so the aggregators work on a single shape.

Key principles:
- ALL timestamps are timezone-aware (UTC)
- Multi-valued fields are ALWAYS ordered lists (bare strings are wrapped)
- Missing categorical values aggregate under "Unknown", never dropped
- Filter sets and derived views are values (replace, never mutate)
"""

import json
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

UNKNOWN = "Unknown"

SCALAR_FIELDS: Tuple[str, ...] = (
    "priority",
    "status",
    "governorate",
    "district",
    "team_name",
    "team_company",
    "validation_status",
    "gaia_check",
)

MULTI_VALUED_FIELDS: Tuple[str, ...] = (
    "reason",
    "sub_reason",
    "root_cause",
    "responsible",
    "itn_related",
    "related_to_subscription",
)

TEXT_FIELDS: Tuple[str, ...] = (
    "customer_name",
    "contact_number",
    "customer_feedback",
    "slid",
    "request_number",
    "gaia_id",
)

CATEGORICAL_FIELDS = SCALAR_FIELDS + MULTI_VALUED_FIELDS
STRING_FIELDS = CATEGORICAL_FIELDS + TEXT_FIELDS

# Backend (camelCase) key -> record attribute
FIELD_ALIASES: Dict[str, str] = {
    "teamName": "team_name",
    "teamCompany": "team_company",
    "validationStatus": "validation_status",
    "gaiaCheck": "gaia_check",
    "subReason": "sub_reason",
    "rootCause": "root_cause",
    "itnRelated": "itn_related",
    "relatedToSubscription": "related_to_subscription",
    "evaluationScore": "evaluation_score",
    "createdAt": "created_at",
    "interviewDate": "interview_date",
    "customerName": "customer_name",
    "contactNumber": "contact_number",
    "customerFeedback": "customer_feedback",
    "requestNumber": "request_number",
    "gaiaId": "gaia_id",
}


def normalize_field(name: str) -> str:
    """
    Map a field name in either spelling to the record attribute name.

    Parameters
    ----------
    name : str
        Field name, camelCase ('subReason') or snake_case ('sub_reason')

    Returns
    -------
    str
        Record attribute name

    Raises
    ------
    ValueError
        If the name is not a known task field
    """
    resolved = FIELD_ALIASES.get(name, name)
    if resolved not in STRING_FIELDS and resolved not in (
        "evaluation_score",
        "created_at",
        "interview_date",
    ):
        raise ValueError(f"Unknown task field: {name!r}")
    return resolved


def to_list(value: Any) -> List[str]:
    """
    Normalize a dual-shape categorical value into an ordered list.

    A bare string becomes a singleton list, lists keep their order, and
    None/blank entries are dropped so no bucket named "" can ever appear.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]

    result = []
    for item in items:
        if item is None or isinstance(item, (list, tuple, dict)):
            continue
        text = str(item).strip()
        if text:
            result.append(text)
    return result


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        # Scalar fields occasionally arrive wrapped; keep the first entry
        values = to_list(value)
        return values[0] if values else None
    text = str(value).strip()
    return text or None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or date/datetime) to a timezone-aware datetime."""
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, date):
        ts = datetime(value.year, value.month, value.day)
    else:
        try:
            ts = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            return None

    if ts.tzinfo is None:
        # Naive timestamps are treated as UTC (the backend stores UTC)
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_date(value: Any) -> Optional[date]:
    """Parse a date-ish value to a calendar date, None when unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = parse_timestamp(value)
    return ts.date() if ts else None


def _to_score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score):
        return None
    return score


def percent(part: float, whole: float) -> int:
    """
    Whole-number percentage with half-up rounding.

    Dashboards round with JavaScript Math.round semantics, which differs from
    Python's banker's rounding at .5. A zero denominator yields 0.
    """
    if not whole:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


def classify_score(
    score: Optional[float],
) -> Optional[Literal["promoter", "neutral", "detractor"]]:
    """
    Classify an evaluation score into its NPS segment.

    Promoter >= 9, neutral 7-8, detractor <= 6. A missing score belongs to
    no segment (it is never defaulted to 0).
    """
    if score is None:
        return None
    if score >= 9:
        return "promoter"
    if score >= 7:
        return "neutral"
    return "detractor"


@dataclass
class Task:
    """
    Normalized field-audit task record.

    The analytics engine only reads tasks. Every multi-valued field is an
    ordered list (possibly empty when the record carries no value).

    Parameters
    ----------
    id : str
        Opaque unique identifier
    priority, status, governorate, district : Optional[str]
        Scalar categorical fields
    team_name, team_company : Optional[str]
        Field team that performed the installation
    validation_status : Optional[str]
        'Validated' marks a compliant audit
    gaia_check : Optional[str]
        GAIA verification result
    reason, sub_reason, root_cause, responsible : List[str]
        Multi-valued resolution categorization
    itn_related, related_to_subscription : List[str]
        Multi-valued technical flags
    evaluation_score : Optional[float]
        0-10 customer score, None when not scored
    created_at, interview_date : Optional[datetime]
        Timezone-aware timestamps, None when missing or malformed
    customer_name, contact_number, customer_feedback : Optional[str]
        Free-text customer fields
    slid, request_number, gaia_id : Optional[str]
        Free-text identifiers used by search
    tickets : List[Dict[str, Any]]
        Ticket history entries recorded against the task
    raw : Dict[str, Any]
        The record as received from the backend
    """

    id: str

    # Scalar categorical fields
    priority: Optional[str] = None
    status: Optional[str] = None
    governorate: Optional[str] = None
    district: Optional[str] = None
    team_name: Optional[str] = None
    team_company: Optional[str] = None
    validation_status: Optional[str] = None
    gaia_check: Optional[str] = None

    # Multi-valued categorical fields (ALWAYS lists)
    reason: List[str] = field(default_factory=list)
    sub_reason: List[str] = field(default_factory=list)
    root_cause: List[str] = field(default_factory=list)
    responsible: List[str] = field(default_factory=list)
    itn_related: List[str] = field(default_factory=list)
    related_to_subscription: List[str] = field(default_factory=list)

    evaluation_score: Optional[float] = None

    # Time fields (ALL timezone-aware when set)
    created_at: Optional[datetime] = None
    interview_date: Optional[datetime] = None

    # Free text
    customer_name: Optional[str] = None
    contact_number: Optional[str] = None
    customer_feedback: Optional[str] = None
    slid: Optional[str] = None
    request_number: Optional[str] = None
    gaia_id: Optional[str] = None

    tickets: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "Task":
        """
        Build a normalized task from a backend record.

        Parameters
        ----------
        data : Dict[str, Any]
            Raw record (camelCase or snake_case keys)
        index : int
            Position in the input, used for records without an id

        Returns
        -------
        Task
            Normalized task
        """
        values: Dict[str, Any] = {}
        for key, value in data.items():
            values[FIELD_ALIASES.get(key, key)] = value

        task_id = values.get("_id") or values.get("id") or f"task_{index}"

        kwargs: Dict[str, Any] = {}
        for name in SCALAR_FIELDS + TEXT_FIELDS:
            kwargs[name] = _to_str(values.get(name))
        for name in MULTI_VALUED_FIELDS:
            kwargs[name] = to_list(values.get(name))

        tickets = values.get("tickets") or []
        if not isinstance(tickets, list):
            tickets = []

        return cls(
            id=str(task_id),
            evaluation_score=_to_score(values.get("evaluation_score")),
            created_at=parse_timestamp(values.get("created_at")),
            interview_date=parse_timestamp(values.get("interview_date")),
            tickets=[t for t in tickets if isinstance(t, dict)],
            raw=dict(data),
            **kwargs,
        )

    def values_of(self, field_name: str) -> List[str]:
        """Present values of a string field as a list (empty when absent)."""
        value = getattr(self, field_name)
        if isinstance(value, list):
            return value
        return [value] if value else []

    def to_dict(self) -> Dict[str, Any]:
        """Convert task to a JSON-serializable dictionary."""
        return {
            k: (v.isoformat() if isinstance(v, datetime) else v)
            for k, v in vars(self).items()
            if k != "raw"
        }


def category_values(task: Task, field_name: str) -> List[str]:
    """
    Aggregation view of a categorical field.

    Returns the record's values, or ["Unknown"] when it has none so totals
    stay consistent across views.
    """
    return task.values_of(field_name) or [UNKNOWN]


@dataclass(frozen=True)
class WeekConfig:
    """
    Week-numbering rule.

    Parameters
    ----------
    week_start_day : int
        First day of the week, 0 = Sunday ... 6 = Saturday
    week1_start_date : Optional[date]
        Start of the calibration range (enables calibrated numbering)
    week1_end_date : Optional[date]
        End of the calibration range (defaults to start + 6 days)
    start_week_number : int
        Week number assigned to the calibration range
    """

    week_start_day: int = 0
    week1_start_date: Optional[date] = None
    week1_end_date: Optional[date] = None
    start_week_number: int = 1

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not isinstance(self.week_start_day, int) or not 0 <= self.week_start_day <= 6:
            raise ValueError(
                f"week_start_day must be an integer 0-6, got {self.week_start_day!r}"
            )
        if self.week1_end_date and not self.week1_start_date:
            raise ValueError("week1_end_date requires week1_start_date")
        if (
            self.week1_start_date
            and self.week1_end_date
            and self.week1_end_date < self.week1_start_date
        ):
            raise ValueError("week1_end_date must not precede week1_start_date")

    @property
    def calibrated(self) -> bool:
        return self.week1_start_date is not None

    @property
    def calibration_end(self) -> Optional[date]:
        if self.week1_start_date is None:
            return None
        return self.week1_end_date or self.week1_start_date + timedelta(days=6)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WeekConfig":
        """Build from a settings dict (camelCase or snake_case keys)."""
        if not data:
            return cls()

        def pick(*keys: str) -> Any:
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        start_day = pick("weekStartDay", "week_start_day")
        start_number = pick("startWeekNumber", "start_week_number")
        try:
            return cls(
                week_start_day=int(start_day) if start_day is not None else 0,
                week1_start_date=parse_date(pick("week1StartDate", "week1_start_date")),
                week1_end_date=parse_date(pick("week1EndDate", "week1_end_date")),
                start_week_number=int(start_number) if start_number is not None else 1,
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid week configuration: {e}") from e


@dataclass(frozen=True, order=True)
class WeekLabel:
    """A week bucket, ordered by (year, week)."""

    year: int
    week: int

    @property
    def key(self) -> str:
        return f"{self.year}-W{self.week}"

    @property
    def display(self) -> str:
        return f"W{self.week}"


@dataclass(frozen=True)
class NPSTargets:
    """Promoter floor and detractor ceiling, in percent."""

    promoters: int = 75
    detractors: int = 9

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NPSTargets":
        if not data:
            return cls()
        return cls(
            promoters=int(data.get("promoters", 75)),
            detractors=int(data.get("detractors", 9)),
        )


@dataclass(frozen=True)
class AnalyticsLimits:
    """Top-K sizes used by the analytics pass."""

    top_k: int = 5
    breakdown_top_k: int = 10
    matrix_rows: int = 10
    matrix_cols: int = 8
    trend_series: int = 5

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalyticsLimits":
        if not data:
            return cls()
        defaults = cls()
        return cls(
            top_k=int(data.get("topK", defaults.top_k)),
            breakdown_top_k=int(data.get("breakdownTopK", defaults.breakdown_top_k)),
            matrix_rows=int(data.get("matrixRows", defaults.matrix_rows)),
            matrix_cols=int(data.get("matrixCols", defaults.matrix_cols)),
            trend_series=int(data.get("trendSeries", defaults.trend_series)),
        )


DATE_FILTER_TYPES: Tuple[str, ...] = (
    "all",
    "custom",
    "this_week",
    "last_week",
    "latest_3_weeks",
    "week",
    "month",
)

# UI preset spellings accepted by DateFilter.from_dict
_DATE_TYPE_ALIASES = {
    "thisWeek": "this_week",
    "lastWeek": "last_week",
    "latest3Weeks": "latest_3_weeks",
    "This Week": "this_week",
    "Last Week": "last_week",
    "Latest 3 Weeks": "latest_3_weeks",
}


@dataclass(frozen=True)
class DateFilter:
    """
    Date-range predicate over interview_date.

    Parameters
    ----------
    type : str
        'all' disables the filter; 'custom' uses start/end; presets are
        resolved through the week calendar relative to `today`
    start, end : Optional[date]
        Inclusive bounds for 'custom'
    today : Optional[date]
        Reference date for presets (defaults to the current date)
    year, week : Optional[int]
        Target week for 'week'; year also targets 'month'
    month : Optional[int]
        Custom month index 0-11 for 'month'
    """

    type: str = "all"
    start: Optional[date] = None
    end: Optional[date] = None
    today: Optional[date] = None
    year: Optional[int] = None
    week: Optional[int] = None
    month: Optional[int] = None

    def __post_init__(self) -> None:
        if self.type not in DATE_FILTER_TYPES:
            raise ValueError(f"Unknown date filter type: {self.type!r}")

    @property
    def active(self) -> bool:
        return self.type != "all"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DateFilter":
        if not data:
            return cls()
        raw_type = data.get("type") or "all"
        date_type = _DATE_TYPE_ALIASES.get(raw_type, raw_type)

        def to_int(value: Any) -> Optional[int]:
            return int(value) if value not in (None, "") else None

        return cls(
            type=date_type,
            start=parse_date(data.get("start")),
            end=parse_date(data.get("end")),
            today=parse_date(data.get("today")),
            year=to_int(data.get("year")),
            week=to_int(data.get("week")),
            month=to_int(data.get("month")),
        )


@dataclass(frozen=True)
class AdvancedSearch:
    """Field bag from the advanced search dialog, applied only when active."""

    active: bool = False
    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AdvancedSearch":
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Advanced search must be an object")
        fields = data.get("fields")
        if fields is None:
            fields = {k: v for k, v in data.items() if k != "active"}
        if not isinstance(fields, dict):
            raise ValueError("Advanced search fields must be an object")
        return cls(
            active=bool(data.get("active", False)),
            fields={
                FIELD_ALIASES.get(k, k): str(v)
                for k, v in fields.items()
                if v is not None
            },
        )


@dataclass(frozen=True)
class FilterSet:
    """
    Immutable set of active filter predicates.

    The UI layer owns mutation by building a new FilterSet (see `with_select`
    and friends); the engine only reads it.

    Parameters
    ----------
    selects : Dict[str, str]
        Exact-match selects; 'all' or empty disables a select
    text : Dict[str, str]
        Column substring filters; 'location', 'team' and 'customer' are
        aliases that search several fields
    multi : Dict[str, str]
        Substring filters over multi-valued fields (any element matches)
    date : DateFilter
        Interview date predicate
    advanced : AdvancedSearch
        Advanced search bag
    search : str
        Global search term over slid / customer name / contact / feedback
    segment : str
        'all', 'promoters', 'neutrals' or 'detractors'
    """

    selects: Dict[str, str] = field(default_factory=dict)
    text: Dict[str, str] = field(default_factory=dict)
    multi: Dict[str, str] = field(default_factory=dict)
    date: DateFilter = field(default_factory=DateFilter)
    advanced: AdvancedSearch = field(default_factory=AdvancedSearch)
    search: str = ""
    segment: str = "all"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FilterSet":
        """
        Build a filter set from the UI payload.

        Top-level keys naming a categorical field are treated as selects, so
        `{"priority": "High"}` is a valid filter set on its own.
        """
        if not data:
            return cls()

        selects: Dict[str, str] = {}
        for key, value in (data.get("selects") or {}).items():
            selects[normalize_field(key)] = value
        for key, value in data.items():
            name = FIELD_ALIASES.get(key, key)
            if name in CATEGORICAL_FIELDS:
                selects[name] = value

        return cls(
            selects=selects,
            text=dict(data.get("text") or {}),
            multi=dict(data.get("multi") or {}),
            date=DateFilter.from_dict(data.get("date")),
            advanced=AdvancedSearch.from_dict(data.get("advanced")),
            search=str(data.get("search") or ""),
            segment=str(data.get("segment") or "all"),
        )

    def with_select(self, field_name: str, value: str) -> "FilterSet":
        selects = dict(self.selects)
        selects[normalize_field(field_name)] = value
        return replace(self, selects=selects)

    def with_text(self, key: str, value: str) -> "FilterSet":
        text = dict(self.text)
        text[key] = value
        return replace(self, text=text)

    def with_multi(self, field_name: str, value: str) -> "FilterSet":
        multi = dict(self.multi)
        multi[field_name] = value
        return replace(self, multi=multi)


@dataclass
class FrequencyEntry:
    """One row of a top-K ranking."""

    name: str
    count: int
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count, "percentage": self.percentage}


@dataclass
class CategoryBreakdown:
    """
    Per-value performance row (reason analytics / owner performance).

    Parameters
    ----------
    name : str
        Category value
    cases : int
        Fan-out occurrences of the value
    neutrals : int
        Cases scored 7-8
    detractors : int
        Cases scored 6 or below
    percentage : int
        Share of all fan-out cases of the field
    neutral_pct : float
        Neutral share of this value's cases
    detractor_pct : float
        Detractor share of this value's cases
    """

    name: str
    cases: int = 0
    neutrals: int = 0
    detractors: int = 0
    percentage: int = 0
    neutral_pct: float = 0.0
    detractor_pct: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return vars(self).copy()


# Metadata columns of a trend row; tracked values with these names are
# written as "value:<name>"
WEEK_ROW_KEYS = frozenset(
    ["week", "year", "weekNumber", "weekKey", "start", "end", "total"]
)


@dataclass
class WeekPoint:
    """Counts of the tracked values for one week bucket."""

    label: WeekLabel
    start: date
    end: date
    total: int
    counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Flat row with one numeric column per tracked value (chart-ready)."""
        row: Dict[str, Any] = {
            "week": self.label.display,
            "year": self.label.year,
            "weekNumber": self.label.week,
            "weekKey": self.label.key,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "total": self.total,
        }
        for key, count in self.counts.items():
            row[f"value:{key}" if key in WEEK_ROW_KEYS else key] = count
        return row


@dataclass
class TrendResult:
    """Weekly series for a tracked field plus its fixed legend."""

    tracked_field: str
    series: List[WeekPoint] = field(default_factory=list)
    top_keys: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tracked_field": self.tracked_field,
            "series": [p.to_dict() for p in self.series],
            "top_keys": self.top_keys,
        }


@dataclass
class SegmentPoint:
    """NPS segment counts for one week bucket."""

    label: WeekLabel
    start: date
    end: date
    total: int = 0
    promoters: int = 0
    neutrals: int = 0
    detractors: int = 0
    equivalent_detractors: int = 0
    violations: int = 0
    change_pct: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.label.display,
            "year": self.label.year,
            "weekNumber": self.label.week,
            "weekKey": self.label.key,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "total": self.total,
            "promoters": self.promoters,
            "neutrals": self.neutrals,
            "detractors": self.detractors,
            "equivalent_detractors": self.equivalent_detractors,
            "violations": self.violations,
            "change_pct": self.change_pct,
        }


@dataclass
class CrossTabResult:
    """
    Contribution matrix of row values by column values.

    Parameters
    ----------
    row_field, col_field : str
        Fields on each axis
    matrix : Dict[str, Dict[str, int]]
        matrix[row][col] -> count; zero cells are absent
    row_keys, col_keys : List[str]
        Allowed top-K values, in ranking order
    row_totals, col_totals : Dict[str, int]
        Sums of the recorded cells per row / column
    """

    row_field: str
    col_field: str
    matrix: Dict[str, Dict[str, int]] = field(default_factory=dict)
    row_keys: List[str] = field(default_factory=list)
    col_keys: List[str] = field(default_factory=list)
    row_totals: Dict[str, int] = field(default_factory=dict)
    col_totals: Dict[str, int] = field(default_factory=dict)

    def cell(self, row: str, col: str) -> int:
        return self.matrix.get(row, {}).get(col, 0)

    def load_percentage(self, row: str, col: str) -> float:
        """Share of the column's total carried by this cell, 0 for an empty column."""
        col_total = self.col_totals.get(col, 0)
        if not col_total:
            return 0.0
        return self.cell(row, col) / col_total * 100

    @property
    def grand_total(self) -> int:
        return sum(self.col_totals.values())

    def to_rows(self) -> List[Dict[str, Any]]:
        """Flat rows (one per row key) for tables and stacked charts."""
        rows = []
        for row in self.row_keys:
            entry: Dict[str, Any] = {"name": row}
            for col in self.col_keys:
                entry[col] = self.cell(row, col)
            entry["total"] = self.row_totals.get(row, 0)
            rows.append(entry)
        return rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_field": self.row_field,
            "col_field": self.col_field,
            "matrix": self.matrix,
            "row_keys": self.row_keys,
            "col_keys": self.col_keys,
            "row_totals": self.row_totals,
            "col_totals": self.col_totals,
            "load_percentages": {
                row: {
                    col: round(self.load_percentage(row, col), 1)
                    for col in self.col_keys
                    if self.cell(row, col)
                }
                for row in self.row_keys
            },
        }


@dataclass
class KPISummary:
    """
    Headline metrics for a filtered collection.

    All rates are percentages (0-100). When an expected sample count larger
    than the audited count is supplied, the rates use it as denominator and
    unaudited samples count as promoters.
    """

    total: int
    scored: int = 0
    promoters: int = 0
    neutrals: int = 0
    detractors: int = 0
    validated: int = 0
    compliance_rate: float = 0.0
    promoter_rate: int = 0
    neutral_rate: int = 0
    detractor_rate: int = 0
    avg_score: float = 0.0
    nps: int = 0
    total_expected_samples: Optional[int] = None
    promoter_target: int = 75
    detractor_target: int = 9
    promoter_alarm: bool = False
    detractor_alarm: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return vars(self).copy()


@dataclass
class AnalyticsSnapshot:
    """
    Every derived view of one analytics pass.

    Parameters
    ----------
    snapshot_id : str
        Unique snapshot identifier
    snapshot_version : int
        Incrementing version number
    timestamp : datetime
        When the pass ran (timezone-aware UTC)
    total_tasks : int
        Records received
    filtered_count : int
        Records kept by the filter set
    kpis : KPISummary
        Headline metrics
    top_values : Dict[str, List[FrequencyEntry]]
        Top-K ranking per categorical field
    reason_breakdown, owner_breakdown : List[CategoryBreakdown]
        Reason analytics and owner performance tables
    reason_trend : TrendResult
        Weekly series of the tracked field
    segment_trend : List[SegmentPoint]
        Weekly NPS segment history
    owner_by_reason, owner_by_root_cause : CrossTabResult
        Contribution matrices
    hierarchy : Dict[str, Any]
        reason -> sub-reason -> root cause counts
    team_violations : List[Dict[str, Any]]
        Detractor/passive counts per field team
    """

    snapshot_id: str
    snapshot_version: int
    timestamp: datetime
    total_tasks: int = 0
    filtered_count: int = 0
    kpis: Optional[KPISummary] = None
    top_values: Dict[str, List[FrequencyEntry]] = field(default_factory=dict)
    reason_breakdown: List[CategoryBreakdown] = field(default_factory=list)
    owner_breakdown: List[CategoryBreakdown] = field(default_factory=list)
    reason_trend: Optional[TrendResult] = None
    segment_trend: List[SegmentPoint] = field(default_factory=list)
    owner_by_reason: Optional[CrossTabResult] = None
    owner_by_root_cause: Optional[CrossTabResult] = None
    hierarchy: Dict[str, Any] = field(default_factory=dict)
    team_violations: List[Dict[str, Any]] = field(default_factory=list)
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        """Validate timezone-aware timestamp."""
        if self.timestamp.tzinfo is None:
            raise ValueError("Snapshot timestamp must be timezone-aware")

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert snapshot to JSON-serializable dictionary.

        Returns
        -------
        dict
            JSON-serializable representation
        """
        return {
            "snapshot_id": self.snapshot_id,
            "snapshot_version": self.snapshot_version,
            "timestamp": self.timestamp.isoformat(),
            "total_tasks": self.total_tasks,
            "filtered_count": self.filtered_count,
            "kpis": self.kpis.to_dict() if self.kpis else None,
            "top_values": {
                name: [e.to_dict() for e in entries]
                for name, entries in self.top_values.items()
            },
            "reason_breakdown": [b.to_dict() for b in self.reason_breakdown],
            "owner_breakdown": [b.to_dict() for b in self.owner_breakdown],
            "reason_trend": self.reason_trend.to_dict() if self.reason_trend else None,
            "segment_trend": [p.to_dict() for p in self.segment_trend],
            "owner_by_reason": (
                self.owner_by_reason.to_dict() if self.owner_by_reason else None
            ),
            "owner_by_root_cause": (
                self.owner_by_root_cause.to_dict() if self.owner_by_root_cause else None
            ),
            "hierarchy": self.hierarchy,
            "team_violations": self.team_violations,
            "timezone": self.timezone,
        }

    def to_json(self) -> str:
        """
        Convert snapshot to JSON string.

        Returns
        -------
        str
            JSON string representation
        """
        return json.dumps(self.to_dict(), indent=2)
