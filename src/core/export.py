"""
Export Sheet Builder.

Flattens a snapshot and its filtered tasks into spreadsheet-shaped sheets
(ordered sheet name -> list of flat rows). Writing the workbook file is left
to the caller; every cell here is a plain str/int/float so any writer can
consume it.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from src.core.store import (
    MULTI_VALUED_FIELDS,
    AnalyticsSnapshot,
    CategoryBreakdown,
    Task,
    parse_date,
)
from src.core.week_calendar import WeekCalendar

logger = logging.getLogger(__name__)

MISSING = "-"

SHEET_NAMES = (
    "Executive Summary",
    "Reason Analytics",
    "Owner Performance",
    "Historical Trends",
    "Deep Raw Data",
    "Ticket History",
)


def format_date(value: Any) -> str:
    """YYYY-MM-DD, or '-' for a missing/unparseable date."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else MISSING


def _cell(value: Any) -> Any:
    if value is None or value == "":
        return MISSING
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) if value else MISSING
    return value


def _summary_rows(snapshot: AnalyticsSnapshot) -> List[Dict[str, Any]]:
    kpis = snapshot.kpis
    if kpis is None:
        return []
    metrics = [
        ("Total Tasks", snapshot.total_tasks),
        ("Filtered Tasks", snapshot.filtered_count),
        ("Scored Tasks", kpis.scored),
        ("NPS", kpis.nps),
        ("Promoters", kpis.promoters),
        ("Neutrals", kpis.neutrals),
        ("Detractors", kpis.detractors),
        ("Promoter Rate (%)", kpis.promoter_rate),
        ("Neutral Rate (%)", kpis.neutral_rate),
        ("Detractor Rate (%)", kpis.detractor_rate),
        ("Compliance Rate (%)", kpis.compliance_rate),
        ("Average Score", kpis.avg_score),
        ("Expected Samples", _cell(kpis.total_expected_samples)),
        ("Promoter Target (%)", kpis.promoter_target),
        ("Detractor Target (%)", kpis.detractor_target),
        ("Generated At", snapshot.timestamp.isoformat()),
    ]
    return [{"Metric": name, "Value": value} for name, value in metrics]


def _breakdown_rows(label: str, rows: List[CategoryBreakdown]) -> List[Dict[str, Any]]:
    return [
        {
            label: row.name,
            "Cases": row.cases,
            "Share (%)": row.percentage,
            "Neutrals": row.neutrals,
            "Neutral (%)": row.neutral_pct,
            "Detractors": row.detractors,
            "Detractor (%)": row.detractor_pct,
        }
        for row in rows
    ]


def _trend_rows(snapshot: AnalyticsSnapshot) -> List[Dict[str, Any]]:
    rows = []
    for point in snapshot.segment_trend:
        rows.append(
            {
                "Week": point.label.key,
                "Start": format_date(point.start),
                "End": format_date(point.end),
                "Total": point.total,
                "Promoters": point.promoters,
                "Neutrals": point.neutrals,
                "Detractors": point.detractors,
                "Equivalent Detractors": point.equivalent_detractors,
                "Violations": point.violations,
                "Change (%)": _cell(point.change_pct),
            }
        )
    return rows


def raw_row(task: Task, calendar: WeekCalendar) -> Dict[str, Any]:
    """One flat row per task with every field, lists joined and dates formatted."""
    label = calendar.week_label(task.interview_date)
    row: Dict[str, Any] = {
        "ID": task.id,
        "SLID": _cell(task.slid),
        "Request Number": _cell(task.request_number),
        "Customer Name": _cell(task.customer_name),
        "Contact Number": _cell(task.contact_number),
        "Interview Date": format_date(task.interview_date),
        "Week": label.key if label else MISSING,
        "Created At": format_date(task.created_at),
        "Score": _cell(task.evaluation_score),
        "Priority": _cell(task.priority),
        "Status": _cell(task.status),
        "Governorate": _cell(task.governorate),
        "District": _cell(task.district),
        "Team Name": _cell(task.team_name),
        "Team Company": _cell(task.team_company),
        "Validation Status": _cell(task.validation_status),
        "GAIA Check": _cell(task.gaia_check),
        "GAIA ID": _cell(task.gaia_id),
    }
    for name in MULTI_VALUED_FIELDS:
        row[name.replace("_", " ").title()] = _cell(getattr(task, name))
    row["Customer Feedback"] = _cell(task.customer_feedback)
    return row


def ticket_rows(task: Task) -> List[Dict[str, Any]]:
    """Ticket history entries of a task, one row each."""
    return [
        {
            "SLID": _cell(task.slid),
            "Main Category": _cell(ticket.get("mainCategory")),
            "Status": _cell(ticket.get("status")),
            "Event Date": format_date(ticket.get("eventDate")),
            "Root Cause": _cell(ticket.get("rootCause")),
            "Sub Reason": _cell(ticket.get("subReason")),
            "Action Taken": _cell(ticket.get("actionTaken")),
            "Note": _cell(ticket.get("note")),
        }
        for ticket in task.tickets
    ]


def build_export_sheets(
    snapshot: AnalyticsSnapshot,
    filtered_tasks: List[Task],
    calendar: Optional[WeekCalendar] = None,
) -> "OrderedDict[str, List[Dict[str, Any]]]":
    """
    Build every export sheet.

    Parameters
    ----------
    snapshot : AnalyticsSnapshot
        Snapshot of the filtered view
    filtered_tasks : List[Task]
        Tasks behind the snapshot (raw data and ticket sheets)
    calendar : Optional[WeekCalendar]
        Calendar used for the week column of the raw data sheet

    Returns
    -------
    OrderedDict[str, List[Dict[str, Any]]]
        Sheets in workbook order
    """
    calendar = calendar or WeekCalendar()

    sheets: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
    sheets["Executive Summary"] = _summary_rows(snapshot)
    sheets["Reason Analytics"] = _breakdown_rows("Reason", snapshot.reason_breakdown)
    sheets["Owner Performance"] = _breakdown_rows("Owner", snapshot.owner_breakdown)
    sheets["Historical Trends"] = _trend_rows(snapshot)
    sheets["Deep Raw Data"] = [raw_row(task, calendar) for task in filtered_tasks]
    sheets["Ticket History"] = [row for task in filtered_tasks for row in ticket_rows(task)]

    logger.info(
        f"Built export: {len(sheets['Deep Raw Data'])} tasks, "
        f"{len(sheets['Ticket History'])} tickets"
    )
    return sheets
