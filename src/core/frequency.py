"""
Frequency Aggregation.

Counts categorical values across a task collection. Multi-valued fields fan
out: a task with three reasons contributes one count to each of them, so
multi-causal tasks show up in every relevant bucket. Percentages in top-K
rankings are taken against the number of tasks, not the number of counts.
"""

import logging
from collections import Counter, defaultdict
from typing import Any, Dict, List, Optional, Tuple

from src.core.store import (
    UNKNOWN,
    CategoryBreakdown,
    FrequencyEntry,
    Task,
    category_values,
    classify_score,
    normalize_field,
    percent,
)

logger = logging.getLogger(__name__)


def count_values(tasks: List[Task], field_name: str) -> Counter:
    """Fan-out counts of a categorical field (missing -> 'Unknown')."""
    field_name = normalize_field(field_name)
    counts: Counter = Counter()
    for task in tasks:
        counts.update(category_values(task, field_name))
    return counts


def rank(counts: Counter) -> List[Tuple[str, int]]:
    """Descending count, ties broken alphabetically by name."""
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def top_k(tasks: List[Task], field_name: str, k: int = 5) -> List[FrequencyEntry]:
    """
    Most frequent values of a field.

    Parameters
    ----------
    tasks : List[Task]
        Task collection
    field_name : str
        Scalar or multi-valued categorical field
    k : int
        Maximum entries to return (5 for summaries, 10 for breakdowns)

    Returns
    -------
    List[FrequencyEntry]
        At most k entries; percentage = round(count / len(tasks) * 100)
    """
    if k <= 0:
        raise ValueError(f"k must be positive, got {k}")

    total = len(tasks)
    return [
        FrequencyEntry(name=name, count=count, percentage=percent(count, total))
        for name, count in rank(count_values(tasks, field_name))[:k]
    ]


def breakdown(
    tasks: List[Task], field_name: str, limit: Optional[int] = None
) -> List[CategoryBreakdown]:
    """
    Cases, neutrals and detractors per value of a field.

    Each row's percentage is its share of all fan-out cases of the field;
    neutral/detractor percentages are relative to the row's own cases.
    """
    field_name = normalize_field(field_name)
    rows: Dict[str, CategoryBreakdown] = {}

    for task in tasks:
        segment = classify_score(task.evaluation_score)
        for value in category_values(task, field_name):
            row = rows.get(value)
            if row is None:
                row = rows[value] = CategoryBreakdown(name=value)
            row.cases += 1
            if segment == "neutral":
                row.neutrals += 1
            elif segment == "detractor":
                row.detractors += 1

    total_cases = sum(row.cases for row in rows.values())
    for row in rows.values():
        row.percentage = percent(row.cases, total_cases)
        row.neutral_pct = round(row.neutrals / row.cases * 100, 1)
        row.detractor_pct = round(row.detractors / row.cases * 100, 1)

    ordered = sorted(rows.values(), key=lambda r: (-r.cases, r.name))
    if limit is not None:
        ordered = ordered[:limit]
    return ordered


def hierarchy(tasks: List[Task]) -> Dict[str, Any]:
    """
    Reason -> sub-reason -> root cause counts.

    Returns
    -------
    Dict[str, Any]
        {reason: {"count": n, "sub_reasons": {sub: {"count": n,
        "root_causes": {rc: n}}}}}
    """
    tree: Dict[str, Any] = {}
    for task in tasks:
        sub_reasons = category_values(task, "sub_reason")
        root_causes = category_values(task, "root_cause")
        for reason in category_values(task, "reason"):
            node = tree.setdefault(reason, {"count": 0, "sub_reasons": {}})
            node["count"] += 1
            for sub in sub_reasons:
                sub_node = node["sub_reasons"].setdefault(
                    sub, {"count": 0, "root_causes": {}}
                )
                sub_node["count"] += 1
                for cause in root_causes:
                    sub_node["root_causes"][cause] = sub_node["root_causes"].get(cause, 0) + 1
    return tree


def team_violations(tasks: List[Task]) -> List[Dict[str, Any]]:
    """
    Detractor and passive counts per field team.

    Teams are keyed by (team name, company); rows are sorted by total
    violations, descending.
    """
    stats: Dict[Tuple[str, str], Dict[str, int]] = defaultdict(
        lambda: {"detractors": 0, "passives": 0, "total": 0}
    )

    for task in tasks:
        segment = classify_score(task.evaluation_score)
        if segment not in ("detractor", "neutral"):
            continue
        key = (task.team_name or UNKNOWN, task.team_company or UNKNOWN)
        entry = stats[key]
        if segment == "detractor":
            entry["detractors"] += 1
        else:
            entry["passives"] += 1
        entry["total"] += 1

    rows = [
        {"team_name": name, "team_company": company, **counts}
        for (name, company), counts in stats.items()
    ]
    rows.sort(key=lambda r: (-r["total"], r["team_name"], r["team_company"]))
    logger.debug(f"Computed violations for {len(rows)} teams")
    return rows
