"""
KPI Summarizer.

Headline metrics for a filtered task collection: NPS segment counts and
rates, compliance rate and average score.

Unaudited sample rule
---------------------
Audits are drawn from a weekly sample of customers. When the sample for the
period is larger than the number of audits actually performed, every sampled
customer that was never audited is counted as a promoter, and the sample size
(not the audit count) becomes the denominator of every segment rate::

    promoter_rate = round((promoters + (expected - audits)) / expected * 100)

This is a business rule of the audit program, not a statistical correction.
Keep it in `unaudited_sample_promoter_rate` so it stays visible; if samples
and audits ever stop meaning the same population, this is the place to
revisit.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from src.core.store import KPISummary, NPSTargets, Task, WeekLabel, classify_score, percent

logger = logging.getLogger(__name__)

VALIDATED = "Validated"


def unaudited_sample_promoter_rate(
    promoters: int, actual_audits: int, total_expected_samples: int
) -> int:
    """
    Promoter rate with unaudited samples counted as promoters.

    Parameters
    ----------
    promoters : int
        Audited tasks scored 9-10
    actual_audits : int
        Audits performed in the period
    total_expected_samples : int
        Customers sampled for the period

    Returns
    -------
    int
        Percentage over the expected samples; when the sample is not larger
        than the audit count the plain promoter rate over audits is returned
    """
    if total_expected_samples <= actual_audits:
        return percent(promoters, actual_audits)
    unaudited = total_expected_samples - actual_audits
    return percent(promoters + unaudited, total_expected_samples)


def summarize(
    tasks: List[Task],
    total_expected_samples: Optional[int] = None,
    targets: Optional[NPSTargets] = None,
) -> KPISummary:
    """
    Compute the KPI summary of a task collection.

    Parameters
    ----------
    tasks : List[Task]
        Filtered tasks; each one counts as a performed audit
    total_expected_samples : Optional[int]
        Sample size of the period; enables the unaudited sample rule when it
        exceeds len(tasks)
    targets : Optional[NPSTargets]
        Promoter floor / detractor ceiling used for the alarm flags

    Returns
    -------
    KPISummary
        Counts, rates (0-100) and alarm flags
    """
    targets = targets or NPSTargets()
    total = len(tasks)

    promoters = neutrals = detractors = validated = 0
    scores = []
    for task in tasks:
        if task.validation_status == VALIDATED:
            validated += 1
        segment = classify_score(task.evaluation_score)
        if segment is None:
            continue
        scores.append(task.evaluation_score)
        if segment == "promoter":
            promoters += 1
        elif segment == "neutral":
            neutrals += 1
        else:
            detractors += 1

    expected = total_expected_samples or 0
    if expected > total:
        denominator = expected
        promoter_rate = unaudited_sample_promoter_rate(promoters, total, expected)
    else:
        denominator = total
        promoter_rate = percent(promoters, total)

    neutral_rate = percent(neutrals, denominator)
    detractor_rate = percent(detractors, denominator)

    summary = KPISummary(
        total=total,
        scored=len(scores),
        promoters=promoters,
        neutrals=neutrals,
        detractors=detractors,
        validated=validated,
        compliance_rate=round(validated / total * 100, 1) if total else 0.0,
        promoter_rate=promoter_rate,
        neutral_rate=neutral_rate,
        detractor_rate=detractor_rate,
        avg_score=round(sum(scores) / len(scores), 2) if scores else 0.0,
        nps=promoter_rate - detractor_rate,
        total_expected_samples=total_expected_samples,
        promoter_target=targets.promoters,
        detractor_target=targets.detractors,
        promoter_alarm=denominator > 0 and promoter_rate < targets.promoters,
        detractor_alarm=denominator > 0 and detractor_rate > targets.detractors,
    )

    logger.debug(
        f"KPIs: total={total}, nps={summary.nps}, "
        f"promoters={promoter_rate}%, detractors={detractor_rate}%"
    )
    return summary


def _sample_field(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def expected_samples(
    samples: Iterable[Dict[str, Any]], week_labels: Optional[Set[WeekLabel]] = None
) -> int:
    """
    Sum sample sizes of the weeks in a period.

    Parameters
    ----------
    samples : Iterable[Dict[str, Any]]
        Weekly sample records: year, weekNumber, sampleSize (snake_case
        spellings are accepted too)
    week_labels : Optional[Set[WeekLabel]]
        Weeks of the period; None sums every record

    Returns
    -------
    int
        Total expected samples
    """
    total = 0
    for record in samples:
        if not isinstance(record, dict):
            logger.warning(f"Skipping non-object sample record: {record!r}")
            continue
        try:
            year = int(_sample_field(record, "year"))
            week = int(_sample_field(record, "weekNumber", "week_number", "week"))
            size = int(_sample_field(record, "sampleSize", "sample_size") or 0)
        except (TypeError, ValueError):
            logger.warning(f"Skipping malformed sample record: {record!r}")
            continue
        if week_labels is None or WeekLabel(year, week) in week_labels:
            total += size
    return total
