"""
Drill-Down Resolver.

Turns a click on a chart cell (a set of field constraints) into the list of
underlying tasks. Matching mirrors aggregation: a record with no value for a
field is the 'Unknown' bucket, so the drill-down of an 'Unknown' bar returns
exactly the records counted in it.
"""

import logging
from typing import Any, Dict, List

from src.core.store import STRING_FIELDS, UNKNOWN, Task, normalize_field

logger = logging.getLogger(__name__)


def _matches(task: Task, field_name: str, expected: Any) -> bool:
    values = task.values_of(field_name)
    wanted = str(expected).strip()
    if not values:
        return wanted == UNKNOWN
    return wanted in values


def resolve(tasks: List[Task], constraints: Dict[str, Any]) -> List[Task]:
    """
    Tasks matching every constraint.

    Parameters
    ----------
    tasks : List[Task]
        Filtered tasks
    constraints : Dict[str, Any]
        field -> value; scalar fields match by equality, multi-valued fields
        by membership

    Returns
    -------
    List[Task]
        Matching tasks in input order (possibly empty)

    Raises
    ------
    ValueError
        If a constraint names an unknown field
    """
    resolved = []
    for name, value in constraints.items():
        field_name = normalize_field(name)
        if field_name not in STRING_FIELDS:
            raise ValueError(f"Cannot drill down on field: {name!r}")
        resolved.append((field_name, value))

    result = [
        task
        for task in tasks
        if all(_matches(task, name, value) for name, value in resolved)
    ]
    logger.debug(f"Drill-down {dict(resolved)} matched {len(result)}/{len(tasks)} tasks")
    return result
