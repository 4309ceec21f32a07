"""
Cross-Tab Matrix Builder.

Builds owner-by-reason style contribution matrices. Which (row, column)
pairs a task contributes depends on how many values each side carries:

- both sides multi-valued: values are paired by position (zip), so a task
  with reasons [R1, R2] and owners [O1, O2] credits R1/O1 and R2/O2 only
- otherwise: every row value is crossed with every column value

Only pairs whose row AND column are among the allowed top-K values are
counted; totals are sums of the counted cells, never of raw fan-out.
"""

import logging
from itertools import product
from typing import Iterator, List, Tuple

from src.core.frequency import top_k
from src.core.store import CrossTabResult, Task, category_values, normalize_field

logger = logging.getLogger(__name__)


def pair_values(rows: List[str], cols: List[str]) -> Iterator[Tuple[str, str]]:
    """Yield the (row, col) pairs a single task contributes."""
    if len(rows) > 1 and len(cols) > 1:
        return zip(rows, cols)
    return product(rows, cols)


def build_matrix(
    tasks: List[Task],
    row_field: str,
    col_field: str,
    row_limit: int = 10,
    col_limit: int = 8,
) -> CrossTabResult:
    """
    Contribution matrix of `row_field` values by `col_field` values.

    Parameters
    ----------
    tasks : List[Task]
        Filtered tasks (not modified)
    row_field : str
        Field on the row axis (e.g. 'reason')
    col_field : str
        Field on the column axis (e.g. 'responsible')
    row_limit : int
        Number of top row values kept (default 10)
    col_limit : int
        Number of top column values kept (default 8)

    Returns
    -------
    CrossTabResult
        Matrix with per-row and per-column totals
    """
    row_field = normalize_field(row_field)
    col_field = normalize_field(col_field)

    row_keys = [e.name for e in top_k(tasks, row_field, row_limit)]
    col_keys = [e.name for e in top_k(tasks, col_field, col_limit)]
    allowed_rows = set(row_keys)
    allowed_cols = set(col_keys)

    result = CrossTabResult(
        row_field=row_field,
        col_field=col_field,
        matrix={row: {} for row in row_keys},
        row_keys=row_keys,
        col_keys=col_keys,
        row_totals={row: 0 for row in row_keys},
        col_totals={col: 0 for col in col_keys},
    )

    increments = 0
    for task in tasks:
        rows = category_values(task, row_field)
        cols = category_values(task, col_field)
        for row, col in pair_values(rows, cols):
            if row not in allowed_rows or col not in allowed_cols:
                continue
            cells = result.matrix[row]
            cells[col] = cells.get(col, 0) + 1
            result.row_totals[row] += 1
            result.col_totals[col] += 1
            increments += 1

    logger.debug(
        f"Built {row_field} x {col_field} matrix: "
        f"{len(row_keys)}x{len(col_keys)}, {increments} increments"
    )
    return result


def owner_by_reason(tasks: List[Task], row_limit: int = 10, col_limit: int = 8) -> CrossTabResult:
    return build_matrix(tasks, "reason", "responsible", row_limit, col_limit)


def owner_by_root_cause(
    tasks: List[Task], row_limit: int = 10, col_limit: int = 8
) -> CrossTabResult:
    return build_matrix(tasks, "root_cause", "responsible", row_limit, col_limit)
