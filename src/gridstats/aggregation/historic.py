"""Historic statistics: one row per included attempt in a grid size range.

Rows are ordered by grid and classified into an outcome series so the
caller can plot finished, revealed and unfinished games separately.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from sqlalchemy import Result, case, false, true
from sqlalchemy.exc import SQLAlchemyError

from gridstats.aggregation.selection import check_grid_size_range, select_included
from gridstats.db.errors import StorageError
from gridstats.db.projection import Projection
from gridstats.db.repo import DbSession
from gridstats.db.schema import Statistics
from gridstats.db.session import DEBUG_SQL
from gridstats.models.domain import Serie
from gridstats.models.types import HistoricRow

logger = logging.getLogger(__name__)

# First matching branch wins
SERIES_EXPRESSION = case(
    (Statistics.finished == false(), Serie.UNFINISHED.value),
    (Statistics.solution_revealed == true(), Serie.SOLUTION_REVEALED.value),
    else_=Serie.SOLVED.value,
)

# Raw counters carried on every historic row
HISTORIC_COUNTERS = (
    Statistics.elapsed_time,
    Statistics.cells_filled,
    Statistics.cells_empty,
    Statistics.cells_revealed,
    Statistics.user_values_replaced,
    Statistics.possibles,
    Statistics.action_undos,
    Statistics.action_clear_cell,
    Statistics.action_clear_grid,
    Statistics.action_reveal_cell,
    Statistics.action_reveal_operator,
    Statistics.action_check_progress,
    Statistics.check_progress_invalid_cells_found,
)


def _build_projection() -> Projection:
    # Every output name matches a HistoricRow field
    projection = Projection()
    projection.put_column(Statistics.id, "statistics_id")
    projection.put_expression(
        "elapsed_time_excluding_cheat_penalty",
        Statistics.elapsed_time - Statistics.cheat_penalty_time,
    )
    projection.put_column(Statistics.cheat_penalty_time, "cheat_penalty")
    projection.put_expression("series", SERIES_EXPRESSION)
    for column in HISTORIC_COUNTERS:
        projection.put_column(column)
    return projection.freeze()


HISTORIC_PROJECTION = _build_projection()


class HistoricStatistics:
    """Single-pass iterator of HistoricRow over a query result.

    The result is read lazily, so iterate while the session that ran
    the query is still open.
    """

    def __init__(self, result: Result, projection: Projection = HISTORIC_PROJECTION):
        self._result = result
        self._projection = projection
        self._consumed = False

    def __iter__(self) -> Iterator[HistoricRow]:
        if self._consumed:
            raise RuntimeError("Historic statistics can only be iterated once")
        self._consumed = True
        return self._rows()

    def _rows(self) -> Iterator[HistoricRow]:
        try:
            for row in self._result:
                yield HistoricRow(
                    **{name: self._projection.get(row, name) for name in self._projection}
                )
        except SQLAlchemyError as e:
            logger.error(f"Reading historic statistics failed: {e}")
            raise StorageError("Cannot read historic statistics") from e
        finally:
            self._result.close()


def get_historic_statistics(
    session: DbSession,
    min_grid_size: int,
    max_grid_size: int,
) -> HistoricStatistics:
    """Get the included attempts of all grids in a size range.

    Args:
        session: Database session.
        min_grid_size: Smallest grid size (inclusive).
        max_grid_size: Largest grid size (inclusive).

    Returns:
        HistoricStatistics yielding one row per included attempt, ordered
        by grid. Possibly empty.

    Raises:
        ValueError: If min_grid_size > max_grid_size.
        StorageError: If the query fails.
    """
    check_grid_size_range(min_grid_size, max_grid_size)

    stmt = select_included(
        HISTORIC_PROJECTION.columns(), min_grid_size, max_grid_size
    ).order_by(Statistics.grid_id, Statistics.id)
    if DEBUG_SQL:
        logger.debug(f"Historic statistics query: {stmt}")

    try:
        result = session.execute(stmt)
    except SQLAlchemyError as e:
        logger.error(f"Historic statistics query failed: {e}")
        raise StorageError(
            f"Cannot compute historic statistics for sizes {min_grid_size}-{max_grid_size}"
        ) from e

    return HistoricStatistics(result)


def count_by_series(rows: Iterable[HistoricRow]) -> dict[Serie, int]:
    """Count rows per series; every series is present, possibly with 0."""
    counts = {serie: 0 for serie in Serie}
    for row in rows:
        counts[row.series] += 1
    return counts
