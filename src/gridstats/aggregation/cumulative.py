"""Cumulative statistics over all included attempts in a grid size range."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import InstrumentedAttribute

from gridstats.aggregation.selection import check_grid_size_range, select_included
from gridstats.db.errors import StorageError
from gridstats.db.projection import Aggregation, Projection
from gridstats.db.repo import DbSession
from gridstats.db.schema import Grid, Statistics
from gridstats.db.session import DEBUG_SQL
from gridstats.models.types import CumulativeStatistics

logger = logging.getLogger(__name__)

# CumulativeStatistics field -> aggregate it is decoded from.
# The projection is built from this table and rows are decoded through it.
CUMULATIVE_FIELDS: dict[str, tuple[Aggregation, InstrumentedAttribute]] = {
    "min_grid_size": (Aggregation.MIN, Grid.grid_size),
    "max_grid_size": (Aggregation.MAX, Grid.grid_size),
    "min_first_move": (Aggregation.MIN, Statistics.first_move),
    "max_last_move": (Aggregation.MAX, Statistics.last_move),
    "sum_elapsed_time": (Aggregation.SUM, Statistics.elapsed_time),
    "min_elapsed_time": (Aggregation.MIN, Statistics.elapsed_time),
    "avg_elapsed_time": (Aggregation.AVG, Statistics.elapsed_time),
    "max_elapsed_time": (Aggregation.MAX, Statistics.elapsed_time),
    "sum_cheat_penalty_time": (Aggregation.SUM, Statistics.cheat_penalty_time),
    "min_cheat_penalty_time": (Aggregation.MIN, Statistics.cheat_penalty_time),
    "avg_cheat_penalty_time": (Aggregation.AVG, Statistics.cheat_penalty_time),
    "max_cheat_penalty_time": (Aggregation.MAX, Statistics.cheat_penalty_time),
    "sum_possibles": (Aggregation.SUM, Statistics.possibles),
    "sum_action_undos": (Aggregation.SUM, Statistics.action_undos),
    "sum_action_clear_cell": (Aggregation.SUM, Statistics.action_clear_cell),
    "sum_action_clear_grid": (Aggregation.SUM, Statistics.action_clear_grid),
    "sum_action_reveal_cell": (Aggregation.SUM, Statistics.action_reveal_cell),
    "sum_action_reveal_operator": (Aggregation.SUM, Statistics.action_reveal_operator),
    "sum_action_check_progress": (Aggregation.SUM, Statistics.action_check_progress),
    "sum_check_progress_invalid_cells_found": (
        Aggregation.SUM,
        Statistics.check_progress_invalid_cells_found,
    ),
    "count_solution_revealed": (Aggregation.COUNTIF_TRUE, Statistics.solution_revealed),
    "count_solved_manually": (Aggregation.COUNTIF_TRUE, Statistics.solved_manually),
    "count_finished": (Aggregation.COUNTIF_TRUE, Statistics.finished),
    "count_started": (Aggregation.COUNT, Statistics.id),
}


def _build_projection() -> Projection:
    projection = Projection()
    for aggregation, column in CUMULATIVE_FIELDS.values():
        projection.put(aggregation, column)
    return projection.freeze()


CUMULATIVE_PROJECTION = _build_projection()


def get_cumulative_statistics(
    session: DbSession,
    min_grid_size: int,
    max_grid_size: int,
) -> CumulativeStatistics | None:
    """Aggregate the included attempts of all grids in a size range.

    Args:
        session: Database session.
        min_grid_size: Smallest grid size (inclusive).
        max_grid_size: Largest grid size (inclusive).

    Returns:
        CumulativeStatistics, or None when no included attempt matches.
        An empty selection is never reported as zero valued statistics.

    Raises:
        ValueError: If min_grid_size > max_grid_size.
        StorageError: If the query fails.
    """
    check_grid_size_range(min_grid_size, max_grid_size)

    stmt = select_included(CUMULATIVE_PROJECTION.columns(), min_grid_size, max_grid_size)
    if DEBUG_SQL:
        logger.debug(f"Cumulative statistics query: {stmt}")

    try:
        row = session.execute(stmt).one()
    except SQLAlchemyError as e:
        logger.error(f"Cumulative statistics query failed: {e}")
        raise StorageError(
            f"Cannot compute cumulative statistics for sizes {min_grid_size}-{max_grid_size}"
        ) from e

    if CUMULATIVE_PROJECTION.get_aggregated(row, Aggregation.COUNT, Statistics.id) == 0:
        logger.debug(f"No included statistics for sizes {min_grid_size}-{max_grid_size}")
        return None

    return CumulativeStatistics(
        **{
            field: CUMULATIVE_PROJECTION.get_aggregated(row, aggregation, column)
            for field, (aggregation, column) in CUMULATIVE_FIELDS.items()
        }
    )
