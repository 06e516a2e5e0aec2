"""Row selection shared by the cumulative and historic reports."""

from __future__ import annotations

from sqlalchemy import Select, select, true
from sqlalchemy.sql.elements import Label

from gridstats.db.schema import Grid, Statistics


def check_grid_size_range(min_grid_size: int, max_grid_size: int) -> None:
    """Reject an inverted grid size range."""
    if min_grid_size > max_grid_size:
        raise ValueError(
            f"min_grid_size {min_grid_size} is larger than max_grid_size {max_grid_size}"
        )


def select_included(columns: list[Label], min_grid_size: int, max_grid_size: int) -> Select:
    """Select columns over the included statistics of grids in a size range.

    Both bounds are inclusive; use the same value twice to select a
    single grid size.
    """
    return (
        select(*columns)
        .select_from(Grid)
        .join(Statistics, Grid.id == Statistics.grid_id)
        .where(
            Grid.grid_size.between(min_grid_size, max_grid_size),
            Statistics.include_in_statistics == true(),
        )
    )
