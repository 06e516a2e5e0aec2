"""Database schema for gridstats.

The statistics table holds one row per solving attempt. The grid and
solving attempt tables are owned by the puzzle layer; only the columns
the statistics layer reads are declared here.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Grid(Base):
    """Puzzle grid (owned by the puzzle layer)."""

    __tablename__ = "grids"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    grid_size: Mapped[int] = mapped_column(Integer, nullable=False)


class SolvingAttempt(Base):
    """Solving attempt for a grid (owned by the puzzle layer)."""

    __tablename__ = "solving_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    grid_id: Mapped[int] = mapped_column(Integer, ForeignKey("grids.id"), nullable=False)


class Statistics(Base):
    """Play statistics for a single solving attempt.

    Invariant: per grid_id at most one row has include_in_statistics set.
    Only that row contributes to cumulative and historic reports.
    """

    __tablename__ = "statistics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    grid_id: Mapped[int] = mapped_column(Integer, ForeignKey("grids.id"), nullable=False)
    replay: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    first_move: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_move: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Times in milliseconds
    elapsed_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cheat_penalty_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    cells_filled: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cells_empty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cells_revealed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_values_replaced: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    possibles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    action_undos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action_clear_cell: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action_clear_grid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action_reveal_cell: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action_reveal_operator: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action_check_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    check_progress_invalid_cells_found: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    solution_revealed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    solved_manually: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    finished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    include_in_statistics: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_statistics_grid_included", "grid_id", "include_in_statistics"),
    )
