"""Domain models for gridstats.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


# ============================================================================
# Grid Domain
# ============================================================================


@dataclass(frozen=True)
class GridRef:
    """What the statistics layer needs to know about a grid.

    solving_attempt_id is the attempt currently loaded in the grid,
    None (or 0) when no attempt is loaded.
    """

    grid_id: int
    grid_size: int
    solving_attempt_id: int | None = None


# ============================================================================
# Time
# ============================================================================


def to_naive_utc(moment: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC.

    The store keeps naive datetimes, so all move timestamps are compared
    and persisted in this form.
    """
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


# ============================================================================
# Statistics Domain
# ============================================================================


class Serie(str, Enum):
    """Outcome series a historic row is bucketed into."""

    UNFINISHED = "UNFINISHED"
    SOLUTION_REVEALED = "SOLUTION_REVEALED"
    SOLVED = "SOLVED"


@dataclass
class StatisticsEntity:
    """Domain model for the statistics of one solving attempt."""

    id: int
    grid_id: int
    replay: int
    first_move: datetime
    last_move: datetime
    elapsed_time: int = 0
    cheat_penalty_time: int = 0
    cells_filled: int = 0
    cells_empty: int = 0
    cells_revealed: int = 0
    user_values_replaced: int = 0
    possibles: int = 0
    action_undos: int = 0
    action_clear_cell: int = 0
    action_clear_grid: int = 0
    action_reveal_cell: int = 0
    action_reveal_operator: int = 0
    action_check_progress: int = 0
    check_progress_invalid_cells_found: int = 0
    solution_revealed: bool = False
    solved_manually: bool = False
    finished: bool = False
    include_in_statistics: bool = False
