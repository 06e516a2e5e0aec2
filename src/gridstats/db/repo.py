"""Repository pattern for statistics storage.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.

Functions flush but never commit or roll back: the caller owns the
transaction. Writes run inside a savepoint, so a failing statement only
undoes itself and leaves the caller's pending work intact.
Misses return None, store failures raise StorageError.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import case, false, func, or_, select, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from gridstats.core.inclusion import is_included_at_creation, replay_ordinal
from gridstats.db.errors import StatisticsNotFoundError, StorageError
from gridstats.db.schema import Grid, SolvingAttempt, Statistics
from gridstats.models.domain import GridRef, StatisticsEntity, to_naive_utc

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]

logger = logging.getLogger(__name__)

# The inclusion flag is owned by set_included_attempt, so updates of a
# stale entity can never re-include an attempt.
UPDATABLE_COLUMNS: tuple[str, ...] = (
    "first_move",
    "last_move",
    "elapsed_time",
    "cheat_penalty_time",
    "cells_filled",
    "cells_empty",
    "cells_revealed",
    "user_values_replaced",
    "possibles",
    "action_undos",
    "action_clear_cell",
    "action_clear_grid",
    "action_reveal_cell",
    "action_reveal_operator",
    "action_check_progress",
    "check_progress_invalid_cells_found",
    "solution_revealed",
    "solved_manually",
    "finished",
)


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _statistics_to_entity(stats: Statistics) -> StatisticsEntity:
    """Convert SQLAlchemy Statistics to domain entity."""
    return StatisticsEntity(
        id=stats.id,
        grid_id=stats.grid_id,
        replay=stats.replay,
        first_move=stats.first_move,
        last_move=stats.last_move,
        elapsed_time=stats.elapsed_time,
        cheat_penalty_time=stats.cheat_penalty_time,
        cells_filled=stats.cells_filled,
        cells_empty=stats.cells_empty,
        cells_revealed=stats.cells_revealed,
        user_values_replaced=stats.user_values_replaced,
        possibles=stats.possibles,
        action_undos=stats.action_undos,
        action_clear_cell=stats.action_clear_cell,
        action_clear_grid=stats.action_clear_grid,
        action_reveal_cell=stats.action_reveal_cell,
        action_reveal_operator=stats.action_reveal_operator,
        action_check_progress=stats.action_check_progress,
        check_progress_invalid_cells_found=stats.check_progress_invalid_cells_found,
        solution_revealed=stats.solution_revealed,
        solved_manually=stats.solved_manually,
        finished=stats.finished,
        include_in_statistics=stats.include_in_statistics,
    )


# ============================================================================
# Grid Repository
# ============================================================================


def get_grid(
    session: DbSession, grid_id: int, solving_attempt_id: int | None = None
) -> GridRef | None:
    """Get grid by ID, with the solving attempt currently loaded in it."""
    try:
        grid = session.query(Grid).filter(Grid.id == grid_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Reading grid {grid_id} failed: {e}")
        raise StorageError(f"Cannot read grid {grid_id}") from e
    if grid is None:
        return None
    return GridRef(
        grid_id=grid.id,
        grid_size=grid.grid_size,
        solving_attempt_id=solving_attempt_id,
    )


# ============================================================================
# Solving Attempt Repository
# ============================================================================


def count_solving_attempts_for_grid(session: DbSession, grid_id: int) -> int:
    """Count solving attempts stored for a grid."""
    try:
        count = (
            session.query(func.count(SolvingAttempt.id))
            .filter(SolvingAttempt.grid_id == grid_id)
            .scalar()
        )
    except SQLAlchemyError as e:
        logger.error(f"Counting solving attempts for grid {grid_id} failed: {e}")
        raise StorageError(f"Cannot count solving attempts for grid {grid_id}") from e
    return count or 0


# ============================================================================
# Statistics Repository
# ============================================================================


def create_statistics(
    session: DbSession,
    grid: GridRef,
    *,
    now: datetime | None = None,
) -> StatisticsEntity:
    """Create the statistics record for a new solving attempt.

    The record starts with all counters zero, all cells empty and all
    flags false. It is included in the statistics only when it is the
    first attempt on the grid and no other record of the grid is included.

    Args:
        session: Database session.
        grid: Grid the attempt belongs to.
        now: Time of the first and last move. Defaults to current UTC time.

    Returns:
        The created record as stored.

    Raises:
        StorageError: If the insert fails. Only the insert is undone.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = to_naive_utc(now)

    attempt_count = count_solving_attempts_for_grid(session, grid.grid_id)
    replay = replay_ordinal(attempt_count, grid.solving_attempt_id)
    # A grid never gets a second included record, whatever the attempt count says
    included = is_included_at_creation(replay) and (
        count_included_statistics(session, grid.grid_id) == 0
    )

    stats = Statistics(
        grid_id=grid.grid_id,
        replay=replay,
        first_move=now,
        last_move=now,
        elapsed_time=0,
        cheat_penalty_time=0,
        cells_filled=0,
        cells_empty=grid.grid_size * grid.grid_size,
        cells_revealed=0,
        user_values_replaced=0,
        possibles=0,
        action_undos=0,
        action_clear_cell=0,
        action_clear_grid=0,
        action_reveal_cell=0,
        action_reveal_operator=0,
        action_check_progress=0,
        check_progress_invalid_cells_found=0,
        solution_revealed=False,
        solved_manually=False,
        finished=False,
        include_in_statistics=included,
    )
    try:
        with session.begin_nested():
            session.add(stats)
            session.flush()
        # Re-read so the caller sees the values exactly as stored
        session.refresh(stats)
    except SQLAlchemyError as e:
        logger.error(f"Inserting statistics for grid {grid.grid_id} failed: {e}")
        raise StorageError(f"Cannot create statistics for grid {grid.grid_id}") from e

    logger.info(
        f"Created statistics {stats.id} for grid {grid.grid_id} "
        f"(replay={replay}, included={stats.include_in_statistics})"
    )
    return _statistics_to_entity(stats)


def get_statistics(session: DbSession, statistics_id: int) -> StatisticsEntity | None:
    """Get statistics by ID."""
    try:
        stats = session.query(Statistics).filter(Statistics.id == statistics_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Reading statistics {statistics_id} failed: {e}")
        raise StorageError(f"Cannot read statistics {statistics_id}") from e
    if stats is None:
        logger.debug(f"No statistics with id {statistics_id}")
        return None
    return _statistics_to_entity(stats)


def get_most_recent_statistics(session: DbSession, grid_id: int) -> StatisticsEntity | None:
    """Get the most recent statistics for a grid.

    Grids which were never played interactively (e.g. imported historic
    games) have no statistics at all.
    """
    try:
        stats = (
            session.query(Statistics)
            .filter(Statistics.grid_id == grid_id)
            .order_by(Statistics.id.desc())
            .first()
        )
    except SQLAlchemyError as e:
        logger.error(f"Reading most recent statistics for grid {grid_id} failed: {e}")
        raise StorageError(f"Cannot read statistics for grid {grid_id}") from e
    if stats is None:
        logger.debug(f"No statistics for grid {grid_id}")
        return None
    return _statistics_to_entity(stats)


def update_statistics(session: DbSession, entity: StatisticsEntity) -> None:
    """Persist the mutable fields of a statistics record.

    id, grid_id and replay are fixed at creation. The inclusion flag is
    only changed through set_included_attempt.

    Raises:
        ValueError: If last_move lies before first_move.
        StatisticsNotFoundError: If no row has the entity's id.
        StorageError: If the update fails.
    """
    values = {column: getattr(entity, column) for column in UPDATABLE_COLUMNS}
    values["first_move"] = to_naive_utc(entity.first_move)
    values["last_move"] = to_naive_utc(entity.last_move)
    if values["last_move"] < values["first_move"]:
        raise ValueError(
            f"last_move {entity.last_move} is before first_move {entity.first_move}"
        )

    try:
        with session.begin_nested():
            result = session.execute(
                update(Statistics).where(Statistics.id == entity.id).values(**values)
            )
    except SQLAlchemyError as e:
        logger.error(f"Updating statistics {entity.id} failed: {e}")
        raise StorageError(f"Cannot update statistics {entity.id}") from e

    if result.rowcount != 1:
        logger.error(f"Update of statistics {entity.id} matched {result.rowcount} rows")
        raise StatisticsNotFoundError(entity.id)


def set_included_attempt(session: DbSession, grid_id: int, statistics_id: int) -> bool:
    """Make statistics_id the only included record of its grid.

    A single UPDATE switches the flag on for the given record and off for
    the record currently included, so readers never see a grid with zero
    or two included records. Calling it again with the same id changes
    nothing. An id which does not belong to the grid changes nothing.

    Args:
        session: Database session.
        grid_id: Grid whose included attempt changes.
        statistics_id: Statistics record which has to be included.

    Returns:
        False if statistics_id is not a record of the grid.

    Raises:
        StorageError: If the update fails.
    """
    target = aliased(Statistics)
    target_in_grid = (
        select(target.id)
        .where(target.id == statistics_id, target.grid_id == grid_id)
        .exists()
    )
    stmt = (
        update(Statistics)
        .where(
            Statistics.grid_id == grid_id,
            or_(
                Statistics.id == statistics_id,
                Statistics.include_in_statistics == true(),
            ),
            target_in_grid,
        )
        .values(
            include_in_statistics=case(
                (Statistics.id == statistics_id, true()),
                else_=false(),
            )
        )
        .execution_options(synchronize_session=False)
    )
    try:
        with session.begin_nested():
            result = session.execute(stmt)
    except SQLAlchemyError as e:
        logger.error(f"Including statistics {statistics_id} for grid {grid_id} failed: {e}")
        raise StorageError(f"Cannot include statistics {statistics_id} for grid {grid_id}") from e

    # Loaded records of the grid still hold the old flag
    for obj in list(session.identity_map.values()):
        if isinstance(obj, Statistics) and obj.grid_id == grid_id:
            session.expire(obj, ["include_in_statistics"])

    if result.rowcount == 0:
        logger.warning(f"Statistics {statistics_id} does not belong to grid {grid_id}")
        return False

    logger.info(f"Statistics {statistics_id} is now included for grid {grid_id}")
    return True


def count_included_statistics(session: DbSession, grid_id: int) -> int:
    """Count records of a grid with the inclusion flag set (0 or 1)."""
    try:
        count = (
            session.query(func.count(Statistics.id))
            .filter(
                Statistics.grid_id == grid_id,
                Statistics.include_in_statistics == true(),
            )
            .scalar()
        )
    except SQLAlchemyError as e:
        logger.error(f"Counting included statistics for grid {grid_id} failed: {e}")
        raise StorageError(f"Cannot count included statistics for grid {grid_id}") from e
    return count or 0


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    try:
        session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Commit failed: {e}")
        raise StorageError("Cannot commit transaction") from e
