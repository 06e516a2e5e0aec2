"""Statistics API endpoints.

POST /api/grids/{grid_id}/statistics - Start statistics for a new attempt
GET /api/grids/{grid_id}/statistics/latest - Get most recent statistics of a grid
PUT /api/grids/{grid_id}/included-attempt - Change the included attempt of a grid
GET /api/statistics/{statistics_id} - Get statistics
PUT /api/statistics/{statistics_id} - Update statistics
"""

from __future__ import annotations

from dataclasses import asdict, replace

from fastapi import APIRouter, Depends, HTTPException

from gridstats.api.app import get_db_session
from gridstats.db import repo
from gridstats.db.errors import StatisticsNotFoundError
from gridstats.db.repo import DbSession
from gridstats.models.domain import StatisticsEntity
from gridstats.models.types import (
    IncludedAttemptUpdate,
    StatisticsCreate,
    StatisticsDetail,
    StatisticsUpdate,
)

router = APIRouter()


def _to_detail(entity: StatisticsEntity) -> StatisticsDetail:
    return StatisticsDetail(**asdict(entity))


@router.post(
    "/grids/{grid_id}/statistics", response_model=StatisticsDetail, status_code=201
)
def create_statistics(
    grid_id: int,
    request: StatisticsCreate,
    session: DbSession = Depends(get_db_session),
) -> StatisticsDetail:
    """Start the statistics of a new solving attempt.

    Raises:
        HTTPException: 404 if grid not found.
    """
    grid = repo.get_grid(session, grid_id, solving_attempt_id=request.solving_attempt_id)
    if grid is None:
        raise HTTPException(status_code=404, detail="Grid not found")

    stats = repo.create_statistics(session, grid)
    repo.commit(session)
    return _to_detail(stats)


@router.get("/grids/{grid_id}/statistics/latest", response_model=StatisticsDetail)
def get_most_recent_statistics(
    grid_id: int,
    session: DbSession = Depends(get_db_session),
) -> StatisticsDetail:
    """Get the most recent statistics of a grid.

    Raises:
        HTTPException: 404 if the grid has no statistics.
    """
    stats = repo.get_most_recent_statistics(session, grid_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="Statistics not found")
    return _to_detail(stats)


@router.put("/grids/{grid_id}/included-attempt", status_code=204)
def set_included_attempt(
    grid_id: int,
    request: IncludedAttemptUpdate,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Make one attempt the only attempt of the grid counted in reports.

    Raises:
        HTTPException: 404 if the statistics do not belong to the grid.
    """
    if not repo.set_included_attempt(session, grid_id, request.statistics_id):
        raise HTTPException(status_code=404, detail="Statistics not found for grid")
    repo.commit(session)


@router.get("/statistics/{statistics_id}", response_model=StatisticsDetail)
def get_statistics(
    statistics_id: int,
    session: DbSession = Depends(get_db_session),
) -> StatisticsDetail:
    """Get statistics by ID.

    Raises:
        HTTPException: 404 if statistics not found.
    """
    stats = repo.get_statistics(session, statistics_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="Statistics not found")
    return _to_detail(stats)


@router.put("/statistics/{statistics_id}", response_model=StatisticsDetail)
def update_statistics(
    statistics_id: int,
    update: StatisticsUpdate,
    session: DbSession = Depends(get_db_session),
) -> StatisticsDetail:
    """Persist the counters and flags of a solving attempt.

    Raises:
        HTTPException: 404 if statistics not found.
    """
    stats = repo.get_statistics(session, statistics_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="Statistics not found")

    updated = replace(stats, **update.model_dump())
    try:
        repo.update_statistics(session, updated)
    except StatisticsNotFoundError as e:
        raise HTTPException(status_code=404, detail="Statistics not found") from e
    repo.commit(session)

    return _to_detail(updated)
