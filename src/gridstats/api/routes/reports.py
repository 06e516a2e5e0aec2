"""Report API endpoints.

GET /api/reports/cumulative - Cumulative statistics for a grid size range
GET /api/reports/historic - Historic statistics for a grid size range
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from gridstats.aggregation.cumulative import get_cumulative_statistics
from gridstats.aggregation.historic import count_by_series, get_historic_statistics
from gridstats.api.app import get_db_session
from gridstats.db.repo import DbSession
from gridstats.models.types import CumulativeStatistics, HistoricStatisticsDetail

router = APIRouter()


@router.get("/reports/cumulative", response_model=CumulativeStatistics)
def get_cumulative_report(
    min_grid_size: int = Query(ge=1),
    max_grid_size: int = Query(ge=1),
    session: DbSession = Depends(get_db_session),
) -> CumulativeStatistics:
    """Get cumulative statistics over all included attempts in a size range.

    Raises:
        HTTPException: 422 if min_grid_size > max_grid_size, 404 if no
            included attempt matches the range.
    """
    try:
        cumulative = get_cumulative_statistics(session, min_grid_size, max_grid_size)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    if cumulative is None:
        raise HTTPException(status_code=404, detail="No statistics for grid size range")
    return cumulative


@router.get("/reports/historic", response_model=HistoricStatisticsDetail)
def get_historic_report(
    min_grid_size: int = Query(ge=1),
    max_grid_size: int = Query(ge=1),
    session: DbSession = Depends(get_db_session),
) -> HistoricStatisticsDetail:
    """Get one row per included attempt in a size range, ordered by grid."""
    try:
        historic = get_historic_statistics(session, min_grid_size, max_grid_size)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    rows = list(historic)
    return HistoricStatisticsDetail(
        min_grid_size=min_grid_size,
        max_grid_size=max_grid_size,
        rows=rows,
        count_by_series=count_by_series(rows),
    )
