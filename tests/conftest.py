"""Shared pytest fixtures for gridstats tests."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gridstats.db.schema import Base, Grid, SolvingAttempt, Statistics
from gridstats.db.session import configure_sqlite
from gridstats.models.domain import GridRef


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    configure_sqlite(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def make_grid(session):
    """Factory creating a grid row, returned as GridRef."""

    def _make_grid(grid_size: int = 4) -> GridRef:
        grid = Grid(grid_size=grid_size)
        session.add(grid)
        session.flush()
        return GridRef(grid_id=grid.id, grid_size=grid_size)

    return _make_grid


@pytest.fixture
def start_attempt(session):
    """Factory storing a solving attempt and loading it into the grid."""

    def _start_attempt(grid: GridRef) -> GridRef:
        attempt = SolvingAttempt(grid_id=grid.grid_id)
        session.add(attempt)
        session.flush()
        return GridRef(
            grid_id=grid.grid_id,
            grid_size=grid.grid_size,
            solving_attempt_id=attempt.id,
        )

    return _start_attempt


@pytest.fixture
def add_statistics(session):
    """Factory storing a grid with one statistics row, returned as ORM object."""

    def _add_statistics(
        grid_size: int = 4,
        grid_id: int | None = None,
        included: bool = True,
        first_move: datetime = datetime(2024, 1, 1, 12, 0, 0),
        last_move: datetime = datetime(2024, 1, 1, 12, 30, 0),
        **counters,
    ) -> Statistics:
        if grid_id is None:
            grid = Grid(grid_size=grid_size)
            session.add(grid)
            session.flush()
            grid_id = grid.id
        stats = Statistics(
            grid_id=grid_id,
            first_move=first_move,
            last_move=last_move,
            include_in_statistics=included,
            **counters,
        )
        session.add(stats)
        session.flush()
        return stats

    return _add_statistics
