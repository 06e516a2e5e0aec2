"""Tests for database schema invariants.

1. All tables exist after creation
2. Statistics must reference an existing grid
3. Counters and flags default to zero/false
"""

from datetime import datetime

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from gridstats.db.schema import Base, Grid, Statistics


class TestSchemaCreation:
    """Test that schema can be created without errors."""

    def test_all_tables_created(self, engine):
        """All required tables should exist after creation."""
        table_names = set(inspect(engine).get_table_names())
        assert {"grids", "solving_attempts", "statistics"}.issubset(table_names)
        assert {"grids", "solving_attempts", "statistics"}.issubset(Base.metadata.tables.keys())

    def test_inclusion_index_exists(self, engine):
        """Report filter columns should be indexed."""
        indexes = inspect(engine).get_indexes("statistics")
        assert any(ix["column_names"] == ["grid_id", "include_in_statistics"] for ix in indexes)


class TestStatisticsDefaults:
    """Counters start at zero and flags at false."""

    def test_defaults_applied(self, session):
        """Only required columns need a value."""
        grid = Grid(grid_size=5)
        session.add(grid)
        session.flush()

        now = datetime(2024, 3, 1, 12, 0, 0)
        stats = Statistics(grid_id=grid.id, first_move=now, last_move=now)
        session.add(stats)
        session.commit()
        session.refresh(stats)

        assert stats.replay == 0
        assert stats.elapsed_time == 0
        assert stats.cheat_penalty_time == 0
        assert stats.action_check_progress == 0
        assert stats.finished is False
        assert stats.solution_revealed is False
        assert stats.include_in_statistics is False


class TestForeignKeys:
    """Statistics rows must belong to an existing grid."""

    def test_unknown_grid_rejected(self, session):
        """Foreign key enforcement is on for SQLite connections."""
        now = datetime(2024, 3, 1, 12, 0, 0)
        session.add(Statistics(grid_id=999, first_move=now, last_move=now))
        with pytest.raises(IntegrityError):
            session.commit()
