"""Tests for report API endpoints."""

from datetime import datetime

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from gridstats.db.schema import Base, Grid, Statistics


def create_test_app_and_client(engine=None):
    """Create app with test database and return (client, engine)."""
    from gridstats.api.app import create_app, get_db_session

    if engine is None:
        engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(engine)

    app = create_app()

    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    client = TestClient(app)

    return client, engine


def setup_statistics(engine) -> None:
    """Two 4x4 grids (one replayed) and one 6x6 grid."""
    moment = datetime(2024, 4, 1, 20, 0, 0)
    with Session(engine) as db_session:
        small = Grid(grid_size=4)
        replayed = Grid(grid_size=4)
        large = Grid(grid_size=6)
        db_session.add_all([small, replayed, large])
        db_session.flush()

        db_session.add_all(
            [
                Statistics(
                    grid_id=small.id,
                    first_move=moment,
                    last_move=moment,
                    elapsed_time=100,
                    cheat_penalty_time=10,
                    finished=True,
                    include_in_statistics=True,
                ),
                Statistics(
                    grid_id=replayed.id,
                    first_move=moment,
                    last_move=moment,
                    elapsed_time=500,
                    finished=False,
                    include_in_statistics=False,
                ),
                Statistics(
                    grid_id=replayed.id,
                    first_move=moment,
                    last_move=moment,
                    elapsed_time=300,
                    finished=True,
                    solution_revealed=True,
                    include_in_statistics=True,
                ),
                Statistics(
                    grid_id=large.id,
                    first_move=moment,
                    last_move=moment,
                    elapsed_time=900,
                    finished=False,
                    include_in_statistics=True,
                ),
            ]
        )
        db_session.commit()


class TestCumulativeReport:
    """GET /api/reports/cumulative"""

    def test_single_size(self):
        """Only included attempts of the size are aggregated."""
        client, engine = create_test_app_and_client()
        setup_statistics(engine)

        response = client.get(
            "/api/reports/cumulative", params={"min_grid_size": 4, "max_grid_size": 4}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["count_started"] == 2
        assert data["sum_elapsed_time"] == 400
        assert data["avg_elapsed_time"] == 200.0
        assert data["count_finished"] == 2
        assert data["count_solution_revealed"] == 1

    def test_no_data_returns_404(self):
        """An empty range is not reported as zeros."""
        client, engine = create_test_app_and_client()
        setup_statistics(engine)

        response = client.get(
            "/api/reports/cumulative", params={"min_grid_size": 8, "max_grid_size": 9}
        )

        assert response.status_code == 404

    def test_inverted_range_returns_422(self):
        """min_grid_size must not exceed max_grid_size."""
        client, _ = create_test_app_and_client()

        response = client.get(
            "/api/reports/cumulative", params={"min_grid_size": 6, "max_grid_size": 4}
        )

        assert response.status_code == 422

    def test_storage_failure_returns_503(self):
        """A failing store is reported, never masked."""

        class BrokenSession(Session):
            def execute(self, *args, **kwargs):
                raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        from gridstats.api.app import create_app, get_db_session

        engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        app = create_app()

        def override_get_db():
            with BrokenSession(engine) as session:
                yield session

        app.dependency_overrides[get_db_session] = override_get_db
        client = TestClient(app)

        response = client.get(
            "/api/reports/cumulative", params={"min_grid_size": 4, "max_grid_size": 4}
        )

        assert response.status_code == 503


class TestHistoricReport:
    """GET /api/reports/historic"""

    def test_rows_and_series_counts(self):
        """One row per included attempt with per series totals."""
        client, engine = create_test_app_and_client()
        setup_statistics(engine)

        response = client.get(
            "/api/reports/historic", params={"min_grid_size": 4, "max_grid_size": 6}
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["series"] for r in data["rows"]] == [
            "SOLVED",
            "SOLUTION_REVEALED",
            "UNFINISHED",
        ]
        assert data["rows"][0]["elapsed_time_excluding_cheat_penalty"] == 90
        assert data["count_by_series"] == {
            "UNFINISHED": 1,
            "SOLUTION_REVEALED": 1,
            "SOLVED": 1,
        }

    def test_empty_range(self):
        """An empty series is a valid answer."""
        client, engine = create_test_app_and_client()
        setup_statistics(engine)

        response = client.get(
            "/api/reports/historic", params={"min_grid_size": 9, "max_grid_size": 9}
        )

        assert response.status_code == 200
        assert response.json()["rows"] == []

    def test_inverted_range_returns_422(self):
        """The range check of the report builder is mapped to 422."""
        client, _ = create_test_app_and_client()

        response = client.get(
            "/api/reports/historic", params={"min_grid_size": 6, "max_grid_size": 4}
        )

        assert response.status_code == 422
        assert "min_grid_size" in response.json()["detail"]
