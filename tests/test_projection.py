"""Tests for declarative report projections.

The same name derivation is used to build the select list and to decode
result rows.
"""

from datetime import datetime

import pytest
from sqlalchemy import select

from gridstats.aggregation.cumulative import CUMULATIVE_FIELDS, CUMULATIVE_PROJECTION
from gridstats.aggregation.historic import HISTORIC_PROJECTION
from gridstats.db.projection import Aggregation, Projection
from gridstats.db.schema import Grid, Statistics
from gridstats.models.types import CumulativeStatistics, HistoricRow


class TestAggregatedKey:
    """Output names are derived from function and column."""

    @pytest.mark.parametrize(
        "aggregation,column,expected",
        [
            (Aggregation.SUM, "elapsed_time", "sum_elapsed_time"),
            (Aggregation.AVG, "cheat_penalty_time", "avg_cheat_penalty_time"),
            (Aggregation.COUNTIF_TRUE, "finished", "countif_true_finished"),
            (Aggregation.COUNT, "id", "count_id"),
        ],
    )
    def test_key(self, aggregation, column, expected):
        """Key is <aggregation>_<column>."""
        assert Projection.aggregated_key(aggregation, column) == expected

    def test_put_returns_derived_key(self):
        """put() registers under the same key aggregated_key() derives."""
        projection = Projection()

        name = projection.put(Aggregation.MAX, Grid.grid_size)

        assert name == Projection.aggregated_key(Aggregation.MAX, "grid_size")
        assert name in projection


class TestRegistration:
    """Registration rules."""

    def test_duplicate_rejected(self):
        """A column can be registered only once."""
        projection = Projection()
        projection.put(Aggregation.SUM, Statistics.elapsed_time)

        with pytest.raises(ValueError):
            projection.put(Aggregation.SUM, Statistics.elapsed_time)

    def test_same_column_different_aggregations(self):
        """One source column can feed several aggregates."""
        projection = Projection()
        for aggregation in (Aggregation.MIN, Aggregation.AVG, Aggregation.MAX):
            projection.put(aggregation, Statistics.elapsed_time)

        assert projection.names == ["min_elapsed_time", "avg_elapsed_time", "max_elapsed_time"]

    def test_frozen_rejects_changes(self):
        """A frozen projection can not change."""
        projection = Projection()
        projection.put_column(Statistics.id)
        projection.freeze()

        with pytest.raises(RuntimeError):
            projection.put_column(Statistics.grid_id)
        assert len(projection) == 1

    def test_put_column_default_name(self):
        """Plain columns default to their own name."""
        projection = Projection()

        assert projection.put_column(Statistics.possibles) == "possibles"
        assert projection.put_column(Statistics.id, "statistics_id") == "statistics_id"


class TestDecode:
    """Decoding reads by registered name only."""

    @pytest.fixture
    def populated(self, session):
        grid = Grid(grid_size=4)
        session.add(grid)
        session.flush()
        now = datetime(2024, 2, 2, 10, 0, 0)
        for elapsed, finished in ((10, True), (20, False), (30, True)):
            session.add(
                Statistics(
                    grid_id=grid.id,
                    first_move=now,
                    last_move=now,
                    elapsed_time=elapsed,
                    finished=finished,
                )
            )
        session.flush()
        return session

    def test_aggregates_decode(self, populated):
        """Aggregates decode through get_aggregated()."""
        projection = Projection()
        projection.put(Aggregation.SUM, Statistics.elapsed_time)
        projection.put(Aggregation.AVG, Statistics.elapsed_time)
        projection.put(Aggregation.COUNT, Statistics.id)
        projection.put(Aggregation.COUNTIF_TRUE, Statistics.finished)

        row = populated.execute(select(*projection.columns())).one()

        assert projection.get_aggregated(row, Aggregation.SUM, Statistics.elapsed_time) == 60
        assert projection.get_aggregated(row, Aggregation.AVG, Statistics.elapsed_time) == 20.0
        assert projection.get_aggregated(row, Aggregation.COUNT, Statistics.id) == 3
        assert projection.get_aggregated(row, Aggregation.COUNTIF_TRUE, Statistics.finished) == 2

    def test_countif_true_on_empty_set_is_zero(self, session):
        """Counting over no rows yields 0, not NULL."""
        projection = Projection()
        projection.put(Aggregation.COUNTIF_TRUE, Statistics.finished)

        row = session.execute(select(*projection.columns())).one()

        assert projection.get_aggregated(row, Aggregation.COUNTIF_TRUE, Statistics.finished) == 0

    def test_unregistered_name_raises(self, populated):
        """Reading a name the projection never built is a programming error."""
        projection = Projection()
        projection.put(Aggregation.SUM, Statistics.elapsed_time)

        row = populated.execute(select(*projection.columns())).one()

        with pytest.raises(KeyError):
            projection.get_aggregated(row, Aggregation.MAX, Statistics.elapsed_time)


class TestReportProjections:
    """The report projections match the models they decode into."""

    def test_cumulative_projection_frozen(self):
        """Built once and never changed."""
        assert CUMULATIVE_PROJECTION.frozen
        assert HISTORIC_PROJECTION.frozen

    def test_cumulative_fields_cover_model(self):
        """Every CumulativeStatistics field is decoded from the projection."""
        assert set(CUMULATIVE_FIELDS) == set(CumulativeStatistics.model_fields)
        for aggregation, column in CUMULATIVE_FIELDS.values():
            assert Projection.aggregated_key(aggregation, column.key) in CUMULATIVE_PROJECTION

    def test_historic_names_cover_model(self):
        """Every HistoricRow field is a projection column."""
        assert set(HISTORIC_PROJECTION.names) == set(HistoricRow.model_fields)
