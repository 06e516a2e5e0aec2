"""Declarative projections for statistics reports.

A Projection maps output column names to SQL expressions. Report
builders register their columns once, select them with columns() and
decode result rows with get()/get_aggregated(). Both sides derive the
output name through aggregated_key(), so a report can not build one
name and read another.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator

from sqlalchemy import Float, Row, case, func, true
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement, Label


class Aggregation(str, Enum):
    """Aggregation functions a projection column can apply."""

    MIN = "min"
    MAX = "max"
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    COUNTIF_TRUE = "countif_true"


def _aggregate(aggregation: Aggregation, column: InstrumentedAttribute) -> ColumnElement:
    """Build the SQL aggregate expression for a column."""
    if aggregation is Aggregation.MIN:
        return func.min(column)
    if aggregation is Aggregation.MAX:
        return func.max(column)
    if aggregation is Aggregation.SUM:
        return func.sum(column)
    if aggregation is Aggregation.AVG:
        return func.avg(column, type_=Float)
    if aggregation is Aggregation.COUNT:
        return func.count(column)
    if aggregation is Aggregation.COUNTIF_TRUE:
        # COUNT skips the NULL produced for rows where the flag is not set
        return func.count(case((column == true(), 1)))
    raise ValueError(f"Unsupported aggregation: {aggregation}")


class Projection:
    """Ordered mapping of output column name to SQL expression.

    Once frozen, a projection can no longer be changed. Report builders
    create their projection once at import time and reuse it for every
    query.
    """

    def __init__(self) -> None:
        self._expressions: dict[str, ColumnElement] = {}
        self._frozen = False

    @staticmethod
    def aggregated_key(aggregation: Aggregation, column_name: str) -> str:
        """Output name for an aggregated column, e.g. "sum_elapsed_time"."""
        return f"{aggregation.value}_{column_name}"

    def put(self, aggregation: Aggregation, column: InstrumentedAttribute) -> str:
        """Register an aggregate over an ORM column.

        The column carries its source table, so statistics and grid
        columns can be mixed in one projection.

        Returns:
            The output name of the registered column.
        """
        name = self.aggregated_key(aggregation, column.key)
        return self._register(name, _aggregate(aggregation, column))

    def put_column(self, column: InstrumentedAttribute, name: str | None = None) -> str:
        """Register a plain, non-aggregated column."""
        return self._register(name or column.key, column)

    def put_expression(self, name: str, expression: ColumnElement) -> str:
        """Register a derived SQL expression under an explicit name."""
        return self._register(name, expression)

    def _register(self, name: str, expression: ColumnElement) -> str:
        if self._frozen:
            raise RuntimeError(f"Projection is frozen, can not add {name!r}")
        if name in self._expressions:
            raise ValueError(f"Column {name!r} already registered in projection")
        self._expressions[name] = expression
        return name

    def freeze(self) -> Projection:
        """Disallow further registration and return the projection."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def names(self) -> list[str]:
        """Output names in registration order."""
        return list(self._expressions)

    def columns(self) -> list[Label]:
        """Labelled select columns, one per registered name."""
        return [expression.label(name) for name, expression in self._expressions.items()]

    def get(self, row: Row, name: str) -> Any:
        """Read a registered column from a result row.

        Raises:
            KeyError: If name was never registered in this projection.
        """
        if name not in self._expressions:
            raise KeyError(f"Column {name!r} is not part of this projection")
        return row._mapping[name]

    def get_aggregated(
        self, row: Row, aggregation: Aggregation, column: InstrumentedAttribute
    ) -> Any:
        """Read an aggregated column using the same name derivation as put()."""
        return self.get(row, self.aggregated_key(aggregation, column.key))

    def __contains__(self, name: object) -> bool:
        return name in self._expressions

    def __iter__(self) -> Iterator[str]:
        return iter(self._expressions)

    def __len__(self) -> int:
        return len(self._expressions)
