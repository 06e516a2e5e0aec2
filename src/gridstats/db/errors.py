"""Storage error taxonomy.

Lookups that miss return None and aggregates over an empty selection
return None. Only failures of the store itself raise.
"""


class StorageError(Exception):
    """The underlying store failed to execute a statement."""


class StatisticsNotFoundError(StorageError):
    """An update referenced a statistics id that has no row."""

    def __init__(self, statistics_id: int):
        super().__init__(f"No statistics row with id {statistics_id}")
        self.statistics_id = statistics_id
