"""Inclusion policy for replayed grids.

For each grid only one solving attempt counts toward the cumulative and
historic statistics. Which attempt that is (latest finished, otherwise
latest unfinished) is decided by the solving attempt layer, which then
calls repo.set_included_attempt. This module only decides the state of a
freshly created statistics record.

Assumes at most one open solving attempt per grid at a time.
"""


def replay_ordinal(attempt_count: int, loaded_attempt_id: int | None) -> int:
    """Compute the replay ordinal for a new statistics record.

    The attempt currently loaded in the grid is already counted in
    attempt_count, but it is the attempt the new record belongs to.

    Args:
        attempt_count: Number of solving attempts stored for the grid.
        loaded_attempt_id: Attempt loaded in the grid, None or 0 if none.

    Returns:
        0 for the first attempt on a grid, incrementing per replay.
    """
    ordinal = attempt_count - (1 if loaded_attempt_id else 0)
    return max(ordinal, 0)


def is_included_at_creation(replay: int) -> bool:
    """Only the very first attempt on a grid starts out included."""
    return replay == 0
