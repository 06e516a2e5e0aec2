#!/usr/bin/env python3
"""Seed a demo statistics database and print both reports.

Usage:
    python scripts/seed_demo.py

This script:
1. Initializes the demo database
2. Seeds grids of several sizes with one or more solving attempts
3. Marks the latest finished attempt of every replayed grid as included
4. Prints cumulative and historic statistics per grid size
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from gridstats.aggregation.cumulative import get_cumulative_statistics  # noqa: E402
from gridstats.aggregation.historic import get_historic_statistics  # noqa: E402
from gridstats.db import repo  # noqa: E402
from gridstats.db.schema import Grid, SolvingAttempt  # noqa: E402
from gridstats.db.session import get_session, init_db  # noqa: E402
from gridstats.models.domain import GridRef  # noqa: E402

# Constants
DEMO_DB_PATH = PROJECT_ROOT / "demo.db"
DEMO_START = datetime(2024, 1, 1, 9, 0, 0)

# (grid size, attempts as (elapsed ms, cheat penalty ms, finished, solution revealed))
DEMO_GRIDS = [
    (4, [(95_000, 0, True, False)]),
    (4, [(240_000, 30_000, False, False), (120_000, 0, True, False)]),
    (5, [(300_000, 60_000, True, True)]),
    (5, [(180_000, 0, False, False)]),
    (6, [(600_000, 0, True, False), (420_000, 15_000, True, False)]),
]


def seed_database() -> None:
    """Seed the demo database with grids, attempts and statistics."""
    session = get_session(DEMO_DB_PATH)

    try:
        # Check if already seeded
        if session.query(Grid).count() > 0:
            print("Demo grids already exist")
            return

        moment = DEMO_START
        for grid_size, attempts in DEMO_GRIDS:
            grid = Grid(grid_size=grid_size)
            session.add(grid)
            session.flush()
            print(f"Creating grid {grid.id} (size {grid_size})...")

            latest_finished_id = None
            for elapsed, penalty, finished, revealed in attempts:
                attempt = SolvingAttempt(grid_id=grid.id)
                session.add(attempt)
                session.flush()

                stats = repo.create_statistics(
                    session,
                    GridRef(grid_id=grid.id, grid_size=grid_size, solving_attempt_id=attempt.id),
                    now=moment,
                )
                stats.last_move = moment + timedelta(milliseconds=elapsed)
                stats.elapsed_time = elapsed
                stats.cheat_penalty_time = penalty
                stats.finished = finished
                stats.solution_revealed = revealed
                stats.solved_manually = finished and not revealed
                stats.cells_filled = grid_size * grid_size if finished else grid_size
                stats.cells_empty = 0 if finished else grid_size * grid_size - grid_size
                repo.update_statistics(session, stats)

                if finished:
                    latest_finished_id = stats.id
                moment = stats.last_move + timedelta(hours=1)

            if latest_finished_id is not None:
                repo.set_included_attempt(session, grid.id, latest_finished_id)

        repo.commit(session)
        print("Demo database seeded")
    finally:
        session.close()


def print_reports() -> None:
    """Print cumulative and historic statistics per grid size."""
    session = get_session(DEMO_DB_PATH)

    try:
        for grid_size in sorted({size for size, _ in DEMO_GRIDS}):
            cumulative = get_cumulative_statistics(session, grid_size, grid_size)
            if cumulative is None:
                print(f"Size {grid_size}: no statistics")
                continue
            print(
                f"Size {grid_size}: {cumulative.count_started} games, "
                f"{cumulative.count_finished} finished, "
                f"avg {cumulative.avg_elapsed_time / 1000:.1f}s"
            )
            for row in get_historic_statistics(session, grid_size, grid_size):
                print(
                    f"  #{row.statistics_id}: {row.series.value} "
                    f"{row.elapsed_time_excluding_cheat_penalty / 1000:.1f}s "
                    f"+ {row.cheat_penalty / 1000:.1f}s penalty"
                )
    finally:
        session.close()


def main() -> int:
    print(f"Initializing demo database: {DEMO_DB_PATH}")
    init_db(DEMO_DB_PATH)
    seed_database()
    print_reports()
    return 0


if __name__ == "__main__":
    sys.exit(main())
