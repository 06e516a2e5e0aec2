"""Pydantic models for gridstats reports and API payloads."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from gridstats.models.domain import Serie, to_naive_utc


class CumulativeStatistics(BaseModel):
    """Aggregate over all included attempts in a grid size range."""

    # Grid size range actually present in the data
    min_grid_size: int
    max_grid_size: int

    min_first_move: datetime
    max_last_move: datetime

    sum_elapsed_time: int
    min_elapsed_time: int
    avg_elapsed_time: float
    max_elapsed_time: int

    sum_cheat_penalty_time: int
    min_cheat_penalty_time: int
    avg_cheat_penalty_time: float
    max_cheat_penalty_time: int

    # Totals of avoidable moves
    sum_possibles: int
    sum_action_undos: int
    sum_action_clear_cell: int
    sum_action_clear_grid: int

    # Totals per cheat
    sum_action_reveal_cell: int
    sum_action_reveal_operator: int
    sum_action_check_progress: int
    sum_check_progress_invalid_cells_found: int

    # Totals per status of game
    count_solution_revealed: int
    count_solved_manually: int
    count_finished: int
    count_started: int


class HistoricRow(BaseModel):
    """One included attempt in the historic series."""

    statistics_id: int
    elapsed_time_excluding_cheat_penalty: int
    cheat_penalty: int
    series: Serie

    elapsed_time: int
    cells_filled: int
    cells_empty: int
    cells_revealed: int
    user_values_replaced: int
    possibles: int
    action_undos: int
    action_clear_cell: int
    action_clear_grid: int
    action_reveal_cell: int
    action_reveal_operator: int
    action_check_progress: int
    check_progress_invalid_cells_found: int


class HistoricStatisticsDetail(BaseModel):
    """Historic series for API response."""

    min_grid_size: int
    max_grid_size: int
    rows: list[HistoricRow]
    count_by_series: dict[Serie, int]


class StatisticsDetail(BaseModel):
    """Statistics record for API response."""

    id: int
    grid_id: int
    replay: int
    first_move: datetime
    last_move: datetime
    elapsed_time: int
    cheat_penalty_time: int
    cells_filled: int
    cells_empty: int
    cells_revealed: int
    user_values_replaced: int
    possibles: int
    action_undos: int
    action_clear_cell: int
    action_clear_grid: int
    action_reveal_cell: int
    action_reveal_operator: int
    action_check_progress: int
    check_progress_invalid_cells_found: int
    solution_revealed: bool
    solved_manually: bool
    finished: bool
    include_in_statistics: bool


class StatisticsCreate(BaseModel):
    """Request to start statistics for a new solving attempt."""

    solving_attempt_id: int | None = None


class StatisticsUpdate(BaseModel):
    """Mutable fields of a statistics record."""

    first_move: datetime
    last_move: datetime
    elapsed_time: int = Field(ge=0)
    cheat_penalty_time: int = Field(ge=0)
    cells_filled: int = Field(ge=0)
    cells_empty: int = Field(ge=0)
    cells_revealed: int = Field(ge=0)
    user_values_replaced: int = Field(ge=0)
    possibles: int = Field(ge=0)
    action_undos: int = Field(ge=0)
    action_clear_cell: int = Field(ge=0)
    action_clear_grid: int = Field(ge=0)
    action_reveal_cell: int = Field(ge=0)
    action_reveal_operator: int = Field(ge=0)
    action_check_progress: int = Field(ge=0)
    check_progress_invalid_cells_found: int = Field(ge=0)
    solution_revealed: bool
    solved_manually: bool
    finished: bool

    @field_validator("first_move", "last_move")
    @classmethod
    def _normalize_move(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def _check_move_order(self) -> "StatisticsUpdate":
        if self.last_move < self.first_move:
            raise ValueError("last_move must not be before first_move")
        return self


class IncludedAttemptUpdate(BaseModel):
    """Request to change the included attempt of a grid."""

    statistics_id: int
