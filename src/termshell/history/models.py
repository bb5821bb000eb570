"""Pydantic models for the usage ledger and its analytics."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNRESOLVED_CATEGORY = "unresolved"


class HistoryEntry(BaseModel):
    """One distinct command string and how it has been used."""

    model_config = ConfigDict(frozen=True)

    id: str
    command: str
    timestamp: datetime
    success: bool = True
    execution_time_ms: float | None = None
    category: str = "general"
    favorite: bool = False
    frequency: int = Field(default=1, ge=1)
    context: str | None = None

    total_execution_time_ms: float = Field(default=0.0, ge=0)
    """Sum of every measured execution time for this command"""

    timed_runs: int = Field(default=0, ge=0)
    """Number of invocations that reported an execution time"""

    failure_count: int = Field(default=0, ge=0)

    @field_validator("command")
    @classmethod
    def _command_not_blank(cls, value: str) -> str:
        normalized = " ".join(value.split())
        if not normalized:
            raise ValueError("command must not be empty")
        return normalized

    @field_validator("timestamp")
    @classmethod
    def _timestamp_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return value

    @property
    def verb(self) -> str:
        return self.command.split(" ", 1)[0]


class TimeRange(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class SortOrder(str, Enum):
    RECENT = "recent"
    FREQUENCY = "frequency"
    ALPHABETICAL = "alphabetical"
    EXECUTION_TIME = "execution_time"


class HistoryQuery(BaseModel):
    """Filter and sort options for ``UsageLedger.query``."""

    text: str | None = None
    category: str | None = None
    favorites_only: bool = False
    time_range: TimeRange = TimeRange.ALL
    success: bool | None = None
    sort_by: SortOrder = SortOrder.RECENT
    limit: int | None = Field(default=None, gt=0)


class CommandUsage(BaseModel):
    command: str
    count: int
    average_execution_time_ms: float | None = None


class CommandFailures(BaseModel):
    command: str
    failures: int


class DailyActivity(BaseModel):
    day: date
    count: int


class UsageProfile(BaseModel):
    """Aggregate view of the ledger."""

    total_commands: int = 0
    unique_commands: int = 0
    success_rate: float = 100.0
    average_execution_time_ms: float = 0.0
    top_commands: list[CommandUsage] = Field(default_factory=list)
    commands_by_category: dict[str, int] = Field(default_factory=dict)
    daily_activity: list[DailyActivity] = Field(default_factory=list)
    error_frequency: list[CommandFailures] = Field(default_factory=list)


class ImportReport(BaseModel):
    imported: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
