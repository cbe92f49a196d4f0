from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from habit_engine.clock import parse_timestamp
from habit_engine.constants import DEFAULT_PRIORITY, MAX_SESSIONS, PRIORITIES

ItemId = Union[int, str]


def parse_time_of_day(value) -> Optional[int]:
    """Return minutes since midnight for an ``HH:MM`` string, or None."""
    parts = str(value or "").strip().split(":")
    if len(parts) != 2:
        return None
    hours_raw, minutes_raw = parts
    if not (hours_raw.isdigit() and minutes_raw.isdigit()):
        return None
    hours = int(hours_raw)
    minutes = int(minutes_raw)
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def _normalize_priority(value):
    value = str(value or "").strip().lower()
    if value in PRIORITIES:
        return value
    return DEFAULT_PRIORITY


class Task(BaseModel):
    id: ItemId
    label: str
    completed: bool = False
    created_at: Optional[str] = Field(None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class PlannerTask(BaseModel):
    id: ItemId
    label: str
    completed: bool = False
    due_at: Optional[str] = Field(None, alias="dueAt", frozen=True)
    priority: str = DEFAULT_PRIORITY
    remind_at: Optional[str] = Field(None, alias="remindAt", frozen=True)
    notified: bool = False
    created_at: Optional[str] = Field(None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return _normalize_priority(value)

    def remind_at_datetime(self) -> Optional[datetime]:
        return parse_timestamp(self.remind_at)

    def due_at_datetime(self) -> Optional[datetime]:
        return parse_timestamp(self.due_at)


class Unit(BaseModel):
    id: ItemId
    label: str
    completed: bool = False


class Link(BaseModel):
    id: ItemId
    title: str
    url: str


class Subject(BaseModel):
    id: str
    label: str
    units: List[Unit] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)

    @field_validator("units", "links", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value


class ProgressCounters(BaseModel):
    biceps: int = 0
    shoulders: int = 0
    triceps: int = 0
    abs: int = 0
    forearms: int = 0

    @field_validator("biceps", "shoulders", "triceps", "abs", "forearms", mode="before")
    @classmethod
    def _clamp(cls, value):
        try:
            number = int(value)
        except (TypeError, ValueError):
            return 0
        return max(0, min(MAX_SESSIONS, number))


class ReminderRule(BaseModel):
    time_of_day: str = Field(alias="timeOfDay")
    enabled: bool = True
    last_fired_day_key: str = Field("", alias="lastFiredDayKey")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def target_minute(self) -> Optional[int]:
        return parse_time_of_day(self.time_of_day)

    def fired_on(self, day_key: str) -> "ReminderRule":
        return self.model_copy(update={"last_fired_day_key": day_key})
