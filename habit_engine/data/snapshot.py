from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from habit_engine.constants import (
    BODY_RULE,
    DEFAULT_BODY_TIME,
    DEFAULT_MIND_TIME,
    DEFAULT_SKIN_TIME,
    MAX_SKIN_SESSIONS,
    SKIN_RULE,
)
from habit_engine.models import PlannerTask, ProgressCounters, ReminderRule, Subject, Task
from habit_engine.state.store import (
    DomainState,
    default_body_tasks,
    default_mind_subjects,
    default_skin_tasks,
    mind_rule_id,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class ReminderSettings(_WireModel):
    enabled: bool = True
    skin_time: str = Field(DEFAULT_SKIN_TIME, alias="skinTime")
    body_time: str = Field(DEFAULT_BODY_TIME, alias="bodyTime")
    skin_enabled: bool = Field(True, alias="skinEnabled")
    body_enabled: bool = Field(True, alias="bodyEnabled")


class Snapshot(_WireModel):
    """Complete state of all domains as exchanged with the remote service."""

    planner_tasks: List[PlannerTask] = Field(default_factory=list, alias="plannerTasks")
    body_tasks: Optional[List[Task]] = Field(None, alias="bodyTasks")
    skin_tasks: Optional[List[Task]] = Field(None, alias="skinTasks")
    skin_sessions: int = Field(0, alias="skinSessions")
    mind_subjects: Optional[List[Subject]] = Field(None, alias="mindSubjects")
    reminder_settings: ReminderSettings = Field(default_factory=ReminderSettings, alias="reminderSettings")
    mind_reminder_times: Dict[str, str] = Field(default_factory=dict, alias="mindReminderTimes")
    mind_reminder_enabled: Dict[str, bool] = Field(default_factory=dict, alias="mindReminderEnabled")
    mind_last_reminder_day: Dict[str, str] = Field(default_factory=dict, alias="mindLastReminderDay")
    body_last_reminder_day: str = Field("", alias="bodyLastReminderDay")
    skin_last_reminder_day: str = Field("", alias="skinLastReminderDay")
    weight_input: str = Field("", alias="weightInput")
    muscle_progress: ProgressCounters = Field(default_factory=ProgressCounters, alias="muscleProgress")

    @field_validator("skin_sessions", mode="before")
    @classmethod
    def _clamp_sessions(cls, value):
        try:
            number = int(value)
        except (TypeError, ValueError):
            return 0
        return max(0, min(MAX_SKIN_SESSIONS, number))

    @field_validator("weight_input", mode="before")
    @classmethod
    def _weight_as_text(cls, value):
        return str(value)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def build_snapshot(state: DomainState) -> Snapshot:
    rules = state.reminder_rules
    body_rule = rules.get(BODY_RULE) or ReminderRule(time_of_day=DEFAULT_BODY_TIME)
    skin_rule = rules.get(SKIN_RULE) or ReminderRule(time_of_day=DEFAULT_SKIN_TIME)

    mind_times = {}
    mind_enabled = {}
    mind_last = {}
    for subject in state.mind_subjects:
        rule = rules.get(mind_rule_id(subject.id))
        if rule is None:
            continue
        mind_times[subject.id] = rule.time_of_day
        mind_enabled[subject.id] = rule.enabled
        mind_last[subject.id] = rule.last_fired_day_key

    return Snapshot(
        planner_tasks=[task.model_copy(deep=True) for task in state.planner_tasks],
        body_tasks=[task.model_copy(deep=True) for task in state.body_tasks],
        skin_tasks=[task.model_copy(deep=True) for task in state.skin_tasks],
        skin_sessions=state.skin_sessions,
        mind_subjects=[subject.model_copy(deep=True) for subject in state.mind_subjects],
        reminder_settings=ReminderSettings(
            enabled=True,
            skin_time=skin_rule.time_of_day,
            body_time=body_rule.time_of_day,
            skin_enabled=skin_rule.enabled,
            body_enabled=body_rule.enabled,
        ),
        mind_reminder_times=mind_times,
        mind_reminder_enabled=mind_enabled,
        mind_last_reminder_day=mind_last,
        body_last_reminder_day=body_rule.last_fired_day_key,
        skin_last_reminder_day=skin_rule.last_fired_day_key,
        weight_input=state.weight_input,
        muscle_progress=state.progress.model_copy(),
    )


def state_from_snapshot(snapshot: Snapshot) -> DomainState:
    """Build a full DomainState from a snapshot; absent slices take defaults."""
    subjects = snapshot.mind_subjects if snapshot.mind_subjects is not None else default_mind_subjects()
    settings = snapshot.reminder_settings

    rules = {
        BODY_RULE: ReminderRule(
            time_of_day=settings.body_time,
            enabled=settings.body_enabled,
            last_fired_day_key=snapshot.body_last_reminder_day,
        ),
        SKIN_RULE: ReminderRule(
            time_of_day=settings.skin_time,
            enabled=settings.skin_enabled,
            last_fired_day_key=snapshot.skin_last_reminder_day,
        ),
    }
    for subject in subjects:
        rules[mind_rule_id(subject.id)] = ReminderRule(
            time_of_day=snapshot.mind_reminder_times.get(subject.id) or DEFAULT_MIND_TIME,
            enabled=snapshot.mind_reminder_enabled.get(subject.id, True),
            last_fired_day_key=snapshot.mind_last_reminder_day.get(subject.id, ""),
        )

    return DomainState(
        planner_tasks=list(snapshot.planner_tasks),
        body_tasks=snapshot.body_tasks if snapshot.body_tasks is not None else default_body_tasks(),
        skin_tasks=snapshot.skin_tasks if snapshot.skin_tasks is not None else default_skin_tasks(),
        skin_sessions=snapshot.skin_sessions,
        mind_subjects=subjects,
        reminder_rules=rules,
        weight_input=snapshot.weight_input,
        progress=snapshot.muscle_progress,
    )
