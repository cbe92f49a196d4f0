from __future__ import annotations

import logging
from typing import Annotated, Dict, List

from pydantic import Field, TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from habit_engine.constants import (
    ALL_SLICES,
    MAX_SKIN_SESSIONS,
    SLICE_BODY,
    SLICE_MIND,
    SLICE_PLANNER,
    SLICE_PROGRESS,
    SLICE_REMINDERS,
    SLICE_SKIN,
    SLICE_SKIN_SESSIONS,
    SLICE_WEIGHT,
)
from habit_engine.models import PlannerTask, ProgressCounters, ReminderRule, Subject, Task
from habit_engine.state.store import DomainState, MutationEvent

logger = logging.getLogger(__name__)

# slice name -> (DomainState attribute, adapter)
SLICE_FIELDS = {
    SLICE_PLANNER: ("planner_tasks", TypeAdapter(List[PlannerTask])),
    SLICE_BODY: ("body_tasks", TypeAdapter(List[Task])),
    SLICE_SKIN: ("skin_tasks", TypeAdapter(List[Task])),
    SLICE_SKIN_SESSIONS: ("skin_sessions", TypeAdapter(Annotated[int, Field(ge=0, le=MAX_SKIN_SESSIONS)])),
    SLICE_MIND: ("mind_subjects", TypeAdapter(List[Subject])),
    SLICE_REMINDERS: ("reminder_rules", TypeAdapter(Dict[str, ReminderRule])),
    SLICE_WEIGHT: ("weight_input", TypeAdapter(str)),
    SLICE_PROGRESS: ("progress", TypeAdapter(ProgressCounters)),
}


def dump_slice(state: DomainState, name: str) -> str:
    attribute, adapter = SLICE_FIELDS[name]
    return adapter.dump_json(getattr(state, attribute), by_alias=True).decode("utf-8")


def load_state(local_store) -> DomainState:
    """Load each slice on its own; a missing or corrupt slice keeps its default."""
    state = DomainState()
    for name in ALL_SLICES:
        attribute, adapter = SLICE_FIELDS[name]
        raw = local_store.get(name)
        if raw is None or raw == "":
            continue
        try:
            value = adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Local slice %s is unreadable, using default: %s", name, exc.errors()[:1])
            continue
        setattr(state, attribute, value)
    return state


def save_slices(local_store, state: DomainState, names) -> None:
    values = {name: dump_slice(state, name) for name in names if name in SLICE_FIELDS}
    local_store.set_many(values)


class PersistenceSink:
    """Writes the slices touched by a mutation to the local store in one transaction."""

    def __init__(self, local_store, store):
        self._local_store = local_store
        self._store = store

    def __call__(self, event: MutationEvent) -> None:
        if not event.slices:
            return
        try:
            save_slices(self._local_store, self._store.state, sorted(event.slices))
        except SQLAlchemyError as exc:
            logger.error("Failed to persist slices %s locally: %s", sorted(event.slices), exc)
