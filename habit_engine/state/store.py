from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple
from uuid import uuid4

from habit_engine import metrics
from habit_engine.clock import Clock, format_timestamp
from habit_engine.constants import (
    ALL_SLICES,
    BODY_RULE,
    BODY_TASKS,
    DEFAULT_BODY_TIME,
    DEFAULT_MIND_TIME,
    DEFAULT_PRIORITY,
    DEFAULT_REMIND_MINUTES,
    DEFAULT_SKIN_TIME,
    MAX_SESSIONS,
    MAX_SKIN_SESSIONS,
    MILESTONE_SKIN_SESSION,
    MIND_RULE_PREFIX,
    MIND_SUBJECTS,
    SKIN_RULE,
    SKIN_TASKS,
    SLICE_BODY,
    SLICE_MIND,
    SLICE_PLANNER,
    SLICE_PROGRESS,
    SLICE_REMINDERS,
    SLICE_SKIN,
    SLICE_SKIN_SESSIONS,
    SLICE_WEIGHT,
    UNITS_PER_SUBJECT,
)
from habit_engine.models import (
    ItemId,
    Link,
    PlannerTask,
    ProgressCounters,
    ReminderRule,
    Subject,
    Task,
    Unit,
    parse_time_of_day,
)

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid4().hex


def mind_rule_id(subject_id: str) -> str:
    return f"{MIND_RULE_PREFIX}{subject_id}"


def default_body_tasks() -> List[Task]:
    return [Task(id=task_id, label=label) for task_id, label in BODY_TASKS]


def default_skin_tasks() -> List[Task]:
    return [Task(id=task_id, label=label) for task_id, label in SKIN_TASKS]


def build_units(subject_id: str) -> List[Unit]:
    return [
        Unit(id=f"{subject_id}-u{index}", label=f"U{index}")
        for index in range(1, UNITS_PER_SUBJECT + 1)
    ]


def default_mind_subjects() -> List[Subject]:
    return [
        Subject(id=subject_id, label=label, units=build_units(subject_id))
        for subject_id, label in MIND_SUBJECTS
    ]


def default_reminder_rules() -> Dict[str, ReminderRule]:
    return {
        BODY_RULE: ReminderRule(time_of_day=DEFAULT_BODY_TIME),
        SKIN_RULE: ReminderRule(time_of_day=DEFAULT_SKIN_TIME),
    }


@dataclass
class DomainState:
    planner_tasks: List[PlannerTask] = field(default_factory=list)
    body_tasks: List[Task] = field(default_factory=default_body_tasks)
    skin_tasks: List[Task] = field(default_factory=default_skin_tasks)
    skin_sessions: int = 0
    mind_subjects: List[Subject] = field(default_factory=default_mind_subjects)
    reminder_rules: Dict[str, ReminderRule] = field(default_factory=default_reminder_rules)
    weight_input: str = ""
    progress: ProgressCounters = field(default_factory=ProgressCounters)


def ensure_reminder_rules(state: DomainState) -> bool:
    """Give every domain and subject a rule and drop rules of deleted subjects."""
    changed = False
    rules = dict(state.reminder_rules)
    for rule_id, rule in default_reminder_rules().items():
        if rule_id not in rules:
            rules[rule_id] = rule
            changed = True
    subject_rules = {mind_rule_id(subject.id) for subject in state.mind_subjects}
    for rule_id in subject_rules:
        if rule_id not in rules:
            rules[rule_id] = ReminderRule(time_of_day=DEFAULT_MIND_TIME)
            changed = True
    for rule_id in list(rules):
        if rule_id.startswith(MIND_RULE_PREFIX) and rule_id not in subject_rules:
            del rules[rule_id]
            changed = True
    if changed:
        state.reminder_rules = rules
    return changed


@dataclass(frozen=True)
class MutationEvent:
    slices: FrozenSet[str]
    source: str = "user"
    milestones: Tuple[str, ...] = ()


Listener = Callable[[MutationEvent], None]


class DomainStore:
    """In-memory domain state; every change is published as a MutationEvent."""

    def __init__(self, clock: Clock, state: Optional[DomainState] = None):
        self._clock = clock
        self._state = state or DomainState()
        ensure_reminder_rules(self._state)
        self._skin_all_completed = self._skin_complete()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> DomainState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def commit(self, *slices: str, source: str = "user", milestones: Tuple[str, ...] = ()) -> MutationEvent:
        event = MutationEvent(slices=frozenset(slices), source=source, milestones=tuple(milestones))
        for listener in list(self._listeners):
            listener(event)
        return event

    def replace(self, state: DomainState, source: str = "hydrate") -> None:
        ensure_reminder_rules(state)
        self._state = state
        self._skin_all_completed = self._skin_complete()
        self.commit(*ALL_SLICES, source=source)

    # Body

    def toggle_body_task(self, task_id: ItemId) -> Optional[Task]:
        task = _find(self._state.body_tasks, task_id)
        if task is None:
            return None
        task.completed = not task.completed
        touched = [SLICE_BODY]
        if task.completed:
            targets = metrics.progress_targets(task.label)
            for key in targets:
                current = getattr(self._state.progress, key)
                setattr(self._state.progress, key, min(current + 1, MAX_SESSIONS))
            if targets:
                touched.append(SLICE_PROGRESS)
        self.commit(*touched)
        return task

    def set_weight_input(self, raw) -> None:
        self._state.weight_input = "" if raw is None else str(raw)
        self.commit(SLICE_WEIGHT)

    # Skin

    def toggle_skin_task(self, task_id: ItemId) -> Optional[Task]:
        task = _find(self._state.skin_tasks, task_id)
        if task is None:
            return None
        task.completed = not task.completed
        touched = [SLICE_SKIN]
        milestones = ()
        all_completed = self._skin_complete()
        if all_completed and not self._skin_all_completed:
            self._state.skin_sessions = min(self._state.skin_sessions + 1, MAX_SKIN_SESSIONS)
            touched.append(SLICE_SKIN_SESSIONS)
            milestones = (MILESTONE_SKIN_SESSION,)
        self._skin_all_completed = all_completed
        self.commit(*touched, milestones=milestones)
        return task

    def _skin_complete(self) -> bool:
        tasks = self._state.skin_tasks
        return bool(tasks) and all(task.completed for task in tasks)

    # Mind

    def add_subject(self, label: str) -> Optional[Subject]:
        name = str(label or "").strip()
        if not name:
            return None
        subject_id = f"sub-{_new_id()}"
        subject = Subject(id=subject_id, label=name, units=build_units(subject_id))
        self._state.mind_subjects.append(subject)
        rules = dict(self._state.reminder_rules)
        rules[mind_rule_id(subject_id)] = ReminderRule(time_of_day=DEFAULT_MIND_TIME)
        self._state.reminder_rules = rules
        self.commit(SLICE_MIND, SLICE_REMINDERS)
        return subject

    def delete_subject(self, subject_id: str) -> bool:
        remaining = [subject for subject in self._state.mind_subjects if subject.id != subject_id]
        if len(remaining) == len(self._state.mind_subjects):
            return False
        rules = {
            rule_id: rule
            for rule_id, rule in self._state.reminder_rules.items()
            if rule_id != mind_rule_id(subject_id)
        }
        self._state.mind_subjects = remaining
        self._state.reminder_rules = rules
        self.commit(SLICE_MIND, SLICE_REMINDERS)
        return True

    def toggle_unit(self, subject_id: str, unit_id: ItemId) -> Optional[Unit]:
        subject = _find(self._state.mind_subjects, subject_id)
        if subject is None:
            return None
        unit = _find(subject.units, unit_id)
        if unit is None:
            return None
        unit.completed = not unit.completed
        self.commit(SLICE_MIND)
        return unit

    def add_link(self, subject_id: str, title: str, url: str) -> Optional[Link]:
        title = str(title or "").strip()
        url = str(url or "").strip()
        if not title or not url:
            return None
        subject = _find(self._state.mind_subjects, subject_id)
        if subject is None:
            return None
        link = Link(id=_new_id(), title=title, url=url)
        subject.links.append(link)
        self.commit(SLICE_MIND)
        return link

    def remove_link(self, subject_id: str, link_id: ItemId) -> bool:
        subject = _find(self._state.mind_subjects, subject_id)
        if subject is None:
            return False
        kept = [link for link in subject.links if link.id != link_id]
        if len(kept) == len(subject.links):
            return False
        subject.links = kept
        self.commit(SLICE_MIND)
        return True

    # Reminder rules

    def set_reminder_time(self, rule_id: str, time_of_day: str) -> bool:
        rule = self._state.reminder_rules.get(rule_id)
        if rule is None:
            return False
        if parse_time_of_day(time_of_day) is None:
            logger.info("Reminder %s set to unparseable time %r; it will not fire.", rule_id, time_of_day)
        self._update_rules({rule_id: rule.model_copy(update={"time_of_day": str(time_of_day)})})
        return True

    def set_reminder_enabled(self, rule_id: str, enabled: bool) -> bool:
        rule = self._state.reminder_rules.get(rule_id)
        if rule is None:
            return False
        self._update_rules({rule_id: rule.model_copy(update={"enabled": bool(enabled)})})
        return True

    def mark_rules_fired(self, rule_ids, day_key: str) -> None:
        updates = {
            rule_id: self._state.reminder_rules[rule_id].fired_on(day_key)
            for rule_id in rule_ids
            if rule_id in self._state.reminder_rules
        }
        if updates:
            self._update_rules(updates, source="reminders")

    def _update_rules(self, updates: Dict[str, ReminderRule], source: str = "user") -> None:
        rules = dict(self._state.reminder_rules)
        rules.update(updates)
        self._state.reminder_rules = rules
        self.commit(SLICE_REMINDERS, source=source)

    def rule_items(self, rule_id: str) -> list:
        if rule_id == BODY_RULE:
            return list(self._state.body_tasks)
        if rule_id == SKIN_RULE:
            return list(self._state.skin_tasks)
        if rule_id.startswith(MIND_RULE_PREFIX):
            subject = _find(self._state.mind_subjects, rule_id[len(MIND_RULE_PREFIX):])
            return list(subject.units) if subject else []
        return []

    # Planner

    def add_planner_task(
        self,
        label: str,
        due_at: Optional[datetime] = None,
        priority: str = DEFAULT_PRIORITY,
        remind_minutes: Optional[int] = DEFAULT_REMIND_MINUTES,
    ) -> Optional[PlannerTask]:
        label = str(label or "").strip()
        if not label:
            return None
        due_iso = format_timestamp(due_at) if due_at is not None else None
        remind_iso = None
        if due_at is not None and remind_minutes is not None:
            remind_iso = format_timestamp(due_at - timedelta(minutes=int(remind_minutes)))
        task = PlannerTask(
            id=_new_id(),
            label=label,
            due_at=due_iso,
            priority=priority,
            remind_at=remind_iso,
            created_at=format_timestamp(self._clock.now()),
        )
        self._state.planner_tasks.insert(0, task)
        self.commit(SLICE_PLANNER)
        return task

    def toggle_planner_task(self, task_id: ItemId) -> Optional[PlannerTask]:
        task = _find(self._state.planner_tasks, task_id)
        if task is None:
            return None
        task.completed = not task.completed
        self.commit(SLICE_PLANNER)
        return task

    def delete_planner_task(self, task_id: ItemId) -> bool:
        kept = [task for task in self._state.planner_tasks if task.id != task_id]
        if len(kept) == len(self._state.planner_tasks):
            return False
        self._state.planner_tasks = kept
        self.commit(SLICE_PLANNER)
        return True

    def mark_planner_notified(self, task_ids) -> None:
        wanted = set(task_ids)
        changed = False
        for task in self._state.planner_tasks:
            if task.id in wanted and not task.notified:
                task.notified = True
                changed = True
        if changed:
            self.commit(SLICE_PLANNER, source="reminders")

    # Boundaries

    def reset_daily(self, domain: str) -> None:
        if domain == "body":
            for task in self._state.body_tasks:
                task.completed = False
            self._clear_ledgers([BODY_RULE])
            self.commit(SLICE_BODY, SLICE_REMINDERS, source="scheduler")
        elif domain == "skin":
            for task in self._state.skin_tasks:
                task.completed = False
            self._skin_all_completed = False
            self._clear_ledgers([SKIN_RULE])
            self.commit(SLICE_SKIN, SLICE_REMINDERS, source="scheduler")
        elif domain == "mind":
            for subject in self._state.mind_subjects:
                for unit in subject.units:
                    unit.completed = False
            self._clear_ledgers([rule_id for rule_id in self._state.reminder_rules if rule_id.startswith(MIND_RULE_PREFIX)])
            self.commit(SLICE_MIND, SLICE_REMINDERS, source="scheduler")
        else:
            raise ValueError(f"Unknown domain: {domain}")

    def _clear_ledgers(self, rule_ids) -> None:
        rules = dict(self._state.reminder_rules)
        for rule_id in rule_ids:
            if rule_id in rules:
                rules[rule_id] = rules[rule_id].fired_on("")
        self._state.reminder_rules = rules

    def reset_month(self) -> None:
        self._state.progress = ProgressCounters()
        self._state.skin_sessions = 0
        self._state.body_tasks = default_body_tasks()
        self._state.skin_tasks = default_skin_tasks()
        self._skin_all_completed = False
        self.commit(SLICE_PROGRESS, SLICE_SKIN_SESSIONS, SLICE_BODY, SLICE_SKIN, source="scheduler")

    # Derived values

    def body_percent(self) -> float:
        return metrics.completion_percent(self._state.body_tasks)

    def skin_percent(self) -> float:
        return metrics.completion_percent(self._state.skin_tasks)

    def subject_percent(self, subject_id: str) -> float:
        return metrics.subject_percent(_find(self._state.mind_subjects, subject_id))

    def mind_totals(self) -> dict:
        return metrics.mind_totals(self._state.mind_subjects)

    def weight_percentage(self) -> float:
        return metrics.weight_percentage(self._state.weight_input)


def _find(items, item_id):
    for item in items:
        if item.id == item_id:
            return item
    return None
