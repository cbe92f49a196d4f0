from __future__ import annotations

import logging

from habit_engine.constants import BODY_RULE, FIRING_WINDOW_MINUTES, MIND_RULE_PREFIX, SKIN_RULE

logger = logging.getLogger(__name__)


def rule_message(store, rule_id):
    if rule_id == BODY_RULE:
        return (
            "🏋️ Body Tasks Reminder",
            "You still have body tasks incomplete today. Finish them to progress!",
        )
    if rule_id == SKIN_RULE:
        return (
            "🧴 Skin Routine Reminder",
            "Finish your skin tasks to complete today's session.",
        )
    subject_id = rule_id[len(MIND_RULE_PREFIX):]
    label = subject_id
    for subject in store.state.mind_subjects:
        if subject.id == subject_id:
            label = subject.label
            break
    return (
        f"📚 {label} Reminder",
        f"You have incomplete units in {label}. Finish your tasks today!",
    )


def planner_message(task):
    title = f"⏰ Task Reminder ({task.priority})"
    due = task.due_at_datetime()
    if due is None:
        return title, task.label
    return title, f"{task.label} (Due: {due.strftime('%Y-%m-%d %H:%M')} UTC)"


def in_firing_window(minute_of_day, target):
    return target <= minute_of_day <= target + FIRING_WINDOW_MINUTES


class ReminderEvaluator:
    def __init__(self, store, clock, gateway):
        self._store = store
        self._clock = clock
        self._gateway = gateway

    def run_once(self) -> list:
        fired = self.evaluate_planner()
        fired.extend(self.evaluate_rules())
        return fired

    def evaluate_planner(self) -> list:
        now = self._clock.now()
        due = []
        for task in self._store.state.planner_tasks:
            if task.completed or task.notified:
                continue
            remind_at = task.remind_at_datetime()
            if remind_at is None or remind_at > now:
                continue
            due.append(task)
        for task in due:
            title, body = planner_message(task)
            self._gateway.deliver(title, body)
        if due:
            self._store.mark_planner_notified([task.id for task in due])
            logger.info("Fired %d planner reminder(s)", len(due))
        return [task.id for task in due]

    def evaluate_rules(self) -> list:
        minute = self._clock.minute_of_day()
        today = self._clock.day_key()
        fired = []
        for rule_id, rule in list(self._store.state.reminder_rules.items()):
            if not rule.enabled:
                continue
            items = self._store.rule_items(rule_id)
            if not items or all(item.completed for item in items):
                continue
            target = rule.target_minute()
            if target is None:
                logger.debug("Reminder %s has unparseable time %r", rule_id, rule.time_of_day)
                continue
            if not in_firing_window(minute, target):
                continue
            if rule.last_fired_day_key == today:
                continue
            title, body = rule_message(self._store, rule_id)
            self._gateway.deliver(title, body)
            fired.append(rule_id)
        if fired:
            self._store.mark_rules_fired(fired, today)
            logger.info("Fired reminders %s for %s", ", ".join(fired), today)
        return fired
