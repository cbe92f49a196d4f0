from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from habit_engine.constants import (
    MAX_SESSIONS,
    MAX_SKIN_SESSIONS,
    MILESTONE_SKIN_SESSION,
    SLICE_BODY,
    SLICE_MIND,
    SLICE_PLANNER,
    SLICE_PROGRESS,
    SLICE_REMINDERS,
    SLICE_SKIN,
    SLICE_SKIN_SESSIONS,
)
from habit_engine.state.store import mind_rule_id


def test_default_state_has_rules_for_every_domain_and_subject(store):
    rules = store.state.reminder_rules
    assert rules["body"].time_of_day == "19:00"
    assert rules["skin"].time_of_day == "21:00"
    for subject in store.state.mind_subjects:
        assert rules[mind_rule_id(subject.id)].time_of_day == "20:30"
        assert rules[mind_rule_id(subject.id)].enabled is True


def test_checking_body_task_advances_progress_counter(store, events):
    store.toggle_body_task(6)
    assert store.state.progress.biceps == 1
    assert events[-1].slices == {SLICE_BODY, SLICE_PROGRESS}

    store.toggle_body_task(6)
    assert store.state.progress.biceps == 1
    assert events[-1].slices == {SLICE_BODY}

    store.toggle_body_task(6)
    assert store.state.progress.biceps == 2


def test_abs_exercises_count_towards_abs(store):
    store.toggle_body_task(3)
    store.toggle_body_task(5)
    assert store.state.progress.abs == 2
    store.toggle_body_task(1)
    assert store.state.progress.model_dump() == {"biceps": 0, "shoulders": 0, "triceps": 0, "abs": 2, "forearms": 0}


def test_progress_counter_is_capped(store):
    store.state.progress.triceps = MAX_SESSIONS
    store.toggle_body_task(8)
    assert store.state.progress.triceps == MAX_SESSIONS


def test_unknown_task_is_ignored(store, events):
    assert store.toggle_body_task(999) is None
    assert events == []


def test_skin_session_recorded_when_checklist_completes(store, events):
    ids = [task.id for task in store.state.skin_tasks]
    for task_id in ids:
        store.toggle_skin_task(task_id)
    assert store.state.skin_sessions == 1
    assert events[-1].milestones == (MILESTONE_SKIN_SESSION,)
    assert {SLICE_SKIN, SLICE_SKIN_SESSIONS} <= events[-1].slices

    store.toggle_skin_task(ids[0])
    assert store.state.skin_sessions == 1
    assert events[-1].milestones == ()

    store.toggle_skin_task(ids[0])
    assert store.state.skin_sessions == 2


def test_skin_sessions_capped(store):
    store.state.skin_sessions = MAX_SKIN_SESSIONS
    for task in list(store.state.skin_tasks):
        store.toggle_skin_task(task.id)
    assert store.state.skin_sessions == MAX_SKIN_SESSIONS


def test_weight_input_drives_percentage(store):
    store.set_weight_input("60")
    assert store.weight_percentage() == 100.0
    store.set_weight_input("heavy")
    assert store.weight_percentage() == 0.0


def test_add_subject_creates_units_and_rule_in_one_mutation(store, events):
    subject = store.add_subject("  Compilers ")
    assert subject.label == "Compilers"
    assert [unit.label for unit in subject.units] == ["U1", "U2", "U3", "U4"]
    assert store.state.reminder_rules[mind_rule_id(subject.id)].time_of_day == "20:30"
    assert len(events) == 1
    assert events[0].slices == {SLICE_MIND, SLICE_REMINDERS}

    assert store.add_subject("   ") is None
    assert len(events) == 1


def test_delete_subject_cascades_to_its_rule(store, events):
    store.mark_rules_fired([mind_rule_id("dsa")], "2026-10-19")
    events.clear()

    assert store.delete_subject("dsa") is True
    assert all(subject.id != "dsa" for subject in store.state.mind_subjects)
    assert mind_rule_id("dsa") not in store.state.reminder_rules
    assert len(events) == 1
    assert events[0].slices == {SLICE_MIND, SLICE_REMINDERS}

    assert store.delete_subject("dsa") is False


def test_toggle_unit_and_subject_percent(store):
    store.toggle_unit("wt", "wt-u1")
    assert store.subject_percent("wt") == 25.0
    assert store.mind_totals()["completed_units"] == 1
    assert store.toggle_unit("wt", "missing") is None


def test_links_require_title_and_url(store):
    assert store.add_link("dsa", "", "https://example.com") is None
    assert store.add_link("dsa", "Notes", "   ") is None
    link = store.add_link("dsa", " Notes ", " https://example.com/notes ")
    subject = store.state.mind_subjects[0]
    assert subject.links == [link]
    assert link.url == "https://example.com/notes"

    assert store.remove_link("dsa", link.id) is True
    assert subject.links == []
    assert store.remove_link("dsa", link.id) is False


def test_planner_task_remind_at_derived_from_due_time(store, events):
    due = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    task = store.add_planner_task("Submit report", due_at=due, priority="high", remind_minutes=30)

    assert task.due_at == "2026-10-19T12:00:00Z"
    assert task.remind_at == "2026-10-19T11:30:00Z"
    assert task.priority == "high"
    assert task.notified is False
    assert task.created_at == "2026-10-19T04:30:00Z"
    assert events[-1].slices == {SLICE_PLANNER}

    with pytest.raises(ValidationError):
        task.remind_at = "2026-10-19T12:00:00Z"


def test_planner_tasks_are_prepended_and_normalized(store):
    first = store.add_planner_task("first")
    second = store.add_planner_task("second", priority="urgent")
    assert [task.id for task in store.state.planner_tasks] == [second.id, first.id]
    assert first.remind_at is None
    assert second.priority == "medium"
    assert store.add_planner_task("  ") is None


def test_planner_toggle_and_delete(store):
    task = store.add_planner_task("call")
    store.toggle_planner_task(task.id)
    assert task.completed is True
    assert store.delete_planner_task(task.id) is True
    assert store.state.planner_tasks == []
    assert store.delete_planner_task(task.id) is False


def test_mark_planner_notified_is_one_way(store):
    task = store.add_planner_task("call")
    store.mark_planner_notified([task.id])
    assert task.notified is True
    store.toggle_planner_task(task.id)
    store.toggle_planner_task(task.id)
    assert task.notified is True


def test_reminder_rule_updates(store):
    assert store.set_reminder_time("body", "06:15") is True
    assert store.state.reminder_rules["body"].target_minute() == 6 * 60 + 15
    assert store.set_reminder_time("body", "soon") is True
    assert store.state.reminder_rules["body"].target_minute() is None
    assert store.set_reminder_enabled("skin", False) is True
    assert store.state.reminder_rules["skin"].enabled is False
    assert store.set_reminder_time("mind:unknown", "10:00") is False


def test_reset_daily_clears_completion_and_ledger(store):
    store.toggle_body_task(1)
    store.mark_rules_fired(["body", "skin"], "2026-10-19")

    store.reset_daily("body")

    assert not any(task.completed for task in store.state.body_tasks)
    assert store.state.reminder_rules["body"].last_fired_day_key == ""
    assert store.state.reminder_rules["skin"].last_fired_day_key == "2026-10-19"

    with pytest.raises(ValueError):
        store.reset_daily("planner")


def test_reset_month_reseeds_lists(store):
    store.add_planner_task("stays")
    store.state.body_tasks[0].label = "Renamed"
    store.toggle_body_task(6)
    store.state.skin_sessions = 12

    store.reset_month()

    assert store.state.progress.model_dump() == {"biceps": 0, "shoulders": 0, "triceps": 0, "abs": 0, "forearms": 0}
    assert store.state.skin_sessions == 0
    assert store.state.body_tasks[0].label == "Push ups"
    assert not any(task.completed for task in store.state.body_tasks + store.state.skin_tasks)
    assert len(store.state.planner_tasks) == 1
