from __future__ import annotations

import re

from habit_engine.constants import ABS_EXERCISES, PROGRESS_LABEL_MATCHES

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_leading_float(raw):
    match = _LEADING_NUMBER.match(str(raw or ""))
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def weight_percentage(raw):
    """Map a body-weight input to a 0-100 score; 100kg is 0, 60kg or less is 100."""
    weight = parse_leading_float(raw)
    if weight is None:
        return 0.0
    score = -2.5 * (weight - 100)
    return max(0.0, min(100.0, score))


def completion_percent(items):
    items = list(items)
    if not items:
        return 0.0
    completed = sum(1 for item in items if item.completed)
    return completed / len(items) * 100


def subject_percent(subject):
    if subject is None:
        return 0.0
    return completion_percent(subject.units)


def mind_totals(subjects):
    total_units = sum(len(subject.units) for subject in subjects)
    completed_units = sum(1 for subject in subjects for unit in subject.units if unit.completed)
    percent = (completed_units / total_units) * 100 if total_units else 0.0
    return {
        "total_units": total_units,
        "completed_units": completed_units,
        "percent": percent,
    }


def progress_targets(label):
    """Counters a completed body task advances, derived from its label."""
    normalized = str(label or "").strip().lower()
    targets = []
    for fragment, key in PROGRESS_LABEL_MATCHES:
        if fragment in normalized:
            targets.append(key)
            break
    if normalized in ABS_EXERCISES:
        targets.append("abs")
    return targets
