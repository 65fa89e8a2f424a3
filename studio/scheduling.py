import logging
import math
from datetime import date, datetime, timedelta

from .choices import Complexity, Priority, TaskStatus

logger = logging.getLogger(__name__)

# base hour estimate per complexity tier
COMPLEXITY_HOURS = {
    "simple": 2,
    "medium": 5,
    "complex": 8,
    "veryComplex": 12,
}

# each task type sets a single multiplier on the base, types not listed keep 1.0
TYPE_MULTIPLIERS = {
    "research": 0.8,
    "development": 1.2,
    "strategy": 1.0,
    "delivery": 0.7,
}

DEPENDENCY_MULTIPLIER = 1.1

PRIORITY_BY_COMPLEXITY = {
    "veryComplex": Priority.HIGH,
    "complex": Priority.HIGH,
    "medium": Priority.MEDIUM,
    "simple": Priority.LOW,
}

SAFETY_MARGIN_DAYS = 30  # stop walking the calendar this long after the deadline

# storage spelling -> scheduler spelling
_COMPLEXITY_ALIASES = {
    Complexity.VERY_COMPLEX.value: "veryComplex",
}


def _parse_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError):
        # try the plain calendar form
        try:
            return datetime.strptime(value[:10], "%Y-%m-%d").date()
        except (TypeError, ValueError):
            return None


def _require_date(value, name):
    parsed = _parse_date(value)
    if parsed is None:
        raise ValueError(f"invalid {name}: {value!r}")
    return parsed


def _add_days(day, days):
    # clamped at the end of the calendar
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return date.max


def is_workday(day):
    return day.weekday() < 5


def normalize_complexity(value):
    if not value:
        return None
    value = str(value)
    return _COMPLEXITY_ALIASES.get(value, value)


def storage_complexity(value):
    """Map a scheduler complexity tier back to the value stored on tasks."""
    value = normalize_complexity(value)
    if value == "veryComplex":
        return Complexity.VERY_COMPLEX.value
    if value in COMPLEXITY_HOURS:
        return value
    return Complexity.MEDIUM.value


def count_workdays(start, end):
    """
    Count Monday..Friday days in the inclusive range [start, end].
    Never returns less than 1 so callers always have a bucket to divide by.
    """
    current = _require_date(start, "start date")
    finish = _require_date(end, "end date")
    count = 0
    while current <= finish:
        if is_workday(current):
            count += 1
        if current == date.max:
            break
        current += timedelta(days=1)
    return count or 1


def estimate_hours(complexity, task_type, has_dependencies=False):
    """
    Hours estimate for one task, rounded half-up to one decimal.
    Unknown complexity counts as medium.
    """
    complexity = normalize_complexity(complexity) or "medium"
    hours = COMPLEXITY_HOURS.get(complexity, COMPLEXITY_HOURS["medium"])
    hours *= TYPE_MULTIPLIERS.get(task_type or "design", 1.0)
    if has_dependencies:
        hours *= DEPENDENCY_MULTIPLIER
    return math.floor(hours * 10 + 0.5) / 10


def priority_for(complexity):
    return PRIORITY_BY_COMPLEXITY.get(normalize_complexity(complexity), Priority.MEDIUM).value


def _normalize_templates(templates):
    normalized = []
    for i, t in enumerate(templates):
        nt = dict(t)  # shallow copy, templates are never mutated
        nt["position"] = i
        nt.setdefault("title", f"Task {i + 1}")
        nt["description"] = nt.get("description") or ""
        nt["complexity"] = normalize_complexity(nt.get("complexity")) or "medium"
        nt["type"] = nt.get("type") or nt.get("task_type") or None
        deps = nt.get("dependencies") or []
        if not isinstance(deps, list):
            deps = list(deps) if deps else []
        nt["dependencies"] = deps
        normalized.append(nt)
    return normalized


def build_task_instance(template, day, deadline, client_id):
    """Turn one normalized template into a task instance scheduled on `day`."""
    deps = template["dependencies"]
    return {
        "id": f"t-{client_id}-{template['position']}",
        "position": template["position"],
        "title": template["title"],
        "description": template["description"],
        "status": TaskStatus.NOT_STARTED.value,
        "priority": priority_for(template["complexity"]),
        "assigned_to": [],
        "scheduled_date": day.isoformat(),
        "due_date": deadline.isoformat(),
        "estimated_hours": estimate_hours(template["complexity"], template["type"], bool(deps)),
        "actual_hours": 0,
        "client_id": client_id,
        "task_type": template["type"],
        "complexity": storage_complexity(template["complexity"]),
        "dependencies": list(deps) or None,
        "notes": [],
        "subtasks": [],
    }


def schedule_tasks(templates, start_date, deadline, client_id):
    """
    Spread package task templates across the workdays between start_date and
    deadline (weekends skipped).

    Input:
      templates: ordered list of dicts with title, description, complexity,
        type (or task_type) and optional dependencies
      start_date, deadline: date, datetime or ISO string
      client_id: opaque string used to derive task ids
    Returns: {"tasks": [...], "unscheduled": [...], "meta": {...}}

    Each workday gets tasks_per_day templates, and the first `remainder`
    workdays get one extra. Walking stops SAFETY_MARGIN_DAYS after the
    deadline; anything not placed by then is listed under "unscheduled".
    """
    start = _require_date(start_date, "start date")
    end = _require_date(deadline, "deadline")
    client_id = str(client_id)

    normalized = _normalize_templates(templates)
    total = len(normalized)
    workdays = count_workdays(start, end)
    tasks_per_day, remainder = divmod(total, workdays)

    out = []
    index = 0
    workday = 0
    cursor = start
    limit = _add_days(end, SAFETY_MARGIN_DAYS)

    while index < total:
        if is_workday(cursor):
            daily_count = tasks_per_day + (1 if workday < remainder else 0)
            for _ in range(daily_count):
                if index >= total:
                    break
                out.append(build_task_instance(normalized[index], cursor, end, client_id))
                index += 1
            workday += 1
        if cursor >= limit:
            break
        cursor += timedelta(days=1)

    unscheduled = normalized[index:]
    if unscheduled:
        logger.warning(
            "schedule for client %s truncated: %d of %d tasks unscheduled (start=%s deadline=%s)",
            client_id, len(unscheduled), total, start.isoformat(), end.isoformat(),
        )

    meta = {
        "workdays": workdays,
        "tasks_per_day": tasks_per_day,
        "remainder": remainder,
        "first_date": out[0]["scheduled_date"] if out else None,
        "last_date": out[-1]["scheduled_date"] if out else None,
        "truncated": bool(unscheduled),
    }
    return {"tasks": out, "unscheduled": unscheduled, "meta": meta}


def distribute_tasks(templates, start_date, deadline, client_id):
    """
    Ordered task instances for a package, one per template.

    Templates left over when the safety bound is hit are dropped from the
    list (they are still logged); use schedule_tasks to see them.
    """
    if not templates:
        return []
    return schedule_tasks(templates, start_date, deadline, client_id)["tasks"]
