"""Plain-dict renderings of tasks and occurrences for JSON responses."""


def _iso(value):
    return value.isoformat() if value is not None else None


def record_to_dict(record):
    return {
        "completed_on": _iso(record.completed_on),
        "completed_at": _iso(record.completed_at),
        "completed_by": record.completed_by_id,
    }


def task_to_dict(task):
    return {
        "id": task.pk,
        "owner": task.owner_id,
        "title": task.title,
        "description": task.description,
        "priority": task.priority,
        "status": task.status,
        "recurrence": task.recurrence,
        "start_date": _iso(task.start_date),
        "due_date": _iso(task.due_date),
        "end_date": _iso(task.end_date),
        "recurrence_days": list(task.recurrence_days or []),
        "category": task.category,
        "completion_history": [record_to_dict(r) for r in task.completion_history.all()],
        "created_at": _iso(task.created_at),
        "updated_at": _iso(task.updated_at),
    }


def occurrence_to_dict(occurrence):
    data = task_to_dict(occurrence.task)
    data["occurrence_date"] = occurrence.date.isoformat()
    data["completed"] = occurrence.completed
    return data
