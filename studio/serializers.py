"""Row -> dict conversion used by the JSON views and the change feed."""


def _iso(value):
    return value.isoformat() if value is not None else None


def _money(value):
    return float(value) if value is not None else None


def package_to_dict(package, tasks=None):
    data = {
        "id": package.id,
        "name": package.name,
        "description": package.description,
        "price": _money(package.price_min),
        "price_max": _money(package.price_max),
        "default_deadline_days": package.default_duration_days,
        "is_addon": package.is_addon,
        "category": package.category,
    }
    if tasks is not None:
        data["tasks"] = [
            {
                "order": t.order_number,
                "title": t.title,
                "description": t.description,
                "base_hours": t.estimated_hours,
                "complexity": t.complexity,
                "type": t.task_type,
                "dependencies": t.dependencies,
            }
            for t in tasks
        ]
    return data


def client_to_dict(client):
    return {
        "id": str(client.id),
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "instagram_handle": client.instagram_handle,
        "company_name": client.company_name,
        "package_id": client.package_id,
        "addon_package_id": client.addon_package_id,
        "actual_price": _money(client.actual_price),
        "status": client.status,
        "start_date": _iso(client.start_date),
        "deadline": _iso(client.deadline),
        "completion_percentage": client.completion_percentage,
        "created_by": client.created_by,
        "created_at": _iso(client.created_at),
        "updated_at": _iso(client.updated_at),
    }


def task_to_dict(task, notes=None):
    data = {
        "id": task.id,
        "client_id": str(task.client_id),
        "package_task_id": task.package_task_id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "assigned_to": list(task.assigned_to or []),
        "scheduled_date": _iso(task.scheduled_date),
        "due_date": _iso(task.due_date),
        "estimated_hours": task.estimated_hours,
        "actual_hours": task.actual_hours or 0,
        "task_type": task.task_type,
        "complexity": task.complexity,
        "dependencies": task.dependencies,
        "subtasks": list(task.subtasks or []),
        "completed_at": _iso(task.completed_at),
        "completed_by": task.completed_by,
    }
    if notes is not None:
        data["notes"] = [note_to_dict(n) for n in notes]
    return data


def note_to_dict(note):
    # client notes carry a category, task notes a note_type
    return {
        "id": note.pk,
        "author_id": note.author_id,
        "author": note.author_name,
        "content": note.content,
        "category": getattr(note, "category", None) or getattr(note, "note_type", None),
        "timestamp": _iso(note.created_at),
    }


def payment_to_dict(payment):
    return {
        "id": payment.pk,
        "client_id": str(payment.client_id),
        "amount": _money(payment.amount),
        "date": _iso(payment.payment_date),
        "method": payment.payment_method or "",
        "invoice_number": payment.invoice_number or "",
        "status": payment.status,
        "notes": payment.notes,
    }


def activity_to_dict(entry):
    return {
        "id": entry.pk,
        "user_id": entry.user_id,
        "user": entry.user_name,
        "action": entry.description or entry.action,
        "entity_type": entry.entity_type,
        "entity_id": entry.entity_id,
        "metadata": entry.metadata,
        "time": _iso(entry.created_at),
    }


def profile_to_dict(profile):
    return {
        "id": profile.user_id,
        "name": profile.full_name or "Unknown",
        "role": profile.get_role_display(),
        "avatar": profile.avatar_url or f"https://picsum.photos/seed/{profile.user_id}/100",
        "status": "online" if profile.online else "offline",
    }


def instance_to_dict(instance):
    """Best-effort conversion for any studio row, used by the change feed."""
    from . import models

    converters = {
        models.Client: client_to_dict,
        models.Task: task_to_dict,
        models.Payment: payment_to_dict,
        models.ActivityLog: activity_to_dict,
        models.ClientNote: note_to_dict,
        models.TaskNote: note_to_dict,
    }
    convert = converters.get(type(instance))
    if convert is None:
        return {"id": instance.pk}
    return convert(instance)
