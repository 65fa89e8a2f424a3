"""
Client lifecycle operations on top of the ORM.

Every write runs in a transaction and leaves an ActivityLog entry attributed to
the acting user (a Django user, or None for "system").
"""
import logging
import math
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .choices import (
    NOTE_LABEL_TO_CLIENT_CATEGORY,
    NOTE_LABEL_TO_TASK_NOTE_TYPE,
    ClientNoteCategory,
    EntityType,
    PaymentStatus,
    ProjectStatus,
    TaskNoteType,
    TaskStatus,
)
from .models import ActivityLog, ArchivedRevenue, Client, ClientNote, Package, Payment, Task, TaskNote
from .realtime import notify_bulk_insert
from .scheduling import _add_days, _parse_date, schedule_tasks

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = ("system", "System")

# money columns are DecimalField(max_digits=10, decimal_places=2)
MAX_AMOUNT = Decimal("99999999.99")


class StudioError(Exception):
    """Base class for errors a caller can report back to the user."""


class InvalidInput(StudioError):
    pass


class SchedulingError(StudioError):
    def __init__(self, message, unscheduled=None):
        super().__init__(message)
        self.unscheduled = unscheduled or []


def actor_identity(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return SYSTEM_ACTOR
    profile = getattr(user, "profile", None)
    name = (profile.full_name if profile is not None else None) or user.get_full_name() or user.get_username()
    return str(user.pk), name


def _decimal(value, field):
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number")
    if not number.is_finite():
        raise InvalidInput(f"{field} must be a finite number")
    if abs(number) > MAX_AMOUNT:
        raise InvalidInput(f"{field} must not exceed {MAX_AMOUNT}")
    return number


def _date(value, field, required=True):
    if value in (None, ""):
        if required:
            raise InvalidInput(f"{field} is required")
        return None
    parsed = _parse_date(value)
    if parsed is None:
        raise InvalidInput(f"{field} must be an ISO date (yyyy-mm-dd)")
    return parsed


def log_activity(user, action, entity_type, entity_id, description=None, metadata=None):
    user_id, user_name = actor_identity(user)
    return ActivityLog.objects.create(
        user_id=user_id,
        user_name=user_name,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        description=description,
        metadata=metadata,
    )


def recent_activity(limit=50):
    return list(ActivityLog.objects.all()[:limit])


def package_templates(package):
    return [pt.as_template() for pt in package.tasks.order_by("order_number")]


def _get_package(package_id, field):
    try:
        return Package.objects.get(pk=package_id)
    except Package.DoesNotExist:
        raise InvalidInput(f"unknown {field}: {package_id}")


@transaction.atomic
def create_client(data, user=None):
    """
    Create a client and its task pipeline.

    data keys: name, email, phone, instagram_handle, company_name, package_id,
    addon_package_id, actual_price, start_date, deadline. start_date defaults
    to today, deadline to the longest default duration of the selected
    packages, actual_price to the sum of their prices.
    """
    name = (data.get("name") or data.get("instagram_handle") or "").strip()
    if not name:
        raise InvalidInput("name is required")
    if not data.get("package_id"):
        raise InvalidInput("package_id is required")

    package = _get_package(data["package_id"], "package_id")
    addon = _get_package(data["addon_package_id"], "addon_package_id") if data.get("addon_package_id") else None
    selected = [p for p in (package, addon) if p is not None]

    start = _date(data.get("start_date"), "start_date", required=False) or timezone.localdate()
    deadline = _date(data.get("deadline"), "deadline", required=False)
    if deadline is None:
        deadline = _add_days(start, max(p.default_duration_days for p in selected))
    if start > deadline:
        raise InvalidInput("start_date must not be after deadline")

    if data.get("actual_price") in (None, ""):
        price = sum((p.price_min for p in selected), Decimal("0"))
    else:
        price = _decimal(data["actual_price"], "actual_price")
        if price < 0:
            raise InvalidInput("actual_price must not be negative")

    email = data.get("email") or f"{name.lstrip('@')}@instagram.placeholder"
    user_id, _ = actor_identity(user)

    client = Client.objects.create(
        name=name,
        email=email,
        phone=data.get("phone") or None,
        instagram_handle=data.get("instagram_handle") or None,
        company_name=data.get("company_name") or None,
        package=package,
        addon_package=addon,
        actual_price=price,
        status=ProjectStatus.NOT_STARTED,
        start_date=start,
        deadline=deadline,
        created_by=user_id,
    )

    templates = package_templates(package)
    if addon is not None:
        templates += package_templates(addon)

    result = schedule_tasks(templates, start, deadline, client.id)
    if result["meta"]["truncated"]:
        raise SchedulingError(
            f"{len(result['unscheduled'])} task(s) could not be scheduled before {deadline.isoformat()}",
            unscheduled=result["unscheduled"],
        )

    created = Task.objects.bulk_create(
        [
            Task(
                id=t["id"],
                client=client,
                package_task_id=templates[t["position"]].get("package_task_id"),
                title=t["title"],
                description=t["description"],
                estimated_hours=t["estimated_hours"],
                actual_hours=t["actual_hours"],
                task_type=t["task_type"],
                complexity=t["complexity"],
                scheduled_date=_parse_date(t["scheduled_date"]),
                due_date=deadline,
                status=t["status"],
                priority=t["priority"],
                assigned_to=t["assigned_to"],
                dependencies=t["dependencies"],
                subtasks=t["subtasks"],
            )
            for t in result["tasks"]
        ]
    )
    # bulk_create skips post_save
    notify_bulk_insert(created)

    log_activity(
        user,
        "client_created",
        EntityType.CLIENT,
        client.id,
        description=f"New client {client.company_name or client.name} ({package.name})",
        metadata={"tasks": len(result["tasks"]), "workdays": result["meta"]["workdays"]},
    )
    logger.info("client %s created with %d tasks", client.id, len(result["tasks"]))
    return client


CLIENT_EDITABLE_FIELDS = ("name", "email", "phone", "instagram_handle", "company_name", "actual_price", "deadline", "status")


@transaction.atomic
def update_client(client, changes, user=None):
    """
    Apply editable field changes. A new deadline becomes the due date of every
    task of the client.
    """
    values = {}
    for field in CLIENT_EDITABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == "actual_price":
            value = _decimal(value, field)
            if value < 0:
                raise InvalidInput("actual_price must not be negative")
        elif field == "deadline":
            value = _date(value, field)
            if client.start_date and client.start_date > value:
                raise InvalidInput("deadline must not be before start_date")
        elif field == "status" and value not in ProjectStatus.values:
            raise InvalidInput(f"unknown status: {value}")
        elif field in ("name", "email") and not value:
            raise InvalidInput(f"{field} must not be empty")
        values[field] = value

    if not values:
        return client
    deadline_moved = "deadline" in values and values["deadline"] != client.deadline
    for field, value in values.items():
        setattr(client, field, value)
    updated = list(values)
    client.save(update_fields=updated + ["updated_at"])

    if deadline_moved:
        # saved one by one so each row reaches the change feed
        for task in client.tasks.exclude(due_date=client.deadline):
            task.due_date = client.deadline
            task.save(update_fields=["due_date", "updated_at"])

    log_activity(user, "client_updated", EntityType.CLIENT, client.id, metadata={"fields": updated})
    return client


@transaction.atomic
def delete_client(client, user=None):
    """Delete a client, keeping its price in the archived revenue total."""
    if client.actual_price and client.actual_price > 0:
        archive_revenue(client.actual_price)
    client_id = client.id
    label = client.company_name or client.name
    client.delete()
    log_activity(user, "client_deleted", EntityType.CLIENT, client_id, description=f"Deleted client {label}")
    logger.info("client %s deleted", client_id)


def archive_revenue(amount):
    ArchivedRevenue.load()
    ArchivedRevenue.objects.filter(pk=1).update(amount=F("amount") + Decimal(str(amount)))


def archived_revenue():
    return ArchivedRevenue.load().amount


@transaction.atomic
def reset_archived_revenue(user=None):
    ArchivedRevenue.objects.update_or_create(pk=1, defaults={"amount": Decimal("0")})
    logger.info("archived revenue reset by %s", actor_identity(user)[1])


def refresh_completion(client):
    """Recompute completion_percentage from the client's tasks."""
    total = client.tasks.count()
    done = client.tasks.filter(status=TaskStatus.COMPLETED).count()
    client.completion_percentage = round(done * 100 / total) if total else 0
    client.save(update_fields=["completion_percentage", "updated_at"])
    return client.completion_percentage


@transaction.atomic
def update_task_status(task, status, user=None):
    if status not in TaskStatus.values:
        raise InvalidInput(f"unknown status: {status}")
    task.status = status
    if status == TaskStatus.COMPLETED:
        task.completed_at = timezone.now()
        task.completed_by = actor_identity(user)[0]
    else:
        task.completed_at = None
        task.completed_by = None
    task.save(update_fields=["status", "completed_at", "completed_by", "updated_at"])
    refresh_completion(task.client)
    log_activity(
        user,
        "task_status_changed",
        EntityType.TASK,
        task.id,
        description=f"{task.title}: {task.get_status_display()}",
        metadata={"status": status},
    )
    return task


@transaction.atomic
def log_actual_hours(task, hours, user=None):
    try:
        hours = float(hours)
    except (TypeError, ValueError):
        raise InvalidInput("actual_hours must be a number")
    if not math.isfinite(hours):
        raise InvalidInput("actual_hours must be a finite number")
    if hours < 0:
        raise InvalidInput("actual_hours must not be negative")
    task.actual_hours = hours
    task.save(update_fields=["actual_hours", "updated_at"])
    log_activity(user, "task_hours_logged", EntityType.TASK, task.id, metadata={"actual_hours": hours})
    return task


@transaction.atomic
def complete_client_tasks(client, user=None):
    """Mark every open task of the client completed. Returns the number of tasks touched."""
    now = timezone.now()
    user_id = actor_identity(user)[0]
    count = 0
    # saved one by one so each row reaches the change feed
    for task in client.tasks.exclude(status=TaskStatus.COMPLETED):
        task.status = TaskStatus.COMPLETED
        task.completed_at = now
        task.completed_by = user_id
        task.save(update_fields=["status", "completed_at", "completed_by", "updated_at"])
        count += 1
    refresh_completion(client)
    log_activity(user, "client_tasks_completed", EntityType.CLIENT, client.id, metadata={"tasks": count})
    return count


def _note_value(label, choices, mapping, default):
    if not label:
        return default
    label = str(label).strip().lower()
    if label in choices.values:
        return label
    return mapping.get(label, default)


@transaction.atomic
def add_client_note(client, content, category=None, user=None):
    if not content or not str(content).strip():
        raise InvalidInput("content is required")
    author_id, author_name = actor_identity(user)
    note = ClientNote.objects.create(
        client=client,
        content=str(content).strip(),
        category=_note_value(category, ClientNoteCategory, NOTE_LABEL_TO_CLIENT_CATEGORY, ClientNoteCategory.GENERAL),
        author_id=author_id,
        author_name=author_name,
    )
    log_activity(user, "note_added", EntityType.NOTE, note.pk, metadata={"client_id": str(client.id)})
    return note


@transaction.atomic
def delete_client_note(client, note_id, user=None):
    deleted, _ = ClientNote.objects.filter(client=client, pk=note_id).delete()
    if not deleted:
        raise InvalidInput(f"note {note_id} not found for client {client.id}")
    log_activity(user, "note_deleted", EntityType.NOTE, note_id, metadata={"client_id": str(client.id)})


@transaction.atomic
def add_task_note(task, content, category=None, user=None):
    if not content or not str(content).strip():
        raise InvalidInput("content is required")
    author_id, author_name = actor_identity(user)
    note = TaskNote.objects.create(
        task=task,
        content=str(content).strip(),
        note_type=_note_value(category, TaskNoteType, NOTE_LABEL_TO_TASK_NOTE_TYPE, TaskNoteType.PROGRESS),
        author_id=author_id,
        author_name=author_name,
    )
    log_activity(user, "note_added", EntityType.NOTE, note.pk, metadata={"task_id": task.id})
    return note


@transaction.atomic
def add_payment(client, data, user=None):
    amount = _decimal(data.get("amount"), "amount")
    if amount <= 0:
        raise InvalidInput("amount must be positive")
    status = data.get("status") or PaymentStatus.PENDING
    if status not in PaymentStatus.values:
        raise InvalidInput(f"unknown payment status: {status}")
    payment = Payment.objects.create(
        client=client,
        amount=amount,
        payment_date=_date(data.get("date"), "date", required=False) or timezone.localdate(),
        payment_method=data.get("method") or None,
        invoice_number=data.get("invoice_number") or None,
        status=status,
        notes=data.get("notes") or None,
        recorded_by=actor_identity(user)[0],
    )
    log_activity(
        user,
        "payment_added",
        EntityType.PAYMENT,
        payment.pk,
        description=f"Payment of {amount} from {client.company_name or client.name}",
        metadata={"client_id": str(client.id), "status": status},
    )
    return payment
