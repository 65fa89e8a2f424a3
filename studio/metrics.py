from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Count, Q, Sum
from django.utils import timezone

from .choices import ProjectStatus, TaskStatus
from .models import Client, Payment, Task
from .serializers import task_to_dict
from .services import archived_revenue

CLOSED_PROJECT_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.ARCHIVED)


def _upcoming_days():
    return getattr(settings, "STUDIO_UPCOMING_DEADLINE_DAYS", 7)


def _clients_with_totals():
    return Client.objects.select_related("package", "addon_package").annotate(
        total_tasks=Count("tasks", distinct=True),
        completed_tasks=Count("tasks", filter=Q(tasks__status=TaskStatus.COMPLETED), distinct=True),
    )


def client_overview(client=None):
    """
    Overview rows (one per client, newest first), or a single row when a
    client is given.
    """
    qs = _clients_with_totals()
    if client is not None:
        qs = qs.filter(pk=client.pk)
    rows = []
    for c in qs:
        paid = Payment.objects.filter(client=c).aggregate(total=Sum("amount"))["total"] or Decimal("0")
        rows.append(
            {
                "id": str(c.id),
                "name": c.name,
                "email": c.email,
                "phone": c.phone,
                "instagram_handle": c.instagram_handle,
                "company_name": c.company_name,
                "status": c.status,
                "start_date": c.start_date.isoformat() if c.start_date else None,
                "deadline": c.deadline.isoformat(),
                "completion_percentage": c.completion_percentage,
                "actual_price": float(c.actual_price),
                "package_name": c.package.name,
                "package_id": c.package_id,
                "addon_package_name": c.addon_package.name if c.addon_package else None,
                "total_tasks": c.total_tasks,
                "completed_tasks": c.completed_tasks,
                "active_tasks": c.total_tasks - c.completed_tasks,
                "total_paid": float(paid),
                "created_at": c.created_at.isoformat(),
            }
        )
    if client is not None:
        return rows[0] if rows else None
    return rows


def upcoming_deadlines(today=None, within_days=None):
    """Open projects by days left; within_days limits to the next N days."""
    today = today or timezone.localdate()
    out = []
    for c in Client.objects.exclude(status__in=CLOSED_PROJECT_STATUSES).select_related("package"):
        days_left = (c.deadline - today).days
        if within_days is not None and not (0 <= days_left <= within_days):
            continue
        out.append(
            {
                "id": str(c.id),
                "title": c.name,
                "package_name": c.package.name,
                "deadline": c.deadline.isoformat(),
                "days_left": days_left,
            }
        )
    out.sort(key=lambda x: x["days_left"])
    return out


def dashboard_metrics(today=None):
    clients = list(Client.objects.all())
    paid = Payment.objects.aggregate(total=Sum("amount"))["total"] or Decimal("0")
    total = len(clients)
    archived = archived_revenue()
    return {
        "total_projects": total,
        "completed_projects": sum(1 for c in clients if c.status == ProjectStatus.COMPLETED),
        "running_projects": sum(1 for c in clients if c.status == ProjectStatus.IN_PROGRESS),
        "pending_projects": sum(1 for c in clients if c.status == ProjectStatus.NOT_STARTED),
        "total_paid": float(paid + archived),
        "archived_revenue": float(archived),
        "avg_progress": round(sum(c.completion_percentage for c in clients) / total) if total else 0,
        "upcoming_deadlines": upcoming_deadlines(today)[:5],
    }


def analytics(today=None):
    today = today or timezone.localdate()
    clients = list(Client.objects.select_related("package"))
    paid_by_client = defaultdict(Decimal)
    for row in Payment.objects.order_by().values("client_id").annotate(total=Sum("amount")):
        paid_by_client[row["client_id"]] = row["total"] or Decimal("0")

    total_revenue = sum(paid_by_client.values(), Decimal("0"))
    potential_revenue = sum((c.actual_price for c in clients), Decimal("0"))

    package_distribution = defaultdict(int)
    revenue_by_package = defaultdict(float)
    status_counts = {value: 0 for value in ProjectStatus.values}
    for c in clients:
        package_distribution[c.package.name] += 1
        revenue_by_package[c.package.name] += float(paid_by_client[c.id])
        status_counts[c.status] = status_counts.get(c.status, 0) + 1

    total_tasks = Task.objects.count()
    completed_tasks = Task.objects.filter(status=TaskStatus.COMPLETED).count()
    total_clients = len(clients)

    return {
        "total_clients": total_clients,
        "clients_by_status": status_counts,
        "total_revenue": float(total_revenue),
        "potential_revenue": float(potential_revenue),
        "collection_rate": round(float(total_revenue / potential_revenue) * 100) if potential_revenue else 0,
        "total_tasks": total_tasks,
        "completed_tasks": completed_tasks,
        "pending_tasks": total_tasks - completed_tasks,
        "task_completion_rate": round(completed_tasks * 100 / total_tasks) if total_tasks else 0,
        "package_distribution": dict(package_distribution),
        "revenue_by_package": dict(revenue_by_package),
        "upcoming_deadlines": len(upcoming_deadlines(today, within_days=_upcoming_days())),
        "avg_project_value": round(float(potential_revenue) / total_clients) if total_clients else 0,
    }


def calendar_events(day):
    """Open tasks scheduled on `day` and clients due that day."""
    tasks = Task.objects.filter(scheduled_date=day).exclude(status=TaskStatus.COMPLETED).select_related("client")
    deadlines = Client.objects.filter(deadline=day)
    return {
        "date": day.isoformat(),
        "tasks": [
            {"id": t.id, "title": t.title, "client_id": str(t.client_id), "client_name": t.client.name, "priority": t.priority}
            for t in tasks
        ],
        "deadlines": [{"id": str(c.id), "name": c.name, "status": c.status} for c in deadlines],
    }


def calendar_month(year, month):
    """Per-day event counts for a month view."""
    first = date(year, month, 1)
    last = (first.replace(day=28) + timedelta(days=4)).replace(day=1) - timedelta(days=1)
    counts = defaultdict(lambda: {"tasks": 0, "deadlines": 0})
    open_tasks = Task.objects.filter(scheduled_date__range=(first, last)).exclude(status=TaskStatus.COMPLETED)
    for row in open_tasks.order_by().values("scheduled_date").annotate(n=Count("id")):
        counts[row["scheduled_date"].isoformat()]["tasks"] = row["n"]
    for row in Client.objects.filter(deadline__range=(first, last)).order_by().values("deadline").annotate(n=Count("id")):
        counts[row["deadline"].isoformat()]["deadlines"] = row["n"]
    return dict(sorted(counts.items()))


def task_board():
    """Tasks grouped per client: open tasks first, then by scheduled date."""
    grouped = defaultdict(list)
    for t in Task.objects.all():
        grouped[t.client_id].append(t)

    board = []
    for c in Client.objects.all():
        tasks = grouped.get(c.id)
        if not tasks:
            continue
        tasks.sort(key=lambda t: (t.status == TaskStatus.COMPLETED, t.scheduled_date, t.id))
        completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
        board.append(
            {
                "client": {"id": str(c.id), "name": c.name, "company_name": c.company_name},
                "tasks": [task_to_dict(t) for t in tasks],
                "completed_count": completed,
                "pending_count": len(tasks) - completed,
                "total_count": len(tasks),
            }
        )
    return board
