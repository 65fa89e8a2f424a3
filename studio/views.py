import json
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.http import HttpResponseBadRequest, HttpResponseNotAllowed, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt

from . import metrics, services
from .models import Client, Package, Task, UserProfile
from .scheduling import _parse_date, schedule_tasks
from .serializers import (
    activity_to_dict,
    client_to_dict,
    note_to_dict,
    package_to_dict,
    payment_to_dict,
    profile_to_dict,
    task_to_dict,
)

logger = logging.getLogger(__name__)


def _bad_request(error, detail=None):
    body = {"error": error}
    if detail is not None:
        body["detail"] = detail
    return HttpResponseBadRequest(json.dumps(body), content_type="application/json")


def _not_found(what):
    return JsonResponse({"error": f"{what} not found"}, status=404)


def _payload(request):
    """Decoded JSON body; raises ValueError on malformed input."""
    payload = json.loads(request.body.decode("utf-8") or "{}")
    if not isinstance(payload, dict):
        raise ValueError("JSON body must be an object")
    return payload


def _user(request):
    user = getattr(request, "user", None)
    return user if user is not None and user.is_authenticated else None


def _get_client(client_id):
    try:
        return Client.objects.select_related("package", "addon_package").get(pk=client_id)
    except (Client.DoesNotExist, ValidationError):
        # non-uuid ids never match
        return None


@csrf_exempt
def schedule_preview(request):
    """
    POST /api/schedule/preview/
    body: {"tasks": [...] | "package_id": "...", "start_date": "...", "deadline": "...", "client_id": "..."}
    Runs the scheduler without writing anything.
    """
    if request.method != "POST":
        return _bad_request("POST required")
    try:
        payload = _payload(request)
    except ValueError as e:
        return _bad_request("invalid json", str(e))

    templates = payload.get("tasks")
    if templates is None and payload.get("package_id"):
        try:
            package = Package.objects.get(pk=payload["package_id"])
        except Package.DoesNotExist:
            return _not_found("package")
        templates = services.package_templates(package)
    if not isinstance(templates, list):
        return _bad_request("tasks must be a list")
    if not all(isinstance(t, dict) for t in templates):
        return _bad_request("each task must be an object")

    start = payload.get("start_date") or timezone.localdate().isoformat()
    deadline = payload.get("deadline")
    if not deadline:
        return _bad_request("deadline is required")

    try:
        result = schedule_tasks(templates, start, deadline, payload.get("client_id") or "preview")
    except ValueError as e:
        return _bad_request("invalid dates", str(e))
    return JsonResponse(result)


def package_list(request):
    if request.method != "GET":
        return _bad_request("GET required")
    packages = Package.objects.filter(active=True).prefetch_related("tasks")
    return JsonResponse({"packages": [package_to_dict(p, p.tasks.all()) for p in packages]})


@csrf_exempt
def client_collection(request):
    """
    GET  /api/clients/  overview rows
    POST /api/clients/  create a client and schedule its package tasks
    """
    if request.method == "GET":
        return JsonResponse({"clients": metrics.client_overview()})
    if request.method != "POST":
        return HttpResponseNotAllowed(["GET", "POST"])

    try:
        payload = _payload(request)
    except ValueError as e:
        return _bad_request("invalid json", str(e))

    try:
        client = services.create_client(payload, user=_user(request))
    except services.SchedulingError as e:
        logger.warning("client creation rejected: %s", e)
        return _bad_request("scheduling failed", {"message": str(e), "unscheduled": e.unscheduled})
    except services.StudioError as e:
        return _bad_request("invalid client", str(e))

    tasks = [task_to_dict(t) for t in client.tasks.all()]
    return JsonResponse({"client": client_to_dict(client), "tasks": tasks}, status=201)


@csrf_exempt
def client_detail(request, client_id):
    client = _get_client(client_id)
    if client is None:
        return _not_found("client")

    if request.method == "GET":
        return JsonResponse(
            {
                "client": metrics.client_overview(client),
                "tasks": [task_to_dict(t) for t in client.tasks.all()],
                "notes": [note_to_dict(n) for n in client.notes.all()],
                "payments": [payment_to_dict(p) for p in client.payments.all()],
            }
        )

    if request.method == "PATCH":
        try:
            payload = _payload(request)
            services.update_client(client, payload, user=_user(request))
        except ValueError as e:
            return _bad_request("invalid json", str(e))
        except services.StudioError as e:
            return _bad_request("invalid update", str(e))
        return JsonResponse({"client": client_to_dict(client)})

    if request.method == "DELETE":
        services.delete_client(client, user=_user(request))
        return JsonResponse({"deleted": str(client_id), "archived_revenue": float(services.archived_revenue())})

    return HttpResponseNotAllowed(["GET", "PATCH", "DELETE"])


@csrf_exempt
def client_complete_tasks(request, client_id):
    if request.method != "POST":
        return _bad_request("POST required")
    client = _get_client(client_id)
    if client is None:
        return _not_found("client")
    count = services.complete_client_tasks(client, user=_user(request))
    return JsonResponse({"completed": count, "completion_percentage": client.completion_percentage})


@csrf_exempt
def client_notes(request, client_id):
    if request.method != "POST":
        return _bad_request("POST required")
    client = _get_client(client_id)
    if client is None:
        return _not_found("client")
    try:
        payload = _payload(request)
        note = services.add_client_note(client, payload.get("content"), payload.get("category"), user=_user(request))
    except ValueError as e:
        return _bad_request("invalid json", str(e))
    except services.StudioError as e:
        return _bad_request("invalid note", str(e))
    return JsonResponse({"note": note_to_dict(note)}, status=201)


@csrf_exempt
def client_note_detail(request, client_id, note_id):
    if request.method != "DELETE":
        return _bad_request("DELETE required")
    client = _get_client(client_id)
    if client is None:
        return _not_found("client")
    try:
        services.delete_client_note(client, note_id, user=_user(request))
    except services.StudioError:
        return _not_found("note")
    return JsonResponse({"deleted": note_id})


@csrf_exempt
def client_payments(request, client_id):
    if request.method != "POST":
        return _bad_request("POST required")
    client = _get_client(client_id)
    if client is None:
        return _not_found("client")
    try:
        payload = _payload(request)
        payment = services.add_payment(client, payload, user=_user(request))
    except ValueError as e:
        return _bad_request("invalid json", str(e))
    except services.StudioError as e:
        return _bad_request("invalid payment", str(e))
    return JsonResponse({"payment": payment_to_dict(payment)}, status=201)


def task_list(request):
    """GET /api/tasks/?client=<id>  tasks by scheduled date"""
    if request.method != "GET":
        return _bad_request("GET required")
    tasks = Task.objects.all()
    client_id = request.GET.get("client")
    if client_id:
        client = _get_client(client_id)
        if client is None:
            return _not_found("client")
        tasks = tasks.filter(client=client)
    return JsonResponse({"tasks": [task_to_dict(t) for t in tasks]})


@csrf_exempt
def task_detail(request, task_id):
    """
    GET   /api/tasks/<id>/  task with its notes
    PATCH /api/tasks/<id>/  body: {"status": "...", "actual_hours": n}
    """
    try:
        task = Task.objects.select_related("client").get(pk=task_id)
    except Task.DoesNotExist:
        return _not_found("task")

    if request.method == "GET":
        return JsonResponse({"task": task_to_dict(task, notes=task.notes.all())})
    if request.method != "PATCH":
        return HttpResponseNotAllowed(["GET", "PATCH"])

    try:
        payload = _payload(request)
    except ValueError as e:
        return _bad_request("invalid json", str(e))
    if "status" not in payload and "actual_hours" not in payload:
        return _bad_request("nothing to update", "expected status and/or actual_hours")

    try:
        # both changes land or neither does
        with transaction.atomic():
            if "actual_hours" in payload:
                services.log_actual_hours(task, payload["actual_hours"], user=_user(request))
            if "status" in payload:
                services.update_task_status(task, payload["status"], user=_user(request))
    except services.StudioError as e:
        return _bad_request("invalid update", str(e))
    return JsonResponse({"task": task_to_dict(task)})


@csrf_exempt
def task_notes(request, task_id):
    if request.method != "POST":
        return _bad_request("POST required")
    try:
        task = Task.objects.get(pk=task_id)
    except Task.DoesNotExist:
        return _not_found("task")
    try:
        payload = _payload(request)
        note = services.add_task_note(task, payload.get("content"), payload.get("category"), user=_user(request))
    except ValueError as e:
        return _bad_request("invalid json", str(e))
    except services.StudioError as e:
        return _bad_request("invalid note", str(e))
    return JsonResponse({"note": note_to_dict(note)}, status=201)


def task_board(request):
    if request.method != "GET":
        return _bad_request("GET required")
    return JsonResponse({"board": metrics.task_board()})


def calendar(request):
    """
    GET /api/calendar/?date=yyyy-mm-dd  events of one day
    GET /api/calendar/?month=yyyy-mm    per-day counts for a month
    """
    if request.method != "GET":
        return _bad_request("GET required")
    month = request.GET.get("month")
    if month:
        try:
            year, mon = (int(part) for part in month.split("-", 1))
            return JsonResponse({"month": month, "days": metrics.calendar_month(year, mon)})
        except ValueError as e:
            return _bad_request("invalid month", str(e))
    raw = request.GET.get("date")
    day = _parse_date(raw) if raw else timezone.localdate()
    if day is None:
        return _bad_request("invalid date", raw)
    return JsonResponse(metrics.calendar_events(day))


def activity(request):
    if request.method != "GET":
        return _bad_request("GET required")
    default_limit = getattr(settings, "STUDIO_ACTIVITY_LIMIT", 50)
    try:
        limit = max(1, min(500, int(request.GET.get("limit", default_limit))))
    except ValueError:
        return _bad_request("limit must be an integer")
    return JsonResponse({"activity": [activity_to_dict(a) for a in services.recent_activity(limit)]})


def team(request):
    if request.method != "GET":
        return _bad_request("GET required")
    profiles = UserProfile.objects.select_related("user")
    return JsonResponse({"team": [profile_to_dict(p) for p in profiles]})


def dashboard_metrics(request):
    if request.method != "GET":
        return _bad_request("GET required")
    return JsonResponse(metrics.dashboard_metrics())


def analytics(request):
    if request.method != "GET":
        return _bad_request("GET required")
    return JsonResponse(metrics.analytics())


@csrf_exempt
def reset_revenue(request):
    if request.method != "POST":
        return _bad_request("POST required")
    services.reset_archived_revenue(user=_user(request))
    return JsonResponse({"archived_revenue": 0.0})
