import json
from collections import Counter
from datetime import date, datetime
from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, TestCase

from . import metrics, services
from .catalog import PACKAGE_TEMPLATES, get_template, sync_catalog
from .models import ActivityLog, Client, Package, Task
from .realtime import DELETE, INSERT, UPDATE, ChangeEvent, ChangeFeed, DashboardCache, feed
from .scheduling import (
    count_workdays,
    distribute_tasks,
    estimate_hours,
    priority_for,
    schedule_tasks,
)

MONDAY = date(2024, 1, 1)
FRIDAY = date(2024, 1, 5)
SATURDAY = date(2024, 1, 6)
SUNDAY = date(2024, 1, 7)
NEXT_FRIDAY = date(2024, 1, 12)


def make_templates(n, **extra):
    return [dict({"title": f"task {i}", "description": "", "complexity": "medium", "type": "design"}, **extra) for i in range(n)]


def per_day(tasks):
    return Counter(t["scheduled_date"] for t in tasks)


class WorkdayTests(SimpleTestCase):

    def test_single_monday(self):
        self.assertEqual(count_workdays(MONDAY, MONDAY), 1)

    def test_weekend_only_is_floored(self):
        self.assertEqual(count_workdays(SATURDAY, SUNDAY), 1)

    def test_monday_to_friday(self):
        self.assertEqual(count_workdays(MONDAY, FRIDAY), 5)

    def test_two_weeks(self):
        self.assertEqual(count_workdays(MONDAY, NEXT_FRIDAY), 10)

    def test_inverted_range_is_floored(self):
        self.assertEqual(count_workdays(NEXT_FRIDAY, MONDAY), 1)

    def test_accepts_datetimes_and_strings(self):
        self.assertEqual(count_workdays(datetime(2024, 1, 1, 18, 30), "2024-01-05"), 5)


class HourEstimateTests(SimpleTestCase):

    def test_reference_values(self):
        self.assertEqual(estimate_hours("simple", "design", False), 2.0)
        self.assertEqual(estimate_hours("complex", "development", True), 10.6)
        self.assertEqual(estimate_hours("veryComplex", "delivery", False), 8.4)

    def test_type_multipliers(self):
        self.assertEqual(estimate_hours("simple", "research"), 1.6)
        self.assertEqual(estimate_hours("medium", "strategy"), 5.0)
        self.assertEqual(estimate_hours("simple", "delivery"), 1.4)
        self.assertEqual(estimate_hours("medium", "filming"), 5.0)

    def test_dependency_multiplier_after_type(self):
        self.assertEqual(estimate_hours("medium", "strategy", True), 5.5)
        self.assertEqual(estimate_hours("simple", "research", True), 1.8)

    def test_unknown_complexity_counts_as_medium(self):
        self.assertEqual(estimate_hours(None, "design"), 5.0)
        self.assertEqual(estimate_hours("huge", "design"), 5.0)

    def test_storage_spelling_of_very_complex(self):
        self.assertEqual(estimate_hours("very_complex", "design"), 12.0)


class PriorityTests(SimpleTestCase):

    def test_priority_by_complexity(self):
        self.assertEqual(priority_for("veryComplex"), "high")
        self.assertEqual(priority_for("very_complex"), "high")
        self.assertEqual(priority_for("complex"), "high")
        self.assertEqual(priority_for("medium"), "medium")
        self.assertEqual(priority_for("simple"), "low")

    def test_unknown_complexity_is_medium(self):
        self.assertEqual(priority_for("weird"), "medium")
        self.assertEqual(priority_for(None), "medium")


class DistributeTests(SimpleTestCase):

    def test_empty_template_list(self):
        self.assertEqual(distribute_tasks([], MONDAY, NEXT_FRIDAY, "c1"), [])

    def test_one_instance_per_template_in_order(self):
        templates = make_templates(7)
        tasks = distribute_tasks(templates, MONDAY, NEXT_FRIDAY, "c1")
        self.assertEqual(len(tasks), 7)
        self.assertEqual([t["title"] for t in tasks], [t["title"] for t in templates])
        self.assertEqual([t["id"] for t in tasks], [f"t-c1-{i}" for i in range(7)])

    def test_remainder_front_loaded(self):
        tasks = distribute_tasks(make_templates(11), MONDAY, NEXT_FRIDAY, "c1")
        counts = per_day(tasks)
        self.assertEqual(len(tasks), 11)
        self.assertEqual(counts["2024-01-01"], 2)
        for day in ["2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05",
                    "2024-01-08", "2024-01-09", "2024-01-10", "2024-01-11", "2024-01-12"]:
            self.assertEqual(counts[day], 1, day)

    def test_fewer_tasks_than_workdays(self):
        tasks = distribute_tasks(make_templates(6), MONDAY, NEXT_FRIDAY, "c1")
        self.assertEqual(
            [t["scheduled_date"] for t in tasks],
            ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05", "2024-01-08"],
        )

    def test_never_on_weekend_and_never_before_start(self):
        start = date(2024, 2, 7)  # Wednesday
        tasks = distribute_tasks(make_templates(23), start, date(2024, 2, 20), "c1")
        self.assertEqual(len(tasks), 23)
        for t in tasks:
            day = date.fromisoformat(t["scheduled_date"])
            self.assertLess(day.weekday(), 5)
            self.assertGreaterEqual(day, start)

    def test_start_on_saturday(self):
        tasks = distribute_tasks(make_templates(5), SATURDAY, NEXT_FRIDAY, "c1")
        self.assertEqual(
            [t["scheduled_date"] for t in tasks],
            ["2024-01-08", "2024-01-09", "2024-01-10", "2024-01-11", "2024-01-12"],
        )

    def test_weekend_only_range_moves_to_next_monday(self):
        tasks = distribute_tasks(make_templates(3), SATURDAY, SUNDAY, "c1")
        self.assertEqual(set(per_day(tasks)), {"2024-01-08"})

    def test_instance_fields(self):
        templates = [
            {"title": "Logo", "description": "draft", "complexity": "complex", "type": "development", "dependencies": [0]},
        ]
        task = distribute_tasks(templates, MONDAY, FRIDAY, "abc")[0]
        self.assertEqual(task["id"], "t-abc-0")
        self.assertEqual(task["status"], "not_started")
        self.assertEqual(task["priority"], "high")
        self.assertEqual(task["estimated_hours"], 10.6)
        self.assertEqual(task["actual_hours"], 0)
        self.assertEqual(task["assigned_to"], [])
        self.assertEqual(task["notes"], [])
        self.assertEqual(task["subtasks"], [])
        self.assertEqual(task["client_id"], "abc")
        self.assertEqual(task["due_date"], "2024-01-05")
        self.assertEqual(task["dependencies"], [0])

    def test_task_type_key_is_accepted(self):
        task = distribute_tasks([{"title": "x", "complexity": "simple", "task_type": "research"}], MONDAY, FRIDAY, "c")[0]
        self.assertEqual(task["estimated_hours"], 1.6)
        self.assertEqual(task["task_type"], "research")

    def test_hours_independent_of_distribution(self):
        templates = make_templates(4, complexity="veryComplex", type="delivery")
        short = distribute_tasks(templates, MONDAY, MONDAY, "c")
        long = distribute_tasks(templates, MONDAY, date(2024, 3, 1), "c")
        self.assertEqual([t["estimated_hours"] for t in short], [8.4] * 4)
        self.assertEqual([t["estimated_hours"] for t in long], [8.4] * 4)

    def test_idempotent(self):
        templates = make_templates(9)
        first = distribute_tasks(templates, MONDAY, NEXT_FRIDAY, "c1")
        second = distribute_tasks(templates, MONDAY, NEXT_FRIDAY, "c1")
        self.assertEqual(json.dumps(first), json.dumps(second))

    def test_templates_not_mutated(self):
        templates = make_templates(3)
        snapshot = json.dumps(templates)
        distribute_tasks(templates, MONDAY, NEXT_FRIDAY, "c1")
        self.assertEqual(json.dumps(templates), snapshot)

    def test_iso_strings(self):
        tasks = distribute_tasks(make_templates(2), "2024-01-01", "2024-01-02T00:00:00", "c1")
        self.assertEqual([t["scheduled_date"] for t in tasks], ["2024-01-01", "2024-01-02"])

    def test_invalid_date_raises(self):
        with self.assertRaises(ValueError):
            distribute_tasks(make_templates(2), "not a date", "2024-01-02", "c1")

    def test_inverted_range_puts_everything_on_first_workday(self):
        start = date(2024, 3, 4)  # Monday, well after the deadline
        tasks = distribute_tasks(make_templates(4), start, MONDAY, "c1")
        self.assertEqual(set(per_day(tasks)), {"2024-03-04"})


class ScheduleReportTests(SimpleTestCase):

    def test_meta(self):
        result = schedule_tasks(make_templates(11), MONDAY, NEXT_FRIDAY, "c1")
        self.assertEqual(result["meta"]["workdays"], 10)
        self.assertEqual(result["meta"]["tasks_per_day"], 1)
        self.assertEqual(result["meta"]["remainder"], 1)
        self.assertEqual(result["meta"]["first_date"], "2024-01-01")
        self.assertEqual(result["meta"]["last_date"], "2024-01-12")
        self.assertFalse(result["meta"]["truncated"])
        self.assertEqual(result["unscheduled"], [])

    def test_safety_bound_truncation_is_reported(self):
        start = date(2024, 3, 2)  # Saturday, more than 30 days after the deadline
        with self.assertLogs("studio.scheduling", level="WARNING"):
            result = schedule_tasks(make_templates(3), start, MONDAY, "c1")
        self.assertTrue(result["meta"]["truncated"])
        self.assertEqual(result["tasks"], [])
        self.assertEqual([t["position"] for t in result["unscheduled"]], [0, 1, 2])

    def test_deadline_at_end_of_calendar(self):
        result = schedule_tasks(make_templates(3), date(9999, 12, 30), date.max, "c1")
        self.assertEqual(len(result["tasks"]) + len(result["unscheduled"]), 3)
        for t in result["tasks"]:
            self.assertLessEqual(t["scheduled_date"], "9999-12-31")
        self.assertGreaterEqual(count_workdays(date(9999, 12, 27), date.max), 1)
        self.assertEqual(count_workdays(date.max, date.max), 1)

    def test_safety_bound_truncation_is_silent_in_plain_list(self):
        start = date(2024, 3, 2)
        with self.assertLogs("studio.scheduling", level="WARNING"):
            tasks = distribute_tasks(make_templates(3), start, MONDAY, "c1")
        self.assertEqual(tasks, [])


class CatalogTests(SimpleTestCase):

    def test_catalog_packages(self):
        self.assertEqual(len(PACKAGE_TEMPLATES), 6)
        self.assertEqual(len(get_template("drop-essential")["tasks"]), 11)
        self.assertIsNone(get_template("nope"))

    def test_catalog_schedules_within_default_deadline(self):
        for pkg in PACKAGE_TEMPLATES:
            deadline = date.fromordinal(MONDAY.toordinal() + pkg["default_deadline_days"])
            result = schedule_tasks(pkg["tasks"], MONDAY, deadline, "c")
            self.assertEqual(len(result["tasks"]), len(pkg["tasks"]), pkg["id"])
            self.assertLessEqual(result["meta"]["last_date"], deadline.isoformat(), pkg["id"])


class StudioTestCase(TestCase):

    def setUp(self):
        sync_catalog()

    def create_client(self, **data):
        payload = {
            "name": "James Wilson",
            "email": "james@vervestreet.com",
            "company_name": "Verve Streetwear",
            "package_id": "drop-essential",
            "start_date": "2024-01-01",
            "deadline": "2024-01-12",
        }
        payload.update(data)
        return services.create_client(payload)


class ServiceTests(StudioTestCase):

    def test_sync_catalog_is_repeatable(self):
        sync_catalog()
        self.assertEqual(Package.objects.count(), 6)
        self.assertEqual(Package.objects.get(pk="drop-essential").tasks.count(), 11)

    def test_resync_keeps_task_template_links(self):
        client = self.create_client()
        before = dict(client.tasks.values_list("id", "package_task_id"))
        sync_catalog()
        after = dict(client.tasks.values_list("id", "package_task_id"))
        self.assertEqual(before, after)
        self.assertNotIn(None, after.values())

    def test_resync_drops_removed_positions(self):
        shorter = dict(get_template("drop-essential"))
        shorter["tasks"] = shorter["tasks"][:2]
        sync_catalog([shorter])
        titles = list(Package.objects.get(pk="drop-essential").tasks.order_by("order_number").values_list("title", flat=True))
        self.assertEqual(titles, ["Kickoff briefing", "Moodboard"])

    def test_create_client_schedules_package(self):
        client = self.create_client()
        tasks = list(client.tasks.order_by("scheduled_date", "title"))
        self.assertEqual(len(tasks), 11)
        self.assertEqual(client.actual_price, Decimal("597"))
        self.assertEqual(client.status, "not_started")
        ids = set(client.tasks.values_list("id", flat=True))
        self.assertEqual(ids, {f"t-{client.id}-{i}" for i in range(11)})
        counts = Counter(t.scheduled_date for t in tasks)
        self.assertEqual(counts[MONDAY], 2)
        self.assertTrue(all(t.scheduled_date.weekday() < 5 for t in tasks))
        self.assertTrue(all(t.due_date == NEXT_FRIDAY for t in tasks))
        self.assertTrue(all(t.package_task_id is not None for t in tasks))

        first = Task.objects.get(pk=f"t-{client.id}-1")
        self.assertEqual(first.title, "Moodboard")
        self.assertEqual(first.estimated_hours, 1.6)
        self.assertEqual(first.priority, "low")
        self.assertTrue(ActivityLog.objects.filter(action="client_created", entity_id=str(client.id)).exists())

    def test_default_deadline_and_addon(self):
        client = self.create_client(
            package_id="drop-growth", addon_package_id="brand-starter-identity", deadline=None
        )
        self.assertEqual(client.deadline, date(2024, 1, 15))
        self.assertEqual(client.actual_price, Decimal("1344"))
        self.assertEqual(client.tasks.count(), 15)
        last = Task.objects.get(pk=f"t-{client.id}-14")
        self.assertEqual(last.title, "Final delivery")
        self.assertEqual(last.task_type, "delivery")

    def test_very_complex_stored_with_storage_spelling(self):
        client = self.create_client(package_id="drop-full-launch", deadline="2024-01-22")
        mockups = Task.objects.get(pk=f"t-{client.id}-1")
        self.assertEqual(mockups.complexity, "very_complex")
        self.assertEqual(mockups.priority, "high")
        self.assertEqual(mockups.estimated_hours, 12.0)

    def test_start_after_deadline_rejected(self):
        with self.assertRaises(services.InvalidInput):
            self.create_client(start_date="2024-02-01", deadline="2024-01-12")
        self.assertEqual(Client.objects.count(), 0)

    def test_unknown_package_rejected(self):
        with self.assertRaises(services.InvalidInput):
            self.create_client(package_id="missing")

    def test_truncated_schedule_rolls_back(self):
        truncated = {
            "tasks": [],
            "unscheduled": [{"position": 0, "title": "x"}],
            "meta": {"truncated": True, "workdays": 1},
        }
        with mock.patch("studio.services.schedule_tasks", return_value=truncated):
            with self.assertRaises(services.SchedulingError) as ctx:
                self.create_client()
        self.assertEqual(len(ctx.exception.unscheduled), 1)
        self.assertEqual(Client.objects.count(), 0)
        self.assertEqual(Task.objects.count(), 0)

    def test_task_status_updates_completion(self):
        client = self.create_client()
        task = client.tasks.first()
        services.update_task_status(task, "completed")
        task.refresh_from_db()
        client.refresh_from_db()
        self.assertIsNotNone(task.completed_at)
        self.assertEqual(task.completed_by, "system")
        self.assertEqual(client.completion_percentage, 9)

        services.update_task_status(task, "in_progress")
        task.refresh_from_db()
        client.refresh_from_db()
        self.assertIsNone(task.completed_at)
        self.assertEqual(client.completion_percentage, 0)

    def test_unknown_task_status_rejected(self):
        client = self.create_client()
        with self.assertRaises(services.InvalidInput):
            services.update_task_status(client.tasks.first(), "done-ish")

    def test_complete_client_tasks(self):
        client = self.create_client()
        services.update_task_status(client.tasks.first(), "completed")
        self.assertEqual(services.complete_client_tasks(client), 10)
        client.refresh_from_db()
        self.assertEqual(client.completion_percentage, 100)
        self.assertFalse(client.tasks.exclude(status="completed").exists())

    def test_actual_hours(self):
        client = self.create_client()
        task = client.tasks.first()
        services.log_actual_hours(task, "2.5")
        task.refresh_from_db()
        self.assertEqual(task.actual_hours, 2.5)
        with self.assertRaises(services.InvalidInput):
            services.log_actual_hours(task, -1)

    def test_delete_client_archives_revenue(self):
        client = self.create_client()
        services.delete_client(client)
        self.assertEqual(Client.objects.count(), 0)
        self.assertEqual(Task.objects.count(), 0)
        self.assertEqual(services.archived_revenue(), Decimal("597"))

        other = self.create_client(actual_price="100")
        services.delete_client(other)
        self.assertEqual(services.archived_revenue(), Decimal("697"))

        services.reset_archived_revenue()
        self.assertEqual(services.archived_revenue(), Decimal("0"))

    def test_update_client(self):
        client = self.create_client()
        services.update_client(client, {"status": "in_progress", "actual_price": "650", "deadline": "2024-01-19"})
        client.refresh_from_db()
        self.assertEqual(client.status, "in_progress")
        self.assertEqual(client.actual_price, Decimal("650"))
        self.assertEqual(client.deadline, date(2024, 1, 19))
        with self.assertRaises(services.InvalidInput):
            services.update_client(client, {"status": "paused"})

    def test_moved_deadline_becomes_task_due_date(self):
        client = self.create_client()
        services.update_client(client, {"deadline": "2024-01-26"})
        due = set(client.tasks.values_list("due_date", flat=True))
        self.assertEqual(due, {date(2024, 1, 26)})

    def test_deadline_before_start_rejected(self):
        client = self.create_client()
        with self.assertRaises(services.InvalidInput):
            services.update_client(Client.objects.get(pk=client.pk), {"deadline": "2023-12-29", "name": "Other"})
        client.refresh_from_db()
        self.assertEqual(client.deadline, NEXT_FRIDAY)
        self.assertEqual(client.name, "James Wilson")
        self.assertEqual(set(client.tasks.values_list("due_date", flat=True)), {NEXT_FRIDAY})

    def test_non_finite_numbers_rejected(self):
        client = self.create_client()
        for value in ("NaN", "Infinity", "-Infinity", "1e12"):
            with self.assertRaises(services.InvalidInput):
                services.add_payment(client, {"amount": value})
            with self.assertRaises(services.InvalidInput):
                services.update_client(client, {"actual_price": value})
        with self.assertRaises(services.InvalidInput):
            services.log_actual_hours(client.tasks.first(), "nan")
        with self.assertRaises(services.InvalidInput):
            self.create_client(actual_price="NaN")
        self.assertEqual(client.payments.count(), 0)

    def test_notes_map_display_labels(self):
        client = self.create_client()
        note = services.add_client_note(client, "Prefers earth tones", "Blocker")
        self.assertEqual(note.category, "issue")
        note = services.add_client_note(client, "Weekly call", "communication")
        self.assertEqual(note.category, "communication")
        task_note = services.add_task_note(client.tasks.first(), "Client liked it", "feedback")
        self.assertEqual(task_note.note_type, "client_feedback")
        with self.assertRaises(services.InvalidInput):
            services.add_client_note(client, "   ")

        services.delete_client_note(client, note.pk)
        self.assertEqual(client.notes.count(), 1)
        with self.assertRaises(services.InvalidInput):
            services.delete_client_note(client, note.pk)

    def test_payments(self):
        client = self.create_client()
        payment = services.add_payment(client, {"amount": 300, "status": "partial", "method": "Stripe", "date": "2024-01-02"})
        self.assertEqual(payment.amount, Decimal("300"))
        self.assertEqual(payment.payment_date, date(2024, 1, 2))
        with self.assertRaises(services.InvalidInput):
            services.add_payment(client, {"amount": 0})
        with self.assertRaises(services.InvalidInput):
            services.add_payment(client, {"amount": 10, "status": "lost"})

    def test_recent_activity_newest_first(self):
        client = self.create_client()
        services.add_payment(client, {"amount": 100})
        actions = [a.action for a in services.recent_activity(2)]
        self.assertEqual(actions, ["payment_added", "client_created"])


class MetricsTests(StudioTestCase):

    def test_dashboard_includes_archived_revenue(self):
        kept = self.create_client()
        services.update_client(kept, {"status": "in_progress"})
        services.add_payment(kept, {"amount": 200, "status": "paid"})
        gone = self.create_client(name="Sarah Chen", package_id="drop-growth", deadline="2024-01-19")
        services.delete_client(gone)

        data = metrics.dashboard_metrics(today=MONDAY)
        self.assertEqual(data["total_projects"], 1)
        self.assertEqual(data["running_projects"], 1)
        self.assertEqual(data["total_paid"], 200 + 947)
        self.assertEqual(data["upcoming_deadlines"][0]["days_left"], 11)

    def test_analytics(self):
        a = self.create_client()
        b = self.create_client(name="Sarah Chen", package_id="drop-growth", deadline="2024-01-19")
        services.add_payment(a, {"amount": 597, "status": "paid"})
        services.add_payment(b, {"amount": 500, "status": "partial"})
        services.complete_client_tasks(a)

        data = metrics.analytics(today=date(2024, 1, 10))
        self.assertEqual(data["total_clients"], 2)
        self.assertEqual(data["total_revenue"], 1097)
        self.assertEqual(data["potential_revenue"], 1544)
        self.assertEqual(data["total_tasks"], 20)
        self.assertEqual(data["completed_tasks"], 11)
        self.assertEqual(data["task_completion_rate"], 55)
        self.assertEqual(data["package_distribution"], {"DROP ESSENTIAL": 1, "DROP GROWTH": 1})
        self.assertEqual(data["revenue_by_package"]["DROP GROWTH"], 500)
        # only the Jan 12 deadline falls inside the next 7 days
        self.assertEqual(data["upcoming_deadlines"], 1)
        self.assertEqual(data["avg_project_value"], 772)

    def test_client_overview(self):
        client = self.create_client()
        services.update_task_status(client.tasks.first(), "completed")
        services.add_payment(client, {"amount": 100})
        services.add_payment(client, {"amount": 50})
        row = metrics.client_overview(client)
        self.assertEqual(row["total_tasks"], 11)
        self.assertEqual(row["completed_tasks"], 1)
        self.assertEqual(row["active_tasks"], 10)
        self.assertEqual(row["total_paid"], 150)
        self.assertEqual(row["package_name"], "DROP ESSENTIAL")
        self.assertEqual(row["package_id"], "drop-essential")

    def test_calendar(self):
        client = self.create_client()
        day = metrics.calendar_events(MONDAY)
        self.assertEqual(len(day["tasks"]), 2)
        self.assertEqual(metrics.calendar_events(NEXT_FRIDAY)["deadlines"][0]["id"], str(client.id))

        services.update_task_status(Task.objects.get(pk=f"t-{client.id}-0"), "completed")
        self.assertEqual(len(metrics.calendar_events(MONDAY)["tasks"]), 1)

        month = metrics.calendar_month(2024, 1)
        self.assertEqual(month["2024-01-01"], {"tasks": 1, "deadlines": 0})
        self.assertEqual(month["2024-01-12"], {"tasks": 1, "deadlines": 1})
        self.assertNotIn("2024-01-06", month)

    def test_task_board_puts_completed_last(self):
        client = self.create_client()
        first_id = f"t-{client.id}-0"
        services.update_task_status(Task.objects.get(pk=first_id), "completed")
        board = metrics.task_board()
        self.assertEqual(len(board), 1)
        self.assertEqual(board[0]["tasks"][-1]["id"], first_id)
        self.assertEqual(board[0]["completed_count"], 1)
        self.assertEqual(board[0]["pending_count"], 10)


class ChangeFeedTests(SimpleTestCase):

    def test_subscribe_publish_unsubscribe(self):
        change_feed = ChangeFeed()
        received = []
        sub = change_feed.subscribe("tasks", received.append)
        event = ChangeEvent("tasks", INSERT, new={"id": "t-1"})
        self.assertEqual(change_feed.publish(event), 1)
        self.assertEqual(change_feed.publish(ChangeEvent("clients", INSERT, new={"id": "c"})), 0)
        self.assertTrue(change_feed.unsubscribe(sub))
        self.assertFalse(change_feed.unsubscribe(sub))
        change_feed.publish(event)
        self.assertEqual(received, [event])

    def test_event_filter(self):
        change_feed = ChangeFeed()
        received = []
        change_feed.subscribe("activity_log", received.append, events=[INSERT])
        change_feed.publish(ChangeEvent("activity_log", UPDATE, new={"id": 1}))
        change_feed.publish(ChangeEvent("activity_log", INSERT, new={"id": 2}))
        self.assertEqual([e.new["id"] for e in received], [2])
        with self.assertRaises(ValueError):
            change_feed.subscribe("tasks", received.append, events=["UPSERT"])

    def test_failing_subscriber_does_not_block_others(self):
        change_feed = ChangeFeed()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        change_feed.subscribe("tasks", broken)
        change_feed.subscribe("tasks", received.append)
        with self.assertLogs("studio.realtime", level="ERROR"):
            delivered = change_feed.publish(ChangeEvent("tasks", DELETE, old={"id": "t"}))
        self.assertEqual(delivered, 1)
        self.assertEqual(len(received), 1)

    def test_cache_applies_events(self):
        cache = DashboardCache(ChangeFeed())
        cache.load(clients=[{"id": "c1"}], tasks=[{"id": "t1", "client_id": "c1", "scheduled_date": "2024-01-01"}])
        cache.apply(ChangeEvent("tasks", INSERT, new={"id": "t2", "client_id": "c1", "scheduled_date": "2024-01-02"}))
        cache.apply(ChangeEvent("tasks", UPDATE, new={"id": "t1", "client_id": "c1", "scheduled_date": "2024-01-03"}))
        self.assertEqual([t["id"] for t in cache.tasks_for_client("c1")], ["t2", "t1"])
        cache.apply(ChangeEvent("clients", DELETE, old={"id": "c1"}))
        self.assertEqual(cache.clients, {})
        self.assertEqual(cache.tasks, {})

    def test_cache_caps_activity(self):
        cache = DashboardCache(ChangeFeed())
        for i in range(60):
            cache.apply(ChangeEvent("activity_log", INSERT, new={"id": i}))
        self.assertEqual(len(cache.activity), 50)
        self.assertEqual(cache.activity[0]["id"], 59)


class RealtimeIntegrationTests(StudioTestCase):

    def setUp(self):
        super().setUp()
        self.events = []
        for table in ("clients", "tasks"):
            sub = feed.subscribe(table, self.events.append)
            self.addCleanup(feed.unsubscribe, sub)

    def test_create_client_publishes_inserts_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            client = self.create_client()
        inserts = [e for e in self.events if e.event_type == INSERT]
        self.assertEqual(sum(1 for e in inserts if e.table == "clients"), 1)
        task_ids = [e.new["id"] for e in inserts if e.table == "tasks"]
        self.assertEqual(task_ids, [f"t-{client.id}-{i}" for i in range(11)])

    def test_cache_follows_database(self):
        cache = DashboardCache()
        cache.attach()
        self.addCleanup(cache.detach)

        with self.captureOnCommitCallbacks(execute=True):
            client = self.create_client()
        self.assertIn(str(client.id), cache.clients)
        self.assertEqual(len(cache.tasks_for_client(str(client.id))), 11)
        self.assertEqual(cache.activity[0]["entity_id"], str(client.id))

        with self.captureOnCommitCallbacks(execute=True):
            services.update_task_status(Task.objects.get(pk=f"t-{client.id}-0"), "completed")
        self.assertEqual(cache.tasks[f"t-{client.id}-0"]["status"], "completed")

        with self.captureOnCommitCallbacks(execute=True):
            services.delete_client(Client.objects.get(pk=client.pk))
        self.assertEqual(cache.clients, {})
        self.assertEqual(cache.tasks, {})


class ApiTests(StudioTestCase):

    def post_json(self, url, body):
        return self.client.post(url, data=json.dumps(body), content_type="application/json")

    def patch_json(self, url, body):
        return self.client.patch(url, data=json.dumps(body), content_type="application/json")

    def create_via_api(self, **extra):
        body = {
            "name": "James Wilson",
            "email": "james@vervestreet.com",
            "package_id": "drop-essential",
            "start_date": "2024-01-01",
            "deadline": "2024-01-12",
        }
        body.update(extra)
        return self.post_json("/api/clients/", body)

    def test_schedule_preview(self):
        res = self.post_json(
            "/api/schedule/preview/",
            {"tasks": make_templates(11), "start_date": "2024-01-01", "deadline": "2024-01-12", "client_id": "c9"},
        )
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual(len(data["tasks"]), 11)
        self.assertEqual(data["tasks"][1]["scheduled_date"], "2024-01-01")
        self.assertEqual(data["meta"]["workdays"], 10)

    def test_schedule_preview_from_package(self):
        res = self.post_json(
            "/api/schedule/preview/", {"package_id": "drop-growth", "start_date": "2024-01-01", "deadline": "2024-01-15"}
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.json()["tasks"]), 9)

    def test_schedule_preview_errors(self):
        self.assertEqual(self.client.get("/api/schedule/preview/").status_code, 400)
        res = self.client.post("/api/schedule/preview/", data="{nope", content_type="application/json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "invalid json")
        res = self.post_json("/api/schedule/preview/", {"tasks": "x", "deadline": "2024-01-12"})
        self.assertEqual(res.json()["error"], "tasks must be a list")
        res = self.post_json("/api/schedule/preview/", {"tasks": [], "deadline": "someday"})
        self.assertEqual(res.json()["error"], "invalid dates")

    def test_packages(self):
        res = self.client.get("/api/packages/")
        packages = res.json()["packages"]
        self.assertEqual(len(packages), 6)
        self.assertEqual(packages[0]["id"], "brand-starter-identity")
        self.assertNotIn("slug", packages[0])

    def test_client_lifecycle(self):
        res = self.create_via_api()
        self.assertEqual(res.status_code, 201)
        client_id = res.json()["client"]["id"]
        self.assertEqual(len(res.json()["tasks"]), 11)

        rows = self.client.get("/api/clients/").json()["clients"]
        self.assertEqual(rows[0]["total_tasks"], 11)

        task_id = f"t-{client_id}-0"
        res = self.patch_json(f"/api/tasks/{task_id}/", {"status": "completed", "actual_hours": 1.5})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["task"]["status"], "completed")
        self.assertEqual(res.json()["task"]["actual_hours"], 1.5)

        detail = self.client.get(f"/api/clients/{client_id}/").json()
        self.assertEqual(detail["client"]["completion_percentage"], 9)
        self.assertEqual(len(detail["tasks"]), 11)

        res = self.patch_json(f"/api/clients/{client_id}/", {"status": "in_progress"})
        self.assertEqual(res.json()["client"]["status"], "in_progress")

        res = self.post_json(f"/api/clients/{client_id}/payments/", {"amount": 297, "status": "partial"})
        self.assertEqual(res.status_code, 201)

        res = self.post_json(f"/api/clients/{client_id}/complete-tasks/", {})
        self.assertEqual(res.json(), {"completed": 10, "completion_percentage": 100})

        res = self.client.delete(f"/api/clients/{client_id}/")
        self.assertEqual(res.json()["archived_revenue"], 597.0)

        metrics_data = self.client.get("/api/metrics/dashboard/").json()
        self.assertEqual(metrics_data["total_projects"], 0)
        self.assertEqual(metrics_data["total_paid"], 597.0)

        self.post_json("/api/revenue/reset/", {})
        self.assertEqual(self.client.get("/api/metrics/dashboard/").json()["total_paid"], 0.0)

    def test_invalid_client_rejected(self):
        res = self.create_via_api(start_date="2024-02-01")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "invalid client")

    def test_missing_rows(self):
        self.assertEqual(self.client.get("/api/clients/00000000-0000-0000-0000-000000000000/").status_code, 404)
        self.assertEqual(self.client.get("/api/tasks/t-missing-0/").status_code, 404)
        self.assertEqual(self.client.get("/api/tasks/?client=not-a-uuid").status_code, 404)

    def test_notes(self):
        client_id = self.create_via_api().json()["client"]["id"]
        res = self.post_json(f"/api/clients/{client_id}/notes/", {"content": "Earth tones", "category": "preference"})
        self.assertEqual(res.status_code, 201)
        note_id = res.json()["note"]["id"]
        res = self.post_json(f"/api/tasks/t-{client_id}-0/notes/", {"content": "Started", "category": "update"})
        self.assertEqual(res.json()["note"]["category"], "progress")
        task = self.client.get(f"/api/tasks/t-{client_id}-0/").json()["task"]
        self.assertEqual(len(task["notes"]), 1)
        self.assertEqual(self.client.delete(f"/api/clients/{client_id}/notes/{note_id}/").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/clients/{client_id}/notes/{note_id}/").status_code, 404)

    def test_schedule_preview_at_end_of_calendar(self):
        res = self.post_json(
            "/api/schedule/preview/",
            {"tasks": [{"title": "x"}], "start_date": "9999-12-30", "deadline": "9999-12-31"},
        )
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual(len(data["tasks"]) + len(data["unscheduled"]), 1)

    def test_non_finite_amounts_rejected(self):
        client_id = self.create_via_api().json()["client"]["id"]
        for amount in ("NaN", "Infinity"):
            res = self.post_json(f"/api/clients/{client_id}/payments/", {"amount": amount})
            self.assertEqual(res.status_code, 400)
            self.assertEqual(res.json()["error"], "invalid payment")
        res = self.create_via_api(actual_price="NaN")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "invalid client")
        res = self.patch_json(f"/api/clients/{client_id}/", {"actual_price": "Infinity"})
        self.assertEqual(res.status_code, 400)

    def test_task_patch_is_all_or_nothing(self):
        client_id = self.create_via_api().json()["client"]["id"]
        task_id = f"t-{client_id}-0"
        res = self.patch_json(f"/api/tasks/{task_id}/", {"actual_hours": 7, "status": "bogus"})
        self.assertEqual(res.status_code, 400)
        task = Task.objects.get(pk=task_id)
        self.assertEqual(task.actual_hours, 0)
        self.assertEqual(task.status, "not_started")
        self.assertFalse(ActivityLog.objects.filter(action="task_hours_logged").exists())

    def test_client_deadline_patch(self):
        client_id = self.create_via_api().json()["client"]["id"]
        res = self.patch_json(f"/api/clients/{client_id}/", {"deadline": "2023-12-01"})
        self.assertEqual(res.status_code, 400)
        res = self.patch_json(f"/api/clients/{client_id}/", {"deadline": "2024-01-19"})
        self.assertEqual(res.status_code, 200)
        task = self.client.get(f"/api/tasks/t-{client_id}-3/").json()["task"]
        self.assertEqual(task["due_date"], "2024-01-19")

    def test_task_patch_requires_fields(self):
        client_id = self.create_via_api().json()["client"]["id"]
        res = self.patch_json(f"/api/tasks/t-{client_id}-0/", {"title": "x"})
        self.assertEqual(res.status_code, 400)
        res = self.patch_json(f"/api/tasks/t-{client_id}-0/", {"status": "finished"})
        self.assertEqual(res.json()["error"], "invalid update")

    def test_read_endpoints(self):
        client_id = self.create_via_api().json()["client"]["id"]
        tasks = self.client.get(f"/api/tasks/?client={client_id}").json()["tasks"]
        self.assertEqual([t["scheduled_date"] for t in tasks][:2], ["2024-01-01", "2024-01-01"])
        board = self.client.get("/api/tasks/board/").json()["board"]
        self.assertEqual(board[0]["total_count"], 11)
        day = self.client.get("/api/calendar/?date=2024-01-12").json()
        self.assertEqual(len(day["deadlines"]), 1)
        month = self.client.get("/api/calendar/?month=2024-01").json()
        self.assertEqual(month["days"]["2024-01-01"]["tasks"], 2)
        self.assertEqual(self.client.get("/api/calendar/?date=nope").status_code, 400)
        activity = self.client.get("/api/activity/?limit=5").json()["activity"]
        self.assertEqual(activity[0]["entity_id"], client_id)
        self.assertEqual(self.client.get("/api/team/").json(), {"team": []})
        self.assertEqual(self.client.get("/api/metrics/analytics/").json()["total_tasks"], 11)
