"""
Change notifications for studio tables.

Model signals are turned into INSERT / UPDATE / DELETE events and delivered to
in-process subscribers once the surrounding transaction commits. The payload of
an event is the serialized row, so subscribers never touch the ORM.

DashboardCache is the consumer side: a local copy of clients, tasks and recent
activity kept fresh by applying events.
"""
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import ActivityLog, Client, ClientNote, Payment, Task, TaskNote
from .serializers import instance_to_dict

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
EVENT_TYPES = (INSERT, UPDATE, DELETE)

TABLES = {
    Client: "clients",
    Task: "tasks",
    Payment: "payments",
    ActivityLog: "activity_log",
    ClientNote: "client_notes",
    TaskNote: "task_notes",
}


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str
    new: dict | None = None
    old: dict | None = None


@dataclass(eq=False)
class Subscription:
    table: str
    callback: object
    events: frozenset = field(default_factory=lambda: frozenset(EVENT_TYPES))

    def wants(self, event):
        return event.table == self.table and event.event_type in self.events


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions = defaultdict(list)

    def subscribe(self, table, callback, events=None):
        events = frozenset(events or EVENT_TYPES)
        unknown = events - set(EVENT_TYPES)
        if unknown:
            raise ValueError(f"unknown event types: {sorted(unknown)}")
        sub = Subscription(table=table, callback=callback, events=events)
        with self._lock:
            self._subscriptions[table].append(sub)
        logger.debug("subscribed to %s (%s)", table, ",".join(sorted(events)))
        return sub

    def unsubscribe(self, subscription):
        with self._lock:
            subs = self._subscriptions.get(subscription.table, [])
            if subscription in subs:
                subs.remove(subscription)
                return True
        return False

    def subscribers(self, table):
        with self._lock:
            return list(self._subscriptions.get(table, []))

    def publish(self, event):
        """Deliver to every matching subscriber. Returns how many were called."""
        delivered = 0
        for sub in self.subscribers(event.table):
            if not sub.wants(event):
                continue
            try:
                sub.callback(event)
                delivered += 1
            except Exception:
                logger.exception("subscriber failed table=%s event=%s", event.table, event.event_type)
        return delivered


feed = ChangeFeed()


def _emit(table, event_type, new=None, old=None):
    event = ChangeEvent(table=table, event_type=event_type, new=new, old=old)
    transaction.on_commit(lambda: feed.publish(event))


@receiver(post_save)
def _on_save(sender, instance, created, raw=False, **kwargs):
    table = TABLES.get(sender)
    if table is None or raw:
        return
    row = instance_to_dict(instance)
    if created:
        _emit(table, INSERT, new=row)
    else:
        _emit(table, UPDATE, new=row, old={"id": row.get("id")})


@receiver(post_delete)
def _on_delete(sender, instance, **kwargs):
    table = TABLES.get(sender)
    if table is None:
        return
    _emit(table, DELETE, old=instance_to_dict(instance))


def notify_bulk_insert(instances):
    """Publish INSERT events for rows written with bulk_create."""
    for instance in instances:
        table = TABLES.get(type(instance))
        if table is not None:
            _emit(table, INSERT, new=instance_to_dict(instance))


class DashboardCache:
    """Local copy of clients, tasks and recent activity, fed by ChangeFeed."""

    activity_limit = 50

    def __init__(self, change_feed=None):
        self.feed = change_feed or feed
        self.clients = {}
        self.tasks = {}
        self.activity = []
        self._subscriptions = []

    def load(self, clients=(), tasks=(), activity=()):
        self.clients = {c["id"]: c for c in clients}
        self.tasks = {t["id"]: t for t in tasks}
        self.activity = list(activity)[: self.activity_limit]

    def attach(self):
        if self._subscriptions:
            return
        self._subscriptions = [
            self.feed.subscribe("clients", self.apply),
            self.feed.subscribe("tasks", self.apply),
            self.feed.subscribe("activity_log", self.apply, events=[INSERT]),
        ]

    def detach(self):
        for sub in self._subscriptions:
            self.feed.unsubscribe(sub)
        self._subscriptions = []

    def apply(self, event):
        if event.table == "clients":
            self._apply_row(self.clients, event)
            if event.event_type == DELETE and event.old:
                # tasks cascade with their client
                client_id = event.old["id"]
                self.tasks = {k: t for k, t in self.tasks.items() if t.get("client_id") != client_id}
        elif event.table == "tasks":
            self._apply_row(self.tasks, event)
        elif event.table == "activity_log" and event.event_type == INSERT:
            self.activity = [event.new] + self.activity[: self.activity_limit - 1]

    @staticmethod
    def _apply_row(rows, event):
        if event.event_type in (INSERT, UPDATE) and event.new:
            rows[event.new["id"]] = event.new
        elif event.event_type == DELETE and event.old:
            rows.pop(event.old["id"], None)

    def tasks_for_client(self, client_id):
        return sorted(
            (t for t in self.tasks.values() if t.get("client_id") == client_id),
            key=lambda t: (t["scheduled_date"], t["id"]),
        )
