import uuid

from django.conf import settings
from django.db import models

from .choices import (
    ClientNoteCategory,
    Complexity,
    EntityType,
    PackageCategory,
    PaymentStatus,
    Priority,
    ProjectStatus,
    TaskNoteType,
    TaskStatus,
    TaskType,
    TeamRole,
)


class Package(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    price_min = models.DecimalField(max_digits=10, decimal_places=2)
    price_max = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    estimated_hours = models.FloatField(default=0)
    default_duration_days = models.PositiveIntegerField(default=14)
    is_addon = models.BooleanField(default=False)
    category = models.CharField(max_length=20, choices=PackageCategory.choices, default=PackageCategory.MAIN)
    active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["price_min"]

    def __str__(self):
        return self.name


class PackageTask(models.Model):
    package = models.ForeignKey(Package, on_delete=models.CASCADE, related_name="tasks")
    order_number = models.PositiveIntegerField()
    title = models.CharField(max_length=400)
    description = models.TextField(blank=True, default="")
    estimated_hours = models.FloatField(default=0)
    task_type = models.CharField(max_length=20, choices=TaskType.choices, default=TaskType.DESIGN)
    complexity = models.CharField(max_length=20, choices=Complexity.choices, default=Complexity.MEDIUM)
    dependencies = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["package_id", "order_number"]
        unique_together = [("package", "order_number")]

    def __str__(self):
        return self.title

    def as_template(self):
        """Shape read by the scheduler."""
        return {
            "title": self.title,
            "description": self.description,
            "complexity": self.complexity,
            "type": self.task_type,
            "dependencies": self.dependencies or [],
            "package_task_id": self.pk,
        }


class Client(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=50, null=True, blank=True)
    instagram_handle = models.CharField(max_length=100, null=True, blank=True)
    company_name = models.CharField(max_length=200, null=True, blank=True)
    package = models.ForeignKey(Package, on_delete=models.PROTECT, related_name="clients")
    addon_package = models.ForeignKey(
        Package, on_delete=models.PROTECT, related_name="addon_clients", null=True, blank=True
    )
    actual_price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=ProjectStatus.choices, default=ProjectStatus.NOT_STARTED)
    start_date = models.DateField(null=True, blank=True)
    deadline = models.DateField()
    completion_percentage = models.PositiveSmallIntegerField(default=0)
    created_by = models.CharField(max_length=150, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.name


class Task(models.Model):
    # t-<client id>-<position>, assigned by the scheduler
    id = models.CharField(max_length=80, primary_key=True)
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="tasks")
    package_task = models.ForeignKey(PackageTask, on_delete=models.SET_NULL, null=True, blank=True)
    title = models.CharField(max_length=400)
    description = models.TextField(blank=True, default="")
    estimated_hours = models.FloatField(default=0)
    actual_hours = models.FloatField(default=0)
    task_type = models.CharField(max_length=20, choices=TaskType.choices, null=True, blank=True)
    complexity = models.CharField(max_length=20, choices=Complexity.choices, default=Complexity.MEDIUM)
    scheduled_date = models.DateField()
    due_date = models.DateField()
    status = models.CharField(max_length=20, choices=TaskStatus.choices, default=TaskStatus.NOT_STARTED)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    assigned_to = models.JSONField(default=list, blank=True)
    dependencies = models.JSONField(null=True, blank=True)
    subtasks = models.JSONField(default=list, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.CharField(max_length=150, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["scheduled_date", "id"]

    def __str__(self):
        return self.title

    @property
    def is_completed(self):
        return self.status == TaskStatus.COMPLETED


class TaskNote(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="notes")
    content = models.TextField()
    author_id = models.CharField(max_length=150)
    author_name = models.CharField(max_length=200)
    note_type = models.CharField(max_length=20, choices=TaskNoteType.choices, default=TaskNoteType.PROGRESS)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]


class ClientNote(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="notes")
    content = models.TextField()
    author_id = models.CharField(max_length=150)
    author_name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=ClientNoteCategory.choices, default=ClientNoteCategory.GENERAL)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]


class Payment(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="payments")
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_date = models.DateField()
    payment_method = models.CharField(max_length=50, null=True, blank=True)
    invoice_number = models.CharField(max_length=50, null=True, blank=True)
    status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    notes = models.TextField(null=True, blank=True)
    recorded_by = models.CharField(max_length=150, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-payment_date", "-id"]

    def __str__(self):
        return f"{self.invoice_number or self.pk}: {self.amount}"


class ActivityLog(models.Model):
    user_id = models.CharField(max_length=150)
    user_name = models.CharField(max_length=200)
    action = models.CharField(max_length=100)
    entity_type = models.CharField(max_length=20, choices=EntityType.choices)
    entity_id = models.CharField(max_length=80)
    description = models.TextField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.user_name} {self.action} {self.entity_type}:{self.entity_id}"


def _default_preferences():
    return {"notifications": True, "email_digest": "daily"}


class UserProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    full_name = models.CharField(max_length=200, null=True, blank=True)
    role = models.CharField(max_length=20, choices=TeamRole.choices, default=TeamRole.DESIGNER)
    avatar_url = models.URLField(null=True, blank=True)
    online = models.BooleanField(default=False)
    last_active = models.DateTimeField(auto_now=True)
    preferences = models.JSONField(default=_default_preferences)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["full_name"]

    def __str__(self):
        return self.full_name or str(self.user)


class ArchivedRevenue(models.Model):
    """Running total of the price of deleted clients. Single row, pk=1."""

    amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj
