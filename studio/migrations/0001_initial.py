import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import studio.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(max_length=150)),
                ("user_name", models.CharField(max_length=200)),
                ("action", models.CharField(max_length=100)),
                (
                    "entity_type",
                    models.CharField(
                        choices=[("client", "Client"), ("task", "Task"), ("payment", "Payment"), ("note", "Note")],
                        max_length=20,
                    ),
                ),
                ("entity_id", models.CharField(max_length=80)),
                ("description", models.TextField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="ArchivedRevenue",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="Package",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("price_min", models.DecimalField(decimal_places=2, max_digits=10)),
                ("price_max", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("estimated_hours", models.FloatField(default=0)),
                ("default_duration_days", models.PositiveIntegerField(default=14)),
                ("is_addon", models.BooleanField(default=False)),
                (
                    "category",
                    models.CharField(
                        choices=[("main", "Main"), ("branding", "Branding"), ("bundle", "Bundle")],
                        default="main",
                        max_length=20,
                    ),
                ),
                ("active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["price_min"],
            },
        ),
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(max_length=254)),
                ("phone", models.CharField(blank=True, max_length=50, null=True)),
                ("instagram_handle", models.CharField(blank=True, max_length=100, null=True)),
                ("company_name", models.CharField(blank=True, max_length=200, null=True)),
                ("actual_price", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("not_started", "Not started"),
                            ("in_progress", "Active"),
                            ("completed", "Completed"),
                            ("archived", "Archived"),
                        ],
                        default="not_started",
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateField(blank=True, null=True)),
                ("deadline", models.DateField()),
                ("completion_percentage", models.PositiveSmallIntegerField(default=0)),
                ("created_by", models.CharField(blank=True, max_length=150, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "addon_package",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="addon_clients",
                        to="studio.package",
                    ),
                ),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="clients",
                        to="studio.package",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ClientNote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content", models.TextField()),
                ("author_id", models.CharField(max_length=150)),
                ("author_name", models.CharField(max_length=200)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("preference", "Preference"),
                            ("communication", "Communication"),
                            ("feedback", "Feedback"),
                            ("issue", "Issue"),
                            ("general", "General"),
                        ],
                        default="general",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notes",
                        to="studio.client",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="PackageTask",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_number", models.PositiveIntegerField()),
                ("title", models.CharField(max_length=400)),
                ("description", models.TextField(blank=True, default="")),
                ("estimated_hours", models.FloatField(default=0)),
                (
                    "task_type",
                    models.CharField(
                        choices=[
                            ("research", "Research"),
                            ("design", "Design"),
                            ("development", "Development"),
                            ("testing", "Testing"),
                            ("strategy", "Strategy"),
                            ("delivery", "Delivery"),
                            ("filming", "Filming"),
                            ("content", "Content"),
                            ("mockup", "Mockup"),
                            ("editing", "Editing"),
                            ("review", "Review"),
                        ],
                        default="design",
                        max_length=20,
                    ),
                ),
                (
                    "complexity",
                    models.CharField(
                        choices=[
                            ("simple", "Simple"),
                            ("medium", "Medium"),
                            ("complex", "Complex"),
                            ("very_complex", "Very complex"),
                        ],
                        default="medium",
                        max_length=20,
                    ),
                ),
                ("dependencies", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="studio.package",
                    ),
                ),
            ],
            options={
                "ordering": ["package_id", "order_number"],
                "unique_together": {("package", "order_number")},
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("payment_date", models.DateField()),
                ("payment_method", models.CharField(blank=True, max_length=50, null=True)),
                ("invoice_number", models.CharField(blank=True, max_length=50, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("paid", "Paid"),
                            ("partial", "Partial"),
                            ("pending", "Pending"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, null=True)),
                ("recorded_by", models.CharField(blank=True, max_length=150, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="studio.client",
                    ),
                ),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Task",
            fields=[
                ("id", models.CharField(max_length=80, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=400)),
                ("description", models.TextField(blank=True, default="")),
                ("estimated_hours", models.FloatField(default=0)),
                ("actual_hours", models.FloatField(default=0)),
                (
                    "task_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("research", "Research"),
                            ("design", "Design"),
                            ("development", "Development"),
                            ("testing", "Testing"),
                            ("strategy", "Strategy"),
                            ("delivery", "Delivery"),
                            ("filming", "Filming"),
                            ("content", "Content"),
                            ("mockup", "Mockup"),
                            ("editing", "Editing"),
                            ("review", "Review"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "complexity",
                    models.CharField(
                        choices=[
                            ("simple", "Simple"),
                            ("medium", "Medium"),
                            ("complex", "Complex"),
                            ("very_complex", "Very complex"),
                        ],
                        default="medium",
                        max_length=20,
                    ),
                ),
                ("scheduled_date", models.DateField()),
                ("due_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("not_started", "Not started"),
                            ("in_research", "In research"),
                            ("in_progress", "In progress"),
                            ("on_track", "On track"),
                            ("completed", "Completed"),
                            ("blocked", "Blocked"),
                        ],
                        default="not_started",
                        max_length=20,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("urgent", "Urgent")],
                        default="medium",
                        max_length=10,
                    ),
                ),
                ("assigned_to", models.JSONField(blank=True, default=list)),
                ("dependencies", models.JSONField(blank=True, null=True)),
                ("subtasks", models.JSONField(blank=True, default=list)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("completed_by", models.CharField(blank=True, max_length=150, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="studio.client",
                    ),
                ),
                (
                    "package_task",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to="studio.packagetask",
                    ),
                ),
            ],
            options={
                "ordering": ["scheduled_date", "id"],
            },
        ),
        migrations.CreateModel(
            name="TaskNote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content", models.TextField()),
                ("author_id", models.CharField(max_length=150)),
                ("author_name", models.CharField(max_length=200)),
                (
                    "note_type",
                    models.CharField(
                        choices=[
                            ("progress", "Progress"),
                            ("blocker", "Blocker"),
                            ("decision", "Decision"),
                            ("handoff", "Handoff"),
                            ("client_feedback", "Client feedback"),
                        ],
                        default="progress",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notes",
                        to="studio.task",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("full_name", models.CharField(blank=True, max_length=200, null=True)),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("designer", "Designer"),
                            ("content_creator", "Content Creator"),
                            ("manager", "Manager"),
                            ("admin", "Admin"),
                        ],
                        default="designer",
                        max_length=20,
                    ),
                ),
                ("avatar_url", models.URLField(blank=True, null=True)),
                ("online", models.BooleanField(default=False)),
                ("last_active", models.DateTimeField(auto_now=True)),
                ("preferences", models.JSONField(default=studio.models._default_preferences)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["full_name"],
            },
        ),
    ]
