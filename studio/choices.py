from django.db import models


class Complexity(models.TextChoices):
    SIMPLE = "simple", "Simple"
    MEDIUM = "medium", "Medium"
    COMPLEX = "complex", "Complex"
    VERY_COMPLEX = "very_complex", "Very complex"


class TaskType(models.TextChoices):
    RESEARCH = "research", "Research"
    DESIGN = "design", "Design"
    DEVELOPMENT = "development", "Development"
    TESTING = "testing", "Testing"
    STRATEGY = "strategy", "Strategy"
    DELIVERY = "delivery", "Delivery"
    FILMING = "filming", "Filming"
    CONTENT = "content", "Content"
    MOCKUP = "mockup", "Mockup"
    EDITING = "editing", "Editing"
    REVIEW = "review", "Review"


class TaskStatus(models.TextChoices):
    NOT_STARTED = "not_started", "Not started"
    IN_RESEARCH = "in_research", "In research"
    IN_PROGRESS = "in_progress", "In progress"
    ON_TRACK = "on_track", "On track"
    COMPLETED = "completed", "Completed"
    BLOCKED = "blocked", "Blocked"


class Priority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


class ProjectStatus(models.TextChoices):
    NOT_STARTED = "not_started", "Not started"
    IN_PROGRESS = "in_progress", "Active"
    COMPLETED = "completed", "Completed"
    ARCHIVED = "archived", "Archived"


class PaymentStatus(models.TextChoices):
    PAID = "paid", "Paid"
    PARTIAL = "partial", "Partial"
    PENDING = "pending", "Pending"
    REFUNDED = "refunded", "Refunded"


class PackageCategory(models.TextChoices):
    MAIN = "main", "Main"
    BRANDING = "branding", "Branding"
    BUNDLE = "bundle", "Bundle"


class ClientNoteCategory(models.TextChoices):
    PREFERENCE = "preference", "Preference"
    COMMUNICATION = "communication", "Communication"
    FEEDBACK = "feedback", "Feedback"
    ISSUE = "issue", "Issue"
    GENERAL = "general", "General"


class TaskNoteType(models.TextChoices):
    PROGRESS = "progress", "Progress"
    BLOCKER = "blocker", "Blocker"
    DECISION = "decision", "Decision"
    HANDOFF = "handoff", "Handoff"
    CLIENT_FEEDBACK = "client_feedback", "Client feedback"


class EntityType(models.TextChoices):
    CLIENT = "client", "Client"
    TASK = "task", "Task"
    PAYMENT = "payment", "Payment"
    NOTE = "note", "Note"


class TeamRole(models.TextChoices):
    DESIGNER = "designer", "Designer"
    CONTENT_CREATOR = "content_creator", "Content Creator"
    MANAGER = "manager", "Manager"
    ADMIN = "admin", "Admin"


# Note labels shown by the dashboard map onto both storage vocabularies.
NOTE_LABEL_TO_CLIENT_CATEGORY = {
    "update": ClientNoteCategory.GENERAL,
    "blocker": ClientNoteCategory.ISSUE,
    "decision": ClientNoteCategory.GENERAL,
    "handoff": ClientNoteCategory.GENERAL,
    "feedback": ClientNoteCategory.FEEDBACK,
    "preference": ClientNoteCategory.PREFERENCE,
    "communication": ClientNoteCategory.COMMUNICATION,
    "issue": ClientNoteCategory.ISSUE,
    "general": ClientNoteCategory.GENERAL,
}

NOTE_LABEL_TO_TASK_NOTE_TYPE = {
    "update": TaskNoteType.PROGRESS,
    "blocker": TaskNoteType.BLOCKER,
    "decision": TaskNoteType.DECISION,
    "handoff": TaskNoteType.HANDOFF,
    "feedback": TaskNoteType.CLIENT_FEEDBACK,
    "preference": TaskNoteType.PROGRESS,
    "communication": TaskNoteType.PROGRESS,
    "issue": TaskNoteType.BLOCKER,
    "general": TaskNoteType.PROGRESS,
}
