"""
Built-in service packages offered by the studio.

Each package carries an ordered list of task templates; the order is the order
in which the scheduler lays tasks out on the calendar.
"""
import logging

from django.db import transaction

logger = logging.getLogger(__name__)


def _task(title, description, base_hours, complexity, task_type):
    return {
        "title": title,
        "description": description,
        "base_hours": base_hours,
        "complexity": complexity,
        "type": task_type,
    }


PACKAGE_TEMPLATES = [
    {
        "id": "drop-essential",
        "name": "DROP ESSENTIAL",
        "description": "For brands launching their first drop or testing a new idea.",
        "price": 597,
        "default_deadline_days": 10,
        "category": "main",
        "tasks": [
            _task("Kickoff briefing", "Call with the client", 1, "simple", "strategy"),
            _task("Moodboard", "Visual research", 1, "simple", "research"),
            _task("Graphic design", "Design creation", 3, "medium", "design"),
            _task("Client review", "Feedback round", 1, "simple", "strategy"),
            _task("Front mockup", "Front view mockup", 1.5, "medium", "design"),
            _task("Back mockup", "Back view mockup", 1.5, "medium", "design"),
            _task("Detail mockup", "Close-up mockup", 1.5, "medium", "design"),
            _task("Social post", "Instagram post", 2, "medium", "design"),
            _task("Stories", "Instagram stories", 0.5, "simple", "design"),
            _task("Reel edit", "Short video", 2, "medium", "filming"),
            _task("Final delivery", "Send files to the client", 0.5, "simple", "delivery"),
        ],
    },
    {
        "id": "drop-growth",
        "name": "DROP GROWTH",
        "description": "For brands ready to release a structured mini collection.",
        "price": 947,
        "default_deadline_days": 14,
        "category": "main",
        "tasks": [
            _task("Collection briefing", "In-depth call", 2, "medium", "strategy"),
            _task("Creative direction", "Define the style", 2, "medium", "strategy"),
            _task("Design item 1", "First garment", 2.5, "medium", "design"),
            _task("Design item 2", "Second garment", 2.5, "medium", "design"),
            _task("Design item 3", "Third garment", 2.5, "medium", "design"),
            _task("Mockups (12)", "Four per item", 6, "complex", "design"),
            _task("Reel edits (4)", "Social videos", 4, "medium", "filming"),
            _task("Launch plan", "Posting strategy", 1, "simple", "strategy"),
            _task("Final delivery", "Send files", 0.5, "simple", "delivery"),
        ],
    },
    {
        "id": "drop-brand-experience",
        "name": "DROP BRAND EXPERIENCE",
        "description": "For brands focused on positioning and identity.",
        "price": 1447,
        "default_deadline_days": 18,
        "category": "main",
        "tasks": [
            _task("Brand workshop", "Define the vision", 2, "medium", "strategy"),
            _task("Creative concept", "Visual theme", 3, "medium", "strategy"),
            _task("Mockups (20+)", "Premium mockups", 10, "veryComplex", "design"),
            _task("B-roll video", "Cinematic clips", 5, "medium", "filming"),
            _task("Full launch plan", "Before, during and after", 3, "medium", "strategy"),
            _task("Final delivery", "Send files", 1, "simple", "delivery"),
        ],
    },
    {
        "id": "drop-full-launch",
        "name": "DROP FULL LAUNCH",
        "description": "Complete solution for brands ready to scale.",
        "price": 2097,
        "default_deadline_days": 21,
        "category": "bundle",
        "tasks": [
            _task("Strategic kickoff", "Define the strategy", 2, "medium", "strategy"),
            _task("Mockups (30+)", "Full collection", 14, "veryComplex", "design"),
            _task("Social content", "Posts and ads", 6, "medium", "content"),
            _task("Reel edits (10+)", "Launch videos", 8, "complex", "filming"),
            _task("Copy and landing page", "Sales copy", 4, "medium", "content"),
            _task("Closing consultation", "Strategy call", 1.5, "medium", "strategy"),
        ],
    },
    {
        "id": "brand-starter-identity",
        "name": "BRAND STARTER IDENTITY",
        "description": "For new brands starting from scratch.",
        "price": 397,
        "default_deadline_days": 7,
        "category": "branding",
        "tasks": [
            _task("Brand briefing", "Define the style", 1.5, "simple", "strategy"),
            _task("Moodboard", "Visual research", 1.5, "simple", "research"),
            _task("Logo design (3 proposals)", "Logo drafts", 3, "medium", "design"),
            _task("Final logo", "Definitive logo", 2, "medium", "design"),
            _task("Color palette", "Brand colors", 1, "simple", "design"),
            _task("Final delivery", "Send files", 1, "simple", "delivery"),
        ],
    },
    {
        "id": "brand-identity-pro",
        "name": "BRAND IDENTITY PRO",
        "description": "For brands that want a stronger positioning.",
        "price": 697,
        "default_deadline_days": 10,
        "category": "branding",
        "tasks": [
            _task("Competitor analysis", "Market study", 4, "medium", "strategy"),
            _task("Logo design (3 proposals)", "Advanced logo", 6, "complex", "design"),
            _task("Logo variants", "Logo versions", 2, "medium", "design"),
            _task("Tone of voice", "Communication style", 2, "medium", "strategy"),
            _task("Social templates", "Posts and stories", 2, "medium", "design"),
            _task("Final delivery", "Send files", 1, "simple", "delivery"),
        ],
    },
]


def get_template(package_id):
    for pkg in PACKAGE_TEMPLATES:
        if pkg["id"] == package_id:
            return pkg
    return None


@transaction.atomic
def sync_catalog(templates=None):
    """
    Upsert the package catalog into the store.

    Package tasks are upserted by position, so client tasks keep pointing at
    their template across syncs; positions past the end of the catalog list
    are removed. Returns the number of packages written.
    """
    from .models import Package, PackageTask
    from .scheduling import storage_complexity

    templates = PACKAGE_TEMPLATES if templates is None else templates
    for pkg in templates:
        package, created = Package.objects.update_or_create(
            id=pkg["id"],
            defaults={
                "name": pkg["name"],
                "description": pkg.get("description") or "",
                "price_min": pkg["price"],
                "price_max": pkg.get("price_max"),
                "estimated_hours": sum(t.get("base_hours", 0) for t in pkg["tasks"]),
                "default_duration_days": pkg["default_deadline_days"],
                "is_addon": pkg.get("is_addon", False),
                "category": pkg.get("category", "main"),
                "active": True,
            },
        )
        for i, t in enumerate(pkg["tasks"]):
            PackageTask.objects.update_or_create(
                package=package,
                order_number=i,
                defaults={
                    "title": t["title"],
                    "description": t.get("description") or "",
                    "estimated_hours": t.get("base_hours", 0),
                    "task_type": t["type"],
                    "complexity": storage_complexity(t["complexity"]),
                    "dependencies": t.get("dependencies"),
                },
            )
        package.tasks.filter(order_number__gte=len(pkg["tasks"])).delete()
        logger.info("catalog package %s %s (%d tasks)", package.id, "created" if created else "updated", len(pkg["tasks"]))
    return len(templates)
