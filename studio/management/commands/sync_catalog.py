from django.core.management.base import BaseCommand

from studio.catalog import PACKAGE_TEMPLATES, sync_catalog


class Command(BaseCommand):
    help = "Load the built-in service packages and their task templates into the database."

    def handle(self, *args, **options):
        count = sync_catalog()
        total_tasks = sum(len(p["tasks"]) for p in PACKAGE_TEMPLATES)
        self.stdout.write(self.style.SUCCESS(f"Synced {count} packages ({total_tasks} task templates)"))
