from django.apps import AppConfig


class StudioConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "studio"
    verbose_name = "Studio dashboard"

    def ready(self):
        # connects the model signal receivers of the change feed
        from . import realtime  # noqa: F401
