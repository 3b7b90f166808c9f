from django.apps import AppConfig


class RealtimeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.realtime"
    label = "realtime"

    def ready(self) -> None:
        from modules.realtime import signals  # noqa: F401
