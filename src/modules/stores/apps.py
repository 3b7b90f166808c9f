from django.apps import AppConfig


class StoresConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.stores"
    label = "stores"

    def ready(self) -> None:
        from modules.stores import signals  # noqa: F401
