from django.apps import AppConfig


class EscapeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "escape"
    verbose_name = "Escape room puzzles"
