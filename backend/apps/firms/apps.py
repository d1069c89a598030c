from django.apps import AppConfig


class FirmsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.firms"
