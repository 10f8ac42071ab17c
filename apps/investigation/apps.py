"""Django app configuration for the investigation app."""

from django.apps import AppConfig


class InvestigationConfig(AppConfig):
    """Configuration for the NHI Investigation app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.investigation"
    verbose_name = "NHI Investigation"
