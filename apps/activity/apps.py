"""Django app configuration for the activity app."""

from django.apps import AppConfig


class ActivityConfig(AppConfig):
    """Configuration for the Activity Verification app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.activity"
    verbose_name = "Activity Verification"
