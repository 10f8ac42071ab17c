"""URL configuration for the investigation app."""

from django.urls import path

from apps.investigation.views import BatchInvestigationView

app_name = "investigation"

urlpatterns = [
    path("batch/", BatchInvestigationView.as_view(), name="batch-trigger"),
    path(
        "batch/sync/", BatchInvestigationView.as_view(), {"mode": "sync"}, name="batch-trigger-sync"
    ),
]
