"""Root URL configuration."""

from django.urls import include, path

urlpatterns = [
    path("investigation/", include("apps.investigation.urls")),
]
