"""URL routing for realtime webhooks."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import RowChangeWebhookView

urlpatterns = [
    path("webhook/", RowChangeWebhookView.as_view(), name="realtime-webhook"),
]
