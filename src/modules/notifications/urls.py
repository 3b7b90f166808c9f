"""Notification URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.notifications.views import PushSubscriptionView, StorePushView

urlpatterns = [
    path(
        "push-subscriptions/",
        PushSubscriptionView.as_view(),
        name="push-subscriptions",
    ),
    path(
        "stores/<uuid:store_id>/push/",
        StorePushView.as_view(),
        name="store-push",
    ),
]
