"""Store URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.stores.views import StoreStatusPermissionsView

urlpatterns = [
    path(
        "stores/<uuid:store_id>/status-permissions/",
        StoreStatusPermissionsView.as_view(),
        name="store-status-permissions",
    ),
]
