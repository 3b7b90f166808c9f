"""Affiliate URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.affiliates.views import AffiliateEarningStatusView

urlpatterns = [
    path(
        "affiliate-earnings/<uuid:earning_id>/status/",
        AffiliateEarningStatusView.as_view(),
        name="affiliate-earning-status",
    ),
]
