"""Store DRF serializers (read side only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.stores.models import OrderStatusConfig


class PermissionItemSerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    description = serializers.CharField()
    defaultValue = serializers.BooleanField(source="default_value")


class StatusConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusConfig
        fields = [
            "id",
            "status_key",
            "status_label",
            "status_color",
            "display_order",
            "is_active",
            "show_for_delivery",
            "show_for_pickup",
        ]
        read_only_fields = fields
