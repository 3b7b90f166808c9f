"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import (
    Order,
    OrderItem,
    OrderItemAddon,
    OrderItemFlavor,
    OrderStatusHistory,
)

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class UpdateOrderStatusSerializer(serializers.Serializer):
    """Validates the status change request payload (camelCase on the wire)."""

    orderId = serializers.UUIDField()
    status = serializers.CharField(max_length=50, trim_whitespace=False)
    skipNotification = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=500
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemAddonSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItemAddon
        fields = ["id", "name", "price"]
        read_only_fields = fields


class OrderItemFlavorSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItemFlavor
        fields = ["id", "name"]
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    addons = OrderItemAddonSerializer(many=True, read_only=True)
    flavors = OrderItemFlavorSerializer(many=True, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
            "observation",
            "addons",
            "flavors",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "changed_by",
            "notification_suppressed",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "store_id",
            "order_number",
            "customer_name",
            "status",
            "delivery_type",
            "payment_method",
            "total",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "store_id",
            "order_number",
            "status",
            "customer_name",
            "customer_phone",
            "delivery_type",
            "payment_method",
            "subtotal",
            "delivery_fee",
            "total",
            "change_amount",
            "delivery_street",
            "delivery_number",
            "delivery_complement",
            "delivery_neighborhood",
            "delivery_city",
            "coupon_code",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields
