from __future__ import annotations

from rest_framework import serializers

from modules.affiliates.constants import EarningStatus
from modules.affiliates.models import AffiliateEarning


class ChangeEarningStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[
            EarningStatus.APPROVED,
            EarningStatus.PAID,
            EarningStatus.CANCELLED,
        ]
    )


class AffiliateEarningSerializer(serializers.ModelSerializer):
    class Meta:
        model = AffiliateEarning
        fields = [
            "id",
            "store_affiliate_id",
            "order_id",
            "order_total",
            "commission_type",
            "commission_value",
            "commission_amount",
            "status",
            "paid_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
