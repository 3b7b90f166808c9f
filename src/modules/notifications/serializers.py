"""Push subscription and ad-hoc push serializers.

Field names follow the browser ``PushSubscription.toJSON()`` shape
(``endpoint`` + ``keys.p256dh`` / ``keys.auth``).
"""

from __future__ import annotations

from rest_framework import serializers


class SubscriptionKeysSerializer(serializers.Serializer):
    p256dh = serializers.CharField(max_length=200)
    auth = serializers.CharField(max_length=100)


class PushSubscribeSerializer(serializers.Serializer):
    storeId = serializers.UUIDField()
    endpoint = serializers.URLField(max_length=500)
    keys = SubscriptionKeysSerializer()


class PushUnsubscribeSerializer(serializers.Serializer):
    endpoint = serializers.URLField(max_length=500)


class StorePushSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=120)
    body = serializers.CharField(max_length=500)
    url = serializers.CharField(max_length=300, required=False, allow_blank=True)
    icon = serializers.CharField(max_length=300, required=False, allow_blank=True)
    tag = serializers.CharField(max_length=100, required=False, allow_blank=True)
    orderId = serializers.UUIDField(required=False, allow_null=True)
