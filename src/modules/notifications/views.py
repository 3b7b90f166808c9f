"""Push notification views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.exceptions import error_response
from modules.notifications.exceptions import PushConfigurationError, SubscriptionConflict
from modules.notifications.push import PushMessage
from modules.notifications.serializers import (
    PushSubscribeSerializer,
    PushUnsubscribeSerializer,
    StorePushSerializer,
)
from modules.notifications.services import PushNotificationService
from modules.orders.authorization import StatusChangeAuthorizer
from modules.stores.exceptions import Forbidden
from modules.stores.repositories.django_repository import StoreDjangoRepository


class PushSubscriptionView(APIView):
    """POST / DELETE /api/v1/push-subscriptions/"""

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._stores = StoreDjangoRepository()
        self._authorizer = StatusChangeAuthorizer(self._stores)
        self._service = PushNotificationService()

    def post(self, request: Request) -> Response:
        serializer = PushSubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        store = self._stores.get_by_id(data["storeId"])
        if store is None:
            return error_response("Loja não encontrada.", status.HTTP_404_NOT_FOUND)
        try:
            self._authorizer.ensure_store_access(request.user.id, store)
        except Forbidden as exc:
            return error_response(str(exc), status.HTTP_403_FORBIDDEN)

        try:
            subscription = self._service.subscribe(
                user_id=request.user.id,
                store=store,
                endpoint=data["endpoint"],
                p256dh=data["keys"]["p256dh"],
                auth=data["keys"]["auth"],
                user_agent=request.headers.get("User-Agent", ""),
            )
        except SubscriptionConflict as exc:
            return error_response(str(exc), status.HTTP_409_CONFLICT)
        return Response(
            {"success": True, "data": {"id": str(subscription.id)}},
            status=status.HTTP_201_CREATED,
        )

    def delete(self, request: Request) -> Response:
        serializer = PushUnsubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        removed = self._service.unsubscribe(
            request.user.id, serializer.validated_data["endpoint"]
        )
        if not removed:
            return error_response("Inscrição não encontrada.", status.HTTP_404_NOT_FOUND)
        return Response({"success": True})


class StorePushView(APIView):
    """POST /api/v1/stores/{store_id}/push/

    Owner-only ad-hoc notification to every active device of the store.
    """

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._stores = StoreDjangoRepository()
        self._service = PushNotificationService()

    def post(self, request: Request, store_id: str) -> Response:
        store = self._stores.get_by_id(store_id)
        if store is None:
            return error_response("Loja não encontrada.", status.HTTP_404_NOT_FOUND)
        if not store.is_owned_by(request.user.id):
            return error_response(
                "Apenas o dono da loja pode enviar notificações.",
                status.HTTP_403_FORBIDDEN,
            )

        serializer = StorePushSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order_id = data.get("orderId")
        message = PushMessage(
            title=data["title"],
            body=data["body"],
            store_id=str(store.id),
            order_id=str(order_id) if order_id else None,
            url=data.get("url") or None,
            icon=data.get("icon") or None,
            tag=data.get("tag") or None,
        )

        try:
            report = self._service.notify_store(store.id, message)
        except PushConfigurationError as exc:
            return error_response(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response({"success": True, "data": report.as_dict()})
