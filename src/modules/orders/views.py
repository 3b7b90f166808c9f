"""Order API views.

Exposes ``OrderStatusService`` and the WhatsApp notification service via
HTTP using a DRF ViewSet.  Domain exceptions are caught and translated
into ``{"error": ...}`` responses; the view never swallows generic
exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.affiliates.services import CommissionService
from modules.core.exceptions import error_response
from modules.core.pagination import StandardResultsSetPagination
from modules.notifications.exceptions import GatewayError, TemplateError
from modules.notifications.services import WhatsAppNotificationService
from modules.orders.dtos import ChangeOrderStatusDTO, StatusChangeResultDTO
from modules.orders.exceptions import (
    Forbidden,
    InvalidStatus,
    OrderNotFound,
    PersistenceError,
    StoreNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderStatusService
from modules.orders.status import normalize_status
from modules.stores.repositories.django_repository import StoreDjangoRepository

ORDER_NOT_FOUND = "Pedido não encontrado."


class OrderViewSet(GenericViewSet):
    """ViewSet for order status operations.

    Uses ``OrderStatusService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        store_repository = StoreDjangoRepository()
        self._service = OrderStatusService(
            order_repository=OrderDjangoRepository(),
            store_repository=store_repository,
            commission_service=CommissionService(),
        )
        self._whatsapp = WhatsAppNotificationService(store_repository=store_repository)

    def get_throttles(self) -> list[BaseThrottle]:
        """Define escopos de throttling por ação."""
        throttle_scope: str | None
        if self.action == "change_status":
            throttle_scope = "order_status_update"
        elif self.action in {"list", "retrieve", "message_preview"}:
            throttle_scope = "order_listing"
        elif self.action == "whatsapp":
            throttle_scope = "whatsapp_send"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(self.request.user.id)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Orders of every store the user owns or works at.  Filtering
        (store, status, delivery type, date range) is handled by
        ``OrderFilter``; results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(request.user.id, str(pk))
        except OrderNotFound:
            return error_response(ORDER_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        except Forbidden as exc:
            return error_response(str(exc), status.HTTP_403_FORBIDDEN)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status change
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"], url_path="status", url_name="status")
    def change_status(self, request: Request) -> Response:
        """POST /api/v1/orders/status/

        Body: ``{orderId, status, skipNotification?, notes?}``.  ``status``
        may be a canonical value or a localized alias.
        """
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = ChangeOrderStatusDTO(
                order_id=data["orderId"],
                status=data["status"],
                skip_notification=data["skipNotification"],
                notes=data["notes"],
            )
        except PydanticValidationError:
            return error_response("Status inválido.", status.HTTP_400_BAD_REQUEST)

        try:
            order = self._service.change_status(
                user_id=request.user.id,
                order_id=dto.order_id,
                raw_status=dto.status,
                skip_notification=dto.skip_notification,
                notes=dto.notes,
            )
        except InvalidStatus as exc:
            return error_response(str(exc), status.HTTP_400_BAD_REQUEST)
        except (OrderNotFound, StoreNotFound):
            return error_response(ORDER_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        except Forbidden as exc:
            return error_response(str(exc), status.HTTP_403_FORBIDDEN)
        except PersistenceError as exc:
            return error_response(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

        result = StatusChangeResultDTO.from_entity(order)
        return Response({"success": True, "data": result.model_dump(mode="json")})

    # ------------------------------------------------------------------
    # WhatsApp
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"], url_path="message-preview")
    def message_preview(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/message-preview/?status=<status>

        Renders the store's template without sending.  ``status`` defaults
        to the order's current status.
        """
        try:
            order = self._service.get_order(request.user.id, str(pk))
            target = normalize_status(request.query_params.get("status") or order.status)
            message = self._whatsapp.render_status_message(order, target)
        except OrderNotFound:
            return error_response(ORDER_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        except Forbidden as exc:
            return error_response(str(exc), status.HTTP_403_FORBIDDEN)
        except (InvalidStatus, TemplateError) as exc:
            return error_response(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "success": True,
                "data": {
                    "status": target.value,
                    "configured": message is not None,
                    "message": message,
                },
            }
        )

    @action(detail=True, methods=["post"])
    def whatsapp(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/whatsapp/

        Sends the message of the order's current status right away.
        """
        try:
            order = self._service.get_order(request.user.id, str(pk))
            sent = self._whatsapp.send_status_message(order, normalize_status(order.status))
        except OrderNotFound:
            return error_response(ORDER_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        except Forbidden as exc:
            return error_response(str(exc), status.HTTP_403_FORBIDDEN)
        except GatewayError as exc:
            return error_response(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({"success": True, "data": {"sent": sent}})
