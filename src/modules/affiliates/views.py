"""Affiliate earning views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.affiliates.exceptions import EarningNotFound, InvalidEarningTransition
from modules.affiliates.serializers import (
    AffiliateEarningSerializer,
    ChangeEarningStatusSerializer,
)
from modules.affiliates.services import CommissionService
from modules.core.exceptions import error_response
from modules.stores.exceptions import Forbidden


class AffiliateEarningStatusView(APIView):
    """POST /api/v1/affiliate-earnings/{earning_id}/status/"""

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CommissionService()

    def post(self, request: Request, earning_id: str) -> Response:
        serializer = ChangeEarningStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            earning = self._service.change_earning_status(
                user_id=request.user.id,
                earning_id=str(earning_id),
                new_status=serializer.validated_data["status"],
            )
        except EarningNotFound:
            return error_response("Comissão não encontrada.", status.HTTP_404_NOT_FOUND)
        except Forbidden as exc:
            return error_response(str(exc), status.HTTP_403_FORBIDDEN)
        except InvalidEarningTransition as exc:
            return error_response(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(
            {"success": True, "data": AffiliateEarningSerializer(earning).data}
        )
