"""Store API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.exceptions import error_response
from modules.stores.permissions import project_status_permissions
from modules.stores.repositories.django_repository import StoreDjangoRepository
from modules.stores.serializers import PermissionItemSerializer, StatusConfigSerializer


class StoreStatusPermissionsView(APIView):
    """GET /api/v1/stores/{store_id}/status-permissions/

    Permission catalogue the owner uses when editing an employee, derived
    from the store's active status configs.
    """

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._stores = StoreDjangoRepository()

    def get(self, request: Request, store_id: str) -> Response:
        store = self._stores.get_by_id(store_id)
        if store is None:
            return error_response("Loja não encontrada.", status.HTTP_404_NOT_FOUND)
        if not store.is_owned_by(request.user.id):
            return error_response(
                "Apenas o dono da loja pode gerenciar permissões.",
                status.HTTP_403_FORBIDDEN,
            )

        configs = self._stores.list_status_configs(store.id, active_only=True)
        items = project_status_permissions(configs)
        return Response(
            {
                "statuses": StatusConfigSerializer(configs, many=True).data,
                "permissions": PermissionItemSerializer(items, many=True).data,
            }
        )
