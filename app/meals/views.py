from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.mixins import TenantScopedViewMixin
from accounts.permissions import IsTenantAdmin, IsTenantMember, IsWorker
from meals.serializers import FoodRequestSerializer
from meals.services import (
    SubmitFoodRequestCommand,
    food_requests_enabled,
    list_food_requests,
    submit_food_request,
    toggle_food_requests,
)


class FoodRequestViewSet(TenantScopedViewMixin, viewsets.GenericViewSet):
    serializer_class = FoodRequestSerializer

    def get_permissions(self):
        if self.action in ('list', 'toggle'):
            role = IsTenantAdmin
        elif self.action == 'create':
            role = IsWorker
        else:
            role = IsTenantMember
        return [IsAuthenticated(), role()]

    def list(self, request):
        requests = list_food_requests(self.get_tenant_code(), request.query_params.get('date'))
        return Response(FoodRequestSerializer(requests, many=True).data)

    def create(self, request):
        food_request = submit_food_request(
            SubmitFoodRequestCommand(tenant_code=self.get_tenant_code(), worker_id=self.get_actor().worker_id)
        )
        return Response(FoodRequestSerializer(food_request).data, status=status.HTTP_201_CREATED)

    # not named "settings": APIView already uses that attribute
    @action(detail=False, methods=['get'], url_path='settings', url_name='settings')
    def food_settings(self, request):
        return Response({'enabled': food_requests_enabled(self.get_tenant_code())})

    @action(detail=False, methods=['put'])
    def toggle(self, request):
        return Response({'enabled': toggle_food_requests(self.get_tenant_code(), request.user)})
