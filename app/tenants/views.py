from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.services import issue_tokens, resolve_actor
from tenants.models import Tenant
from tenants.serializers import SubdomainSerializer, TenantRegistrationSerializer, TenantSerializer
from tenants.services import is_available, register_tenant


class TenantViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = Tenant.objects.none()
    serializer_class = TenantSerializer

    def get_queryset(self):
        actor = resolve_actor(self.request.user)
        return Tenant.objects.filter(code=actor.tenant_code).order_by('-id')

    @action(detail=False, methods=['post'], permission_classes=[AllowAny])
    def availability(self, request):
        serializer = SubdomainSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subdomain = serializer.validated_data['subdomain']
        if is_available(subdomain):
            return Response({'available': True, 'message': 'Subdomain is available'})
        return Response({'available': False, 'message': 'Subdomain is already taken'})

    @action(detail=False, methods=['post'], permission_classes=[AllowAny])
    def register(self, request):
        serializer = TenantRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        tenant = register_tenant(
            code=data['subdomain'],
            name=data['name'],
            username=data['username'],
            email=data['email'],
            password=data['password'],
        )
        payload = TenantSerializer(tenant).data
        payload['username'] = data['username']
        payload['role'] = 'admin'
        payload.update(issue_tokens(tenant.owner))
        return Response(payload, status=status.HTTP_201_CREATED)
