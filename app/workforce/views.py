from django.db.models import Count
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.mixins import TenantScopedViewMixin
from accounts.permissions import IsTenantAdmin, IsTenantMember
from scoring.serializers import TaskSerializer
from scoring.services import engine
from workforce.models import Department, Worker
from workforce.serializers import DepartmentSerializer, WorkerSerializer
from workforce.services import delete_worker


class TenantModelViewSet(TenantScopedViewMixin, viewsets.ModelViewSet):
    member_actions = ('list', 'retrieve')

    def get_permissions(self):
        if self.action in self.member_actions:
            return [IsAuthenticated(), IsTenantMember()]
        return [IsAuthenticated(), IsTenantAdmin()]

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['tenant'] = self.get_tenant()
        return context

    def perform_create(self, serializer):
        serializer.save(tenant=self.get_tenant())


class DepartmentViewSet(TenantModelViewSet):
    queryset = Department.objects.none()
    serializer_class = DepartmentSerializer

    def get_queryset(self):
        return (
            Department.objects.filter(tenant=self.get_tenant())
            .annotate(worker_count=Count('workers'))
            .order_by('name')
        )


class WorkerViewSet(TenantModelViewSet):
    queryset = Worker.objects.none()
    serializer_class = WorkerSerializer
    member_actions = ('retrieve', 'activities')

    def get_permissions(self):
        if self.action == 'activities' and self.request.method == 'DELETE':
            return [IsAuthenticated(), IsTenantAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = Worker.objects.select_related('department').filter(tenant=self.get_tenant()).order_by('name')
        actor = self.get_actor()
        if not actor.is_admin:
            queryset = queryset.filter(pk=actor.worker_id)
        return queryset

    def perform_create(self, serializer):
        serializer.save()

    def destroy(self, request, *args, **kwargs):
        delete_worker(self.get_object())
        return Response({'message': 'Worker removed successfully'})

    @action(detail=True, methods=['get', 'delete'])
    def activities(self, request, pk=None):
        worker = self.get_object()
        tenant_code = self.get_tenant().code
        if request.method == 'DELETE':
            engine.reset_worker(tenant_code, worker.pk)
            return Response({'message': 'Worker activities reset successfully'})

        tasks = engine.list_by_worker(tenant_code, worker.pk)
        return Response(TaskSerializer(tasks, many=True).data)
