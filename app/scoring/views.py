from __future__ import annotations

import re

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.mixins import TenantScopedViewMixin
from accounts.permissions import IsTenantAdmin, IsTenantMember, IsWorker
from scoring.models import Topic
from scoring.serializers import (
    CustomTaskSerializer,
    TaskSerializer,
    TaskSubmissionSerializer,
    TopicSerializer,
    TotalsSerializer,
)
from scoring.services import engine


class TopicViewSet(TenantScopedViewMixin, viewsets.ModelViewSet):
    queryset = Topic.objects.none()
    serializer_class = TopicSerializer

    def get_permissions(self):
        if self.action in ('list', 'retrieve'):
            return [IsAuthenticated(), IsTenantMember()]
        return [IsAuthenticated(), IsTenantAdmin()]

    def get_queryset(self):
        queryset = Topic.objects.filter(tenant=self.get_tenant()).order_by('department', 'name')
        department = (self.request.query_params.get('department') or '').strip()
        if department:
            queryset = queryset.filter(department__in=[department, Topic.DEPARTMENT_ALL])
        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['tenant'] = self.get_tenant()
        return context

    def perform_create(self, serializer):
        serializer.save(tenant=self.get_tenant())

    def destroy(self, request, *args, **kwargs):
        self.get_object().delete()
        return Response({'message': 'Topic removed'})


class TaskViewSet(TenantScopedViewMixin, viewsets.GenericViewSet):
    serializer_class = TaskSerializer

    ADMIN_ACTIONS = {'list', 'range', 'reset', 'review'}
    WORKER_ACTIONS = {'create', 'me', 'custom_me'}

    def get_permissions(self):
        if self.action == 'custom':
            role = IsWorker if self.request.method == 'POST' else IsTenantAdmin
        elif self.action in self.ADMIN_ACTIONS:
            role = IsTenantAdmin
        elif self.action in self.WORKER_ACTIONS:
            role = IsWorker
        else:
            role = IsTenantMember
        return [IsAuthenticated(), role()]

    def _tasks_response(self, tasks):
        return Response(TaskSerializer(tasks, many=True).data)

    def list(self, request):
        return self._tasks_response(engine.list_tasks(self.get_tenant_code()))

    def create(self, request):
        serializer = TaskSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = engine.submit_task(
            engine.SubmitTaskCommand(
                worker_id=self.get_actor().worker_id,
                tenant_code=self.get_tenant_code(),
                data=serializer.validated_data['data'],
                topic_ids=serializer.validated_data['topics'],
            )
        )
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def me(self, request):
        return self._tasks_response(engine.list_by_worker(self.get_tenant_code(), self.get_actor().worker_id))

    @action(detail=False, methods=['get'])
    def range(self, request):
        tasks = engine.list_by_date_range(
            self.get_tenant_code(),
            request.query_params.get('startDate'),
            request.query_params.get('endDate'),
        )
        return self._tasks_response(tasks)

    @action(detail=False, methods=['get'])
    def totals(self, request):
        actor = self.get_actor()
        worker_id = actor.worker_id
        if actor.is_admin:
            worker_id = request.query_params.get('worker')
            if not re.fullmatch(r"\d{1,18}", worker_id or ""):
                return Response({'message': 'Please provide a worker id'}, status=status.HTTP_400_BAD_REQUEST)
        totals = engine.get_totals(self.get_tenant_code(), int(worker_id))
        return Response(TotalsSerializer(totals).data)

    @action(detail=False, methods=['delete'])
    def reset(self, request):
        engine.reset_all(self.get_tenant_code())
        return Response({'message': 'All tasks reset successfully'})

    @action(detail=False, methods=['get', 'post'])
    def custom(self, request):
        if request.method == 'GET':
            return self._tasks_response(engine.list_custom_tasks(self.get_tenant_code()))

        serializer = CustomTaskSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = engine.submit_custom_task(
            self.get_tenant_code(),
            self.get_actor().worker_id,
            serializer.validated_data['description'],
        )
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], url_path='custom/me', url_name='custom-me')
    def custom_me(self, request):
        return self._tasks_response(engine.list_custom_tasks(self.get_tenant_code(), self.get_actor().worker_id))

    @action(detail=False, methods=['put'], url_path=r'custom/(?P<task_pk>\d{1,18})/review', url_name='custom-review')
    def review(self, request, task_pk=None):
        task = engine.review_custom_task(
            engine.ReviewCustomTaskCommand(
                tenant_code=self.get_tenant_code(),
                task_id=int(task_pk),
                decision=request.data.get('status'),
                points=request.data.get('points'),
            )
        )
        return Response(TaskSerializer(task).data)
