from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from common.clock import day_bounds, workforce_zone
from common.exceptions import (
    AlreadyReviewed,
    EmptyTaskData,
    InvalidDateRange,
    InvalidDecision,
    InvalidPoints,
    NotACustomTask,
    TaskNotFound,
)
from scoring.models import Task, Topic
from scoring.services.points import awarded_points, base_points, in_points_range, topic_ids
from tenants.models import Tenant
from tenants.services import resolve_tenant
from workforce.models import Worker
from workforce.services import get_worker


logger = logging.getLogger(__name__)

REVIEW_DECISIONS = (Task.STATUS_APPROVED, Task.STATUS_REJECTED)


@dataclass(frozen=True)
class SubmitTaskCommand:
    worker_id: int
    tenant_code: str
    data: dict
    topic_ids: list = field(default_factory=list)
    now: datetime | None = None


@dataclass(frozen=True)
class ReviewCustomTaskCommand:
    tenant_code: str
    task_id: int
    decision: str
    points: object = None


@dataclass(frozen=True)
class WorkerTotals:
    worker_id: int
    total_points: int
    topic_points: int
    last_submission: dict

    @classmethod
    def from_worker(cls, worker: Worker) -> "WorkerTotals":
        return cls(
            worker_id=worker.pk,
            total_points=worker.total_points,
            topic_points=worker.topic_points,
            last_submission=worker.last_submission or {},
        )


def _allow_empty_data() -> bool:
    return bool(getattr(settings, "WORKFORCE_ALLOW_EMPTY_TASK_DATA", False))


def resolve_topics(tenant: Tenant, requested) -> list[Topic]:
    ids = topic_ids(requested)
    if not ids:
        return []
    topics = list(Topic.objects.filter(tenant=tenant, pk__in=ids).order_by("pk"))
    if len(topics) < len(set(ids)):
        logger.debug("Dropping unknown topics", extra={"tenant": tenant.code, "requested": ids})
    return topics


def submit_task(command: SubmitTaskCommand) -> Task:
    tenant = resolve_tenant(command.tenant_code)
    data = dict(command.data or {})
    if not data and not (_allow_empty_data() and topic_ids(command.topic_ids)):
        raise EmptyTaskData()

    moment = command.now or timezone.now()

    with transaction.atomic():
        worker = get_worker(tenant, command.worker_id, for_update=True)
        topics = resolve_topics(tenant, command.topic_ids)
        topic_points = sum(topic.points for topic in topics)
        points = base_points(data) + topic_points
        if not in_points_range(points):
            raise InvalidPoints("Task points are out of range")

        task = Task.objects.create(tenant=tenant, worker=worker, data=data, points=points)
        task.topics.set(topics)

        Worker.objects.filter(pk=worker.pk).update(
            total_points=F("total_points") + points,
            topic_points=F("topic_points") + topic_points,
            last_submission={"timestamp": moment.isoformat(), "details": data},
        )

    logger.info(
        "Task submitted",
        extra={"tenant": tenant.code, "worker_id": worker.pk, "task_id": task.pk, "points": points},
    )
    return task


def submit_custom_task(tenant_code: str, worker_id: int, description: str) -> Task:
    tenant = resolve_tenant(tenant_code)
    worker = get_worker(tenant, worker_id)
    task = Task.objects.create(
        tenant=tenant,
        worker=worker,
        description=description,
        is_custom=True,
        status=Task.STATUS_PENDING,
        points=0,
    )
    logger.info("Custom task requested", extra={"tenant": tenant.code, "worker_id": worker.pk, "task_id": task.pk})
    return task


def _validated_decision(command: ReviewCustomTaskCommand) -> tuple[str, int]:
    decision = str(command.decision or "").strip()
    if decision not in REVIEW_DECISIONS:
        raise InvalidDecision()
    if decision == Task.STATUS_REJECTED:
        return decision, 0

    points = awarded_points(command.points)
    if points is None:
        raise InvalidPoints()
    return decision, points


def review_custom_task(command: ReviewCustomTaskCommand) -> Task:
    decision, points = _validated_decision(command)
    tenant = resolve_tenant(command.tenant_code)

    worker_id = Task.objects.filter(tenant=tenant, pk=command.task_id).values_list("worker_id", flat=True).first()
    if worker_id is None:
        raise TaskNotFound()

    with transaction.atomic():
        # worker before task, the same lock order as submissions and resets
        Worker.objects.select_for_update().filter(pk=worker_id).first()
        task = Task.objects.select_for_update().filter(tenant=tenant, pk=command.task_id).first()
        if task is None:
            raise TaskNotFound()
        if not task.is_custom:
            raise NotACustomTask()
        if task.status != Task.STATUS_PENDING:
            raise AlreadyReviewed()

        task.status = decision
        if decision == Task.STATUS_APPROVED:
            task.points = points
            Worker.objects.filter(pk=task.worker_id).update(total_points=F("total_points") + points)
        task.save(update_fields=["status", "points", "updated_at"])

    logger.info(
        "Custom task reviewed",
        extra={"tenant": tenant.code, "task_id": task.pk, "status": decision, "points": task.points},
    )
    return task


def _reset_workers(tenant: Tenant, workers: QuerySet[Worker]) -> int:
    with transaction.atomic():
        locked = list(workers.select_for_update().values_list("pk", flat=True))
        _, deleted = Task.objects.filter(tenant=tenant, worker_id__in=locked).delete()
        Worker.objects.filter(pk__in=locked).update(total_points=0, topic_points=0, last_submission={})
    return deleted.get(Task._meta.label, 0)


def reset_all(tenant_code: str) -> int:
    """Delete every task of the tenant and zero all worker totals."""
    tenant = resolve_tenant(tenant_code)
    removed = _reset_workers(tenant, Worker.objects.filter(tenant=tenant))
    logger.info("Tasks reset", extra={"tenant": tenant.code, "removed": removed})
    return removed


def reset_worker(tenant_code: str, worker_id: int) -> int:
    tenant = resolve_tenant(tenant_code)
    worker = get_worker(tenant, worker_id)
    removed = _reset_workers(tenant, Worker.objects.filter(pk=worker.pk))
    logger.info("Worker activities reset", extra={"tenant": tenant.code, "worker_id": worker.pk, "removed": removed})
    return removed


def get_totals(tenant_code: str, worker_id: int) -> WorkerTotals:
    tenant = resolve_tenant(tenant_code)
    return WorkerTotals.from_worker(get_worker(tenant, worker_id))


def _tasks(tenant: Tenant) -> QuerySet[Task]:
    return (
        Task.objects.select_related("tenant", "worker__department")
        .prefetch_related("topics")
        .filter(tenant=tenant)
        .order_by("-created_at", "-id")
    )


def list_tasks(tenant_code: str) -> QuerySet[Task]:
    return _tasks(resolve_tenant(tenant_code))


def list_by_worker(tenant_code: str, worker_id: int) -> QuerySet[Task]:
    return _tasks(resolve_tenant(tenant_code)).filter(worker_id=worker_id)


def list_custom_tasks(tenant_code: str, worker_id: int | None = None) -> QuerySet[Task]:
    tasks = _tasks(resolve_tenant(tenant_code)).filter(is_custom=True)
    if worker_id is not None:
        tasks = tasks.filter(worker_id=worker_id)
    return tasks


def _range_bound(raw: str | None, *, end: bool) -> datetime:
    value = (raw or "").strip()
    if not value:
        raise InvalidDateRange()

    try:
        day = parse_date(value)
        if day is not None:
            start, finish = day_bounds(day)
            return finish if end else start

        moment = parse_datetime(value)
    except ValueError:
        moment = None

    if moment is None:
        raise InvalidDateRange(f"Invalid date: {value}")
    if timezone.is_naive(moment):
        moment = moment.replace(tzinfo=workforce_zone())
    return moment.astimezone(dt_timezone.utc)


def parse_date_range(start_raw: str | None, end_raw: str | None) -> tuple[datetime, datetime]:
    start = _range_bound(start_raw, end=False)
    end = _range_bound(end_raw, end=True)
    if start > end:
        raise InvalidDateRange("Start date must not be after end date")
    return start, end


def list_by_date_range(tenant_code: str, start_raw: str | None, end_raw: str | None) -> QuerySet[Task]:
    tenant = resolve_tenant(tenant_code)
    start, end = parse_date_range(start_raw, end_raw)
    return _tasks(tenant).filter(created_at__gte=start, created_at__lte=end)
