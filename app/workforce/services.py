from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from common.exceptions import MissingCredential, WorkerNotFound
from tenants.models import Tenant
from tenants.services import login_name
from workforce.models import Worker


logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ("username", "email", "rfid")


def find_by_rfid(tenant: Tenant, rfid: str | None, *, for_update: bool = False) -> Worker:
    normalized = (rfid or "").strip()
    if not normalized:
        raise MissingCredential()

    queryset = Worker.objects.select_related("department").filter(tenant=tenant, rfid=normalized)
    if for_update:
        queryset = queryset.select_for_update(of=("self",))
    worker = queryset.first()
    if worker is None:
        raise WorkerNotFound()
    return worker


def get_worker(tenant: Tenant, worker_id, *, for_update: bool = False) -> Worker:
    queryset = Worker.objects.filter(tenant=tenant, pk=worker_id)
    if for_update:
        queryset = queryset.select_for_update()
    worker = queryset.first()
    if worker is None:
        raise WorkerNotFound()
    return worker


def identity_conflicts(tenant: Tenant, values: dict, exclude_pk=None) -> dict[str, str]:
    """Tenant-scoped uniqueness check for username, email and rfid."""
    conflicts = {}
    queryset = Worker.objects.filter(tenant=tenant)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)

    for field in IDENTITY_FIELDS:
        value = values.get(field)
        if value and queryset.filter(**{field: value}).exists():
            conflicts[field] = f"Worker with this {field} already exists"
    return conflicts


def create_worker(tenant: Tenant, *, password: str, **fields) -> Worker:
    user_model = get_user_model()
    with transaction.atomic():
        user = user_model.objects.create_user(
            username=login_name(tenant.code, fields["username"]),
            email=fields.get("email", ""),
            password=password,
        )
        worker = Worker.objects.create(tenant=tenant, user=user, **fields)

    logger.info("Worker created", extra={"tenant": tenant.code, "worker_id": worker.pk})
    return worker


def update_worker(worker: Worker, *, password: str | None = None, **fields) -> Worker:
    """Apply identity changes to a worker and its login user.

    Scoring totals and the last presence are owned by the engines and are
    never written from here, so the row is re-read under lock and only the
    given fields are saved.
    """
    with transaction.atomic():
        worker = Worker.objects.select_for_update().get(pk=worker.pk)
        for key, value in fields.items():
            setattr(worker, key, value)
        worker.save(update_fields=[*fields, "updated_at"])

        user = worker.user
        if user is not None:
            user.username = login_name(worker.tenant.code, worker.username)
            user.email = worker.email
            if password:
                user.set_password(password)
            user.save()

    return worker


def delete_worker(worker: Worker) -> None:
    with transaction.atomic():
        user = worker.user
        worker.delete()
        if user is not None:
            user.delete()
    logger.info("Worker removed", extra={"tenant": worker.tenant_id, "username": worker.username})
