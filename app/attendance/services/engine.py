from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from django.db import transaction
from django.db.models import QuerySet

from attendance.models import AttendanceRecord
from common.clock import local_now, wall_clock
from common.exceptions import MissingCredential
from tenants.services import check_tenant_code, resolve_tenant
from workforce.services import find_by_rfid


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordScanCommand:
    tenant_code: str
    rfid: str
    now: datetime | None = None


@dataclass(frozen=True)
class ScanResult:
    record: AttendanceRecord

    @property
    def status(self) -> str:
        return "in" if self.record.presence else "out"

    @property
    def message(self) -> str:
        return f"Attendance marked as {self.status}"


def next_presence(last_presence: bool | None) -> bool:
    """Presence alternates on every scan; the very first scan is an "in"."""
    if last_presence is None:
        return True
    return not last_presence


def _require_rfid(rfid: str | None) -> str:
    normalized = (rfid or "").strip()
    if not normalized:
        raise MissingCredential()
    return normalized


def record_scan(command: RecordScanCommand) -> ScanResult:
    tenant_code = check_tenant_code(command.tenant_code)
    rfid = _require_rfid(command.rfid)
    tenant = resolve_tenant(tenant_code)

    with transaction.atomic():
        # The worker row lock serializes concurrent scans of the same card.
        worker = find_by_rfid(tenant, rfid, for_update=True)
        moment = local_now(command.now)
        presence = next_presence(worker.last_presence)

        record = AttendanceRecord.objects.create(
            tenant=tenant,
            worker=worker,
            rfid=rfid,
            name=worker.name,
            username=worker.username,
            email=worker.email,
            department=worker.department.name if worker.department_id else "",
            photo=worker.photo,
            date=moment.date(),
            time=wall_clock(moment),
            presence=presence,
            created_at=moment,
        )
        worker.last_presence = presence
        worker.save(update_fields=["last_presence"])

    result = ScanResult(record)
    logger.info(
        "Attendance recorded",
        extra={"tenant": tenant.code, "worker_id": worker.pk, "presence": result.status},
    )
    return result


def list_by_tenant(tenant_code: str) -> QuerySet[AttendanceRecord]:
    tenant = resolve_tenant(tenant_code)
    return AttendanceRecord.objects.select_related("tenant").filter(tenant=tenant).order_by("created_at", "id")


def list_by_worker(tenant_code: str, rfid: str) -> QuerySet[AttendanceRecord]:
    code = check_tenant_code(tenant_code)
    normalized = _require_rfid(rfid)
    tenant = resolve_tenant(code)
    return (
        AttendanceRecord.objects.select_related("tenant")
        .filter(tenant=tenant, rfid=normalized)
        .order_by("created_at", "id")
    )
