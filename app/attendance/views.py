from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.request import Request
from rest_framework.response import Response

from accounts.services import ensure_same_tenant, resolve_actor
from attendance.serializers import AttendanceRecordSerializer
from attendance.services.engine import RecordScanCommand, list_by_tenant, list_by_worker, record_scan
from common.tenancy import requested_tenant_code
from tenants.services import check_tenant_code


def _authorized_tenant_code(request: Request) -> str:
    tenant_code = check_tenant_code(requested_tenant_code(request))
    ensure_same_tenant(resolve_actor(request.user), tenant_code)
    return tenant_code


def _param(request: Request, name: str) -> str:
    value = request.data.get(name) if hasattr(request.data, "get") else None
    return str(value or request.query_params.get(name) or "").strip()


@api_view(["GET", "PUT"])
def attendance(request: Request) -> Response:
    tenant_code = _authorized_tenant_code(request)

    if request.method == "PUT":
        result = record_scan(RecordScanCommand(tenant_code=tenant_code, rfid=_param(request, "rfid")))
        return Response(
            {"message": result.message, "attendance": AttendanceRecordSerializer(result.record).data},
            status=status.HTTP_201_CREATED,
        )

    records = list_by_tenant(tenant_code)
    return Response(
        {
            "message": "Attendance data retrieved successfully",
            "attendance": AttendanceRecordSerializer(records, many=True).data,
        }
    )


@api_view(["GET"])
def worker_attendance(request: Request) -> Response:
    tenant_code = _authorized_tenant_code(request)
    records = list_by_worker(tenant_code, _param(request, "rfid"))
    return Response(
        {
            "message": "Worker attendance data retrieved successfully",
            "attendance": AttendanceRecordSerializer(records, many=True).data,
        }
    )
