from django.db import models
from django.utils import timezone

from tenants.models import Tenant
from workforce.models import Worker


class AttendanceRecord(models.Model):
    """One RFID scan. Never updated after creation."""

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="attendance_records")
    worker = models.ForeignKey(
        Worker,
        on_delete=models.SET_NULL,
        related_name="attendance_records",
        null=True,
        blank=True,
    )
    rfid = models.CharField(max_length=128)

    # worker snapshot at scan time
    name = models.CharField(max_length=255)
    username = models.CharField(max_length=100)
    email = models.EmailField(blank=True, default="")
    department = models.CharField(max_length=100, blank=True, default="")
    photo = models.CharField(max_length=255, blank=True, default="")

    date = models.DateField()
    time = models.CharField(max_length=32)
    presence = models.BooleanField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "rfid", "created_at"], name="attendance_tenant_rfid_idx"),
            models.Index(fields=["tenant", "date"], name="attendance_tenant_date_idx"),
        ]

    def __str__(self):
        return f"{self.rfid} {self.date} {self.time} {'in' if self.presence else 'out'}"
