from django.conf import settings
from django.db import models
from django.db.models import Q

from tenants.models import Tenant


class Department(models.Model):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="departments")
    name = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "name"], name="uq_department_tenant_name"),
        ]

    def __str__(self):
        return self.name


class Worker(models.Model):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="workers")
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="worker",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    username = models.CharField(max_length=100)
    email = models.EmailField(blank=True, default="")
    rfid = models.CharField(max_length=128, blank=True, default="")
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        related_name="workers",
        null=True,
        blank=True,
    )
    photo = models.CharField(max_length=255, blank=True, default="")

    total_points = models.BigIntegerField(default=0)
    topic_points = models.BigIntegerField(default=0)
    last_submission = models.JSONField(default=dict, blank=True)
    # None until the first scan; written only by the attendance engine
    last_presence = models.BooleanField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "username"], name="uq_worker_tenant_username"),
            models.UniqueConstraint(
                fields=["tenant", "email"],
                condition=~Q(email=""),
                name="uq_worker_tenant_email",
            ),
            models.UniqueConstraint(
                fields=["tenant", "rfid"],
                condition=~Q(rfid=""),
                name="uq_worker_tenant_rfid",
            ),
        ]
        indexes = [models.Index(fields=["tenant", "rfid"], name="worker_tenant_rfid_idx")]

    def __str__(self):
        return f"{self.name} ({self.username})"

    @property
    def department_name(self) -> str:
        return self.department.name if self.department_id else "Unassigned"
