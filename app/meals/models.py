from django.conf import settings
from django.db import models
from django.utils import timezone

from tenants.models import Tenant
from workforce.models import Worker


class MealSettings(models.Model):
    tenant = models.OneToOneField(Tenant, on_delete=models.CASCADE, related_name="meal_settings")
    food_requests_enabled = models.BooleanField(default=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        state = "enabled" if self.food_requests_enabled else "disabled"
        return f"{self.tenant.code}: food requests {state}"


class FoodRequest(models.Model):
    STATUS_FULFILLED = "fulfilled"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_FULFILLED, "Fulfilled"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="food_requests")
    worker = models.ForeignKey(Worker, on_delete=models.CASCADE, related_name="food_requests")
    # calendar day in the workforce time zone
    date = models.DateField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_FULFILLED)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "worker", "date"], name="uq_food_request_worker_day"),
        ]
        indexes = [models.Index(fields=["tenant", "date"], name="food_request_tenant_date_idx")]

    def __str__(self):
        return f"{self.worker_id} {self.date} {self.status}"
