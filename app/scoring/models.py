from django.db import models

from tenants.models import Tenant
from workforce.models import Worker


class Topic(models.Model):
    DEPARTMENT_ALL = "all"

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="topics")
    name = models.CharField(max_length=255)
    points = models.IntegerField(default=0)
    department = models.CharField(max_length=100, default=DEPARTMENT_ALL)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "name"], name="uq_topic_tenant_name"),
        ]

    def __str__(self):
        return f"{self.name} ({self.points})"


class Task(models.Model):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="tasks")
    worker = models.ForeignKey(Worker, on_delete=models.CASCADE, related_name="tasks")
    data = models.JSONField(default=dict, blank=True)
    topics = models.ManyToManyField(Topic, related_name="tasks", blank=True)
    points = models.IntegerField(default=0)

    is_custom = models.BooleanField(default=False)
    description = models.TextField(blank=True, default="")
    # only set on custom tasks
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "worker", "created_at"], name="task_tenant_worker_idx"),
            models.Index(fields=["tenant", "is_custom", "status"], name="task_tenant_custom_idx"),
        ]

    def __str__(self):
        return f"Task<{self.pk}:{self.worker_id}:{self.points}>"
