from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date

from common.clock import local_date
from common.exceptions import DuplicateFoodRequest, FoodRequestsDisabled, InvalidDateRange
from meals.models import FoodRequest, MealSettings
from tenants.models import Tenant
from tenants.services import resolve_tenant
from workforce.services import get_worker


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitFoodRequestCommand:
    tenant_code: str
    worker_id: int
    now: datetime | None = None


def _meal_settings(tenant: Tenant, *, for_update: bool = False) -> MealSettings:
    # food requests are enabled until an admin first switches them off
    MealSettings.objects.get_or_create(tenant=tenant)
    queryset = MealSettings.objects.filter(tenant=tenant)
    if for_update:
        queryset = queryset.select_for_update()
    return queryset.get()


def food_requests_enabled(tenant_code: str) -> bool:
    return _meal_settings(resolve_tenant(tenant_code)).food_requests_enabled


def toggle_food_requests(tenant_code: str, user=None) -> bool:
    tenant = resolve_tenant(tenant_code)
    with transaction.atomic():
        meal_settings = _meal_settings(tenant, for_update=True)
        meal_settings.food_requests_enabled = not meal_settings.food_requests_enabled
        meal_settings.updated_by = user
        meal_settings.save(update_fields=["food_requests_enabled", "updated_by", "updated_at"])

    logger.info(
        "Food requests toggled",
        extra={"tenant": tenant.code, "enabled": meal_settings.food_requests_enabled},
    )
    return meal_settings.food_requests_enabled


def submit_food_request(command: SubmitFoodRequestCommand) -> FoodRequest:
    """One request per worker per local calendar day, while the tenant has them enabled."""
    tenant = resolve_tenant(command.tenant_code)
    moment = command.now or timezone.now()
    day = local_date(moment)

    with transaction.atomic():
        # the worker row lock serializes a worker's own double submissions
        worker = get_worker(tenant, command.worker_id, for_update=True)
        if not _meal_settings(tenant).food_requests_enabled:
            raise FoodRequestsDisabled()
        if FoodRequest.objects.filter(tenant=tenant, worker=worker, date=day).exists():
            raise DuplicateFoodRequest()
        food_request = FoodRequest.objects.create(tenant=tenant, worker=worker, date=day, created_at=moment)

    logger.info(
        "Food request submitted",
        extra={"tenant": tenant.code, "worker_id": worker.pk, "date": day.isoformat()},
    )
    return food_request


def _requested_day(raw: str | None) -> date:
    value = (raw or "").strip()
    if not value:
        return local_date()
    try:
        day = parse_date(value)
    except ValueError:
        day = None
    if day is None:
        raise InvalidDateRange(f"Invalid date: {value}")
    return day


def list_food_requests(tenant_code: str, day_raw: str | None = None) -> QuerySet[FoodRequest]:
    """Requests of one local day, today unless a YYYY-MM-DD ``day_raw`` is given."""
    tenant = resolve_tenant(tenant_code)
    return (
        FoodRequest.objects.select_related("tenant", "worker__department")
        .filter(tenant=tenant, date=_requested_day(day_raw))
        .order_by("created_at", "id")
    )
