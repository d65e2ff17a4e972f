from __future__ import annotations

import logging
import re

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from common.exceptions import InvalidTenant
from tenants.models import Tenant


logger = logging.getLogger(__name__)

SUBDOMAIN_PATTERN = re.compile(r"^[A-Za-z0-9-]{5,}$")


def reserved_tenant_code() -> str:
    return getattr(settings, "WORKFORCE_RESERVED_TENANT", "main")


def login_name(tenant_code: str, username: str) -> str:
    """Django auth username for a tenant-scoped login."""
    return f"{username}@{tenant_code}"


def check_tenant_code(code: str | None) -> str:
    normalized = (code or "").strip()
    if not normalized or normalized == reserved_tenant_code():
        raise InvalidTenant()
    return normalized


def resolve_tenant(code: str | None) -> Tenant:
    normalized = check_tenant_code(code)
    tenant = Tenant.objects.filter(code=normalized).first()
    if tenant is None:
        logger.warning("Unknown tenant requested", extra={"tenant": normalized})
        raise InvalidTenant("Unknown tenant")
    return tenant


def is_valid_subdomain(code: str) -> bool:
    if not code or code == reserved_tenant_code():
        return False
    return bool(SUBDOMAIN_PATTERN.match(code)) and not code.startswith("-") and not code.endswith("-")


def is_available(code: str) -> bool:
    return not Tenant.objects.filter(code=code).exists()


def register_tenant(*, code: str, name: str, username: str, email: str, password: str) -> Tenant:
    user_model = get_user_model()
    with transaction.atomic():
        owner = user_model.objects.create_user(
            username=login_name(code, username),
            email=email,
            password=password,
        )
        tenant = Tenant.objects.create(name=name or code, code=code, owner=owner)

    logger.info("Tenant registered", extra={"tenant": code})
    return tenant
