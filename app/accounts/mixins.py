from __future__ import annotations

from accounts.services import Actor, ensure_same_tenant, resolve_actor
from common.tenancy import requested_tenant_code
from tenants.models import Tenant
from tenants.services import check_tenant_code, resolve_tenant


class TenantScopedViewMixin:
    """Resolves the calling actor and its tenant once per request."""

    def get_actor(self) -> Actor:
        if not hasattr(self, "_actor"):
            self._actor = resolve_actor(self.request.user)
        return self._actor

    def get_tenant(self) -> Tenant:
        if not hasattr(self, "_tenant"):
            self._tenant = resolve_tenant(self.get_actor().tenant_code)
        return self._tenant

    def get_tenant_code(self) -> str:
        # the tenant named by the request, defaulting to the caller's own
        actor = self.get_actor()
        tenant_code = check_tenant_code(requested_tenant_code(self.request) or actor.tenant_code)
        ensure_same_tenant(actor, tenant_code)
        return tenant_code
