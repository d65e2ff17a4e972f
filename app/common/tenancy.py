from __future__ import annotations

from rest_framework.request import Request


def requested_tenant_code(request: Request) -> str:
    """Tenant code named by the caller: body, then query string, then header."""
    for source in (request.data, request.query_params):
        if hasattr(source, "get"):
            value = source.get("subdomain") or source.get("tenant")
            if value:
                return str(value).strip()
    return request.headers.get("X-TENANT-CODE", "").strip()
