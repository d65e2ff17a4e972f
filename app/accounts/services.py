from __future__ import annotations

from dataclasses import asdict, dataclass

from common.exceptions import Forbidden


ROLE_ADMIN = "admin"
ROLE_WORKER = "worker"


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: str
    tenant_code: str
    worker_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def as_dict(self) -> dict:
        return asdict(self)


def describe_user(user) -> Actor | None:
    if user is None or not user.is_authenticated:
        return None

    tenant = getattr(user, "owned_tenant", None)
    if tenant is not None:
        return Actor(user_id=user.pk, role=ROLE_ADMIN, tenant_code=tenant.code)

    worker = getattr(user, "worker", None)
    if worker is not None:
        return Actor(
            user_id=user.pk,
            role=ROLE_WORKER,
            tenant_code=worker.tenant.code,
            worker_id=worker.pk,
        )
    return None


def resolve_actor(user) -> Actor:
    actor = describe_user(user)
    if actor is None:
        raise Forbidden("Access denied")
    return actor


def ensure_same_tenant(actor: Actor, tenant_code: str) -> None:
    if actor.tenant_code != tenant_code:
        raise Forbidden("Not authorized for this subdomain")


def issue_tokens(user) -> dict:
    from accounts.serializers import TenantTokenObtainPairSerializer

    refresh = TenantTokenObtainPairSerializer.get_token(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}
