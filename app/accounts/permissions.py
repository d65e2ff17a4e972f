from rest_framework.permissions import BasePermission

from accounts.services import ROLE_ADMIN, ROLE_WORKER, describe_user


class IsTenantMember(BasePermission):
    def has_permission(self, request, view):
        return describe_user(request.user) is not None


class IsTenantAdmin(BasePermission):
    def has_permission(self, request, view):
        actor = describe_user(request.user)
        return actor is not None and actor.role == ROLE_ADMIN


class IsWorker(BasePermission):
    def has_permission(self, request, view):
        actor = describe_user(request.user)
        return actor is not None and actor.role == ROLE_WORKER
