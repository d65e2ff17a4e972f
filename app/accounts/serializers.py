from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from accounts.services import describe_user
from tenants.services import check_tenant_code, login_name


class TenantTokenObtainPairSerializer(TokenObtainPairSerializer):
    subdomain = serializers.CharField()

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        actor = describe_user(user)
        if actor is not None:
            token["role"] = actor.role
            token["tenant"] = actor.tenant_code
        return token

    def validate(self, attrs):
        subdomain = check_tenant_code(attrs.pop("subdomain", ""))
        attrs[self.username_field] = login_name(subdomain, attrs[self.username_field])
        data = super().validate(attrs)

        actor = describe_user(self.user)
        data["role"] = actor.role if actor else ""
        data["subdomain"] = subdomain
        return data
