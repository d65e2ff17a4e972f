from rest_framework import serializers

from tenants.models import Tenant
from tenants.services import is_available, is_valid_subdomain


SUBDOMAIN_RULES = (
    "Subdomain must be at least 5 characters long and can only contain letters, numbers, "
    "and hyphens (-), but cannot start or end with a hyphen"
)


class TenantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = ['id', 'name', 'code', 'created_at']


class SubdomainSerializer(serializers.Serializer):
    subdomain = serializers.CharField(trim_whitespace=True)

    def validate_subdomain(self, value):
        if not is_valid_subdomain(value):
            raise serializers.ValidationError(SUBDOMAIN_RULES)
        return value


class TenantRegistrationSerializer(SubdomainSerializer):
    name = serializers.CharField(required=False, allow_blank=True, default="")
    username = serializers.CharField()
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)

    def validate_subdomain(self, value):
        value = super().validate_subdomain(value)
        if not is_available(value):
            raise serializers.ValidationError("Subdomain already exists")
        return value
