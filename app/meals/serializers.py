from rest_framework import serializers

from meals.models import FoodRequest


class FoodRequestSerializer(serializers.ModelSerializer):
    subdomain = serializers.SlugRelatedField(source='tenant', slug_field='code', read_only=True)
    worker_name = serializers.CharField(source='worker.name', read_only=True)
    department = serializers.CharField(source='worker.department_name', read_only=True)

    class Meta:
        model = FoodRequest
        fields = ['id', 'subdomain', 'worker', 'worker_name', 'department', 'date', 'status', 'created_at']
        read_only_fields = fields
