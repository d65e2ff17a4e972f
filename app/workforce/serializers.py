from rest_framework import serializers

from workforce.models import Department, Worker
from workforce.services import create_worker, identity_conflicts, update_worker


class DepartmentSerializer(serializers.ModelSerializer):
    worker_count = serializers.SerializerMethodField()

    class Meta:
        model = Department
        fields = ['id', 'name', 'worker_count', 'created_at']
        read_only_fields = ['created_at']

    def get_worker_count(self, obj):
        count = getattr(obj, 'worker_count', None)
        return obj.workers.count() if count is None else count

    def validate_name(self, value):
        name = value.strip().lower()
        if len(name) < 2:
            raise serializers.ValidationError('Department name must be at least 2 characters long')

        existing = Department.objects.filter(tenant=self.context['tenant'], name=name)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError('A department with this name already exists')
        return name


class WorkerSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, min_length=6, trim_whitespace=True)
    department_name = serializers.CharField(read_only=True)

    class Meta:
        model = Worker
        fields = [
            'id',
            'name',
            'username',
            'email',
            'rfid',
            'department',
            'department_name',
            'photo',
            'password',
            'total_points',
            'topic_points',
            'last_submission',
            'created_at',
        ]
        read_only_fields = ['total_points', 'topic_points', 'last_submission', 'created_at']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        tenant = self.context.get('tenant')
        if tenant is not None:
            self.fields['department'].queryset = Department.objects.filter(tenant=tenant)

    def validate_name(self, value):
        name = value.strip()
        if not name:
            raise serializers.ValidationError('Name is required and cannot be empty')
        return name

    def validate_username(self, value):
        return value.strip()

    def validate_rfid(self, value):
        return value.strip()

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'Password is required and cannot be empty'})

        conflicts = identity_conflicts(
            self.context['tenant'],
            attrs,
            exclude_pk=self.instance.pk if self.instance is not None else None,
        )
        if conflicts:
            raise serializers.ValidationError(conflicts)
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password')
        return create_worker(self.context['tenant'], password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        return update_worker(instance, password=password, **validated_data)
