from rest_framework import serializers

from scoring.models import Task, Topic
from scoring.services.points import MAX_TASK_POINTS, base_points, coerce_points, in_points_range


class TopicSerializer(serializers.ModelSerializer):
    points = serializers.IntegerField(
        required=False, default=0, min_value=-MAX_TASK_POINTS, max_value=MAX_TASK_POINTS
    )
    department = serializers.CharField(required=False, allow_blank=True, default=Topic.DEPARTMENT_ALL)

    class Meta:
        model = Topic
        fields = ['id', 'name', 'points', 'department', 'created_at']
        read_only_fields = ['created_at']

    def validate_name(self, value):
        name = value.strip()
        if not name:
            raise serializers.ValidationError('Topic name cannot be empty')

        tenant = self.context['tenant']
        existing = Topic.objects.filter(tenant=tenant, name__iexact=name)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError('A topic with this name already exists')
        return name

    def validate_department(self, value):
        return value.strip() or Topic.DEPARTMENT_ALL


class TopicSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Topic
        fields = ['id', 'name', 'points']


class TaskSerializer(serializers.ModelSerializer):
    subdomain = serializers.SlugRelatedField(source='tenant', slug_field='code', read_only=True)
    worker_name = serializers.CharField(source='worker.name', read_only=True)
    department = serializers.CharField(source='worker.department_name', read_only=True)
    topics = TopicSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Task
        fields = [
            'id',
            'subdomain',
            'worker',
            'worker_name',
            'department',
            'data',
            'topics',
            'points',
            'is_custom',
            'description',
            'status',
            'created_at',
        ]
        read_only_fields = fields


class TaskSubmissionSerializer(serializers.Serializer):
    data = serializers.JSONField(required=False, allow_null=True, default=dict)
    topics = serializers.ListField(child=serializers.JSONField(), required=False, default=list)

    def validate_data(self, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError('Task data must be an object of field names to values')
        for key, item in value.items():
            if not isinstance(item, (str, int, float)):
                raise serializers.ValidationError(f'Value of "{key}" must be a number or a string')
            if not in_points_range(coerce_points(item)):
                raise serializers.ValidationError(f'Value of "{key}" is out of range')
        if not in_points_range(base_points(value)):
            raise serializers.ValidationError('Task points are out of range')
        return value


class CustomTaskSerializer(serializers.Serializer):
    description = serializers.CharField()


class TotalsSerializer(serializers.Serializer):
    worker = serializers.IntegerField(source='worker_id')
    total_points = serializers.IntegerField()
    topic_points = serializers.IntegerField()
    last_submission = serializers.JSONField()
