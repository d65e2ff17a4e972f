from rest_framework import serializers

from attendance.models import AttendanceRecord


class AttendanceRecordSerializer(serializers.ModelSerializer):
    subdomain = serializers.SlugRelatedField(source='tenant', slug_field='code', read_only=True)

    class Meta:
        model = AttendanceRecord
        fields = [
            'id',
            'worker',
            'subdomain',
            'rfid',
            'name',
            'username',
            'email',
            'department',
            'photo',
            'date',
            'time',
            'presence',
            'created_at',
        ]
        read_only_fields = fields
