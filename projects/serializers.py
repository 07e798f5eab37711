from django.utils import timezone
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from tasks.models import TaskStatus
from .models import Project, ProjectStatus
from .stats import UNFINISHED_STATUSES, project_progress


class ProjectSerializer(serializers.ModelSerializer):
    created_by = UserSummarySerializer(read_only=True)
    members = UserSummarySerializer(many=True, read_only=True)
    tasks_count = serializers.SerializerMethodField()
    completed_tasks_count = serializers.SerializerMethodField()
    overdue_tasks_count = serializers.SerializerMethodField()
    progress = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            'id', 'name', 'description', 'start_date', 'end_date', 'status',
            'created_by', 'members', 'tasks_count', 'completed_tasks_count',
            'overdue_tasks_count', 'progress', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    # Counts come from stats.with_task_counts() when the queryset was annotated
    def get_tasks_count(self, obj):
        if hasattr(obj, 'task_total'):
            return obj.task_total
        return obj.tasks.count()

    def get_completed_tasks_count(self, obj):
        if hasattr(obj, 'task_completed'):
            return obj.task_completed
        return obj.tasks.filter(status=TaskStatus.COMPLETED).count()

    def get_overdue_tasks_count(self, obj):
        if hasattr(obj, 'task_overdue'):
            return obj.task_overdue
        return obj.tasks.filter(
            due_date__lt=timezone.localdate(), status__in=UNFINISHED_STATUSES
        ).count()

    def get_progress(self, obj):
        return project_progress(self.get_tasks_count(obj), self.get_completed_tasks_count(obj))


class ProjectWriteSerializer(serializers.ModelSerializer):
    status = serializers.ChoiceField(choices=ProjectStatus.choices, required=False)
    member_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_null=True,
        required=False,
        write_only=True
    )

    class Meta:
        model = Project
        fields = ['name', 'description', 'start_date', 'end_date', 'status', 'member_ids']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # New projects must state their status
        self.fields['status'].required = self.instance is None

    def validate(self, data):
        """End date may not fall before start date, including values already stored."""
        start_date = data.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = data.get('end_date', getattr(self.instance, 'end_date', None))

        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError(
                {"end_date": ["The end date must be a date after or equal to start date."]}
            )
        return data


class MemberIdsSerializer(serializers.Serializer):
    user_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
