# manpro\tasks\serializers.py
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from core.policies import is_project_member
from projects.models import Project
from .models import Comment, Priority, Task, TaskStatus
from .stats import days_until_due, is_overdue

User = get_user_model()

ASSIGNEE_NOT_MEMBER = "The assigned user must be a member of the project."


class ProjectSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = ['id', 'name', 'status']
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'task', 'user', 'content', 'created_at', 'updated_at']
        read_only_fields = ['task', 'user', 'created_at', 'updated_at']
        extra_kwargs = {
            'content': {'required': True, 'allow_blank': False}
        }


class TaskSerializer(serializers.ModelSerializer):
    project = ProjectSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    created_by = UserSummarySerializer(read_only=True)
    is_overdue = serializers.SerializerMethodField()
    days_until_due = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = [
            'id', 'project', 'title', 'description', 'status', 'priority',
            'due_date', 'assigned_to', 'created_by', 'is_overdue',
            'days_until_due', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_is_overdue(self, obj):
        return is_overdue(obj.due_date, obj.status, timezone.localdate())

    def get_days_until_due(self, obj):
        return days_until_due(obj.due_date, obj.status, timezone.localdate())


class TaskDetailSerializer(TaskSerializer):
    comments = CommentSerializer(many=True, read_only=True)

    class Meta(TaskSerializer.Meta):
        fields = TaskSerializer.Meta.fields + ['comments']
        read_only_fields = fields


class TaskWriteSerializer(serializers.ModelSerializer):
    project_id = serializers.PrimaryKeyRelatedField(source='project', queryset=Project.objects.all())
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        allow_null=True,
        required=False
    )
    status = serializers.ChoiceField(choices=TaskStatus.choices, required=False)
    priority = serializers.ChoiceField(choices=Priority.choices, required=False)

    class Meta:
        model = Task
        fields = ['project_id', 'title', 'description', 'status', 'priority', 'due_date', 'assigned_to']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # New tasks must state their status and priority
        for name in ('status', 'priority'):
            self.fields[name].required = self.instance is None

    def validate_due_date(self, value):
        # Only new tasks are held to a future due date
        if self.instance is None and value is not None and value <= timezone.localdate():
            raise serializers.ValidationError("The due date must be a date after today.")
        return value

    def validate(self, data):
        """The assignee, new or kept, must belong to the task's (possibly new) project."""
        project = data.get('project', getattr(self.instance, 'project', None))
        assignee = data.get('assigned_to', getattr(self.instance, 'assigned_to', None))

        if assignee is not None and not is_project_member(assignee, project):
            raise serializers.ValidationError({'assigned_to': [ASSIGNEE_NOT_MEMBER]})
        return data


class TaskAssignSerializer(serializers.Serializer):
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), allow_null=True)
