# manpro\tasks\views.py
from django.db.models import Prefetch
from drf_yasg.utils import swagger_auto_schema
from rest_framework import generics, permissions, status
from rest_framework.views import APIView

from core import policies
from core.exceptions import AccessDenied
from core.responses import success_response
from core.shortcuts import get_or_404
from projects.views import get_visible_project
from .filters import TaskFilter
from .models import Comment, Task
from .serializers import (
    CommentSerializer,
    TaskAssignSerializer,
    TaskDetailSerializer,
    TaskSerializer,
    TaskWriteSerializer,
)
from . import services


def task_queryset():
    return Task.objects.select_related('project', 'assigned_to', 'created_by')


def get_visible_task(user, pk, with_comments=False):
    """404 when the task does not exist, 403 when the user may not see it."""
    queryset = task_queryset()
    if with_comments:
        queryset = queryset.prefetch_related(
            Prefetch('comments', queryset=Comment.objects.select_related('user'))
        )
    task = get_or_404(queryset, 'Task', pk=pk)
    if not policies.can_view_task(user, task):
        raise AccessDenied("You do not have access to this task")
    return task


class TaskListCreateView(generics.ListCreateAPIView):
    """
    Lists the tasks visible to the requesting user.

    Supports ?search= over title and description, plus status, priority,
    project_id, assigned_to and overdue filters.
    """
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = TaskFilter

    def get_queryset(self):
        return task_queryset()

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return TaskWriteSerializer
        return TaskSerializer

    @swagger_auto_schema(
        operation_description="Create a task in a project the user belongs to",
        request_body=TaskWriteSerializer,
        responses={
            201: TaskSerializer(),
            403: "Access denied",
            422: "Validation failed"
        }
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = services.create_task(request.user, serializer.validated_data)
        return success_response(
            TaskSerializer(task).data,
            message='Task created successfully',
            status=status.HTTP_201_CREATED
        )


class TaskDetailView(generics.RetrieveUpdateDestroyAPIView):
    permission_classes = [permissions.IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method in ('PUT', 'PATCH'):
            return TaskWriteSerializer
        return TaskDetailSerializer

    def get_object(self):
        return get_visible_task(self.request.user, self.kwargs['pk'], with_comments=self.request.method == 'GET')

    def retrieve(self, request, *args, **kwargs):
        return success_response(TaskDetailSerializer(self.get_object()).data)

    def update(self, request, *args, **kwargs):
        # PUT and PATCH both leave absent fields untouched
        task = self.get_object()
        serializer = self.get_serializer(task, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        task = services.update_task(request.user, task, serializer.validated_data)
        return success_response(TaskSerializer(task).data, message='Task updated successfully')

    def destroy(self, request, *args, **kwargs):
        services.delete_task(request.user, self.get_object())
        return success_response(message='Task deleted successfully')


class TaskAssignView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Assign a task to a member of its project, or clear the assignee with null",
        request_body=TaskAssignSerializer,
        responses={
            200: TaskSerializer(),
            403: "Access denied",
            422: "Assignee is not a project member"
        }
    )
    def post(self, request, pk):
        task = get_visible_task(request.user, pk)
        serializer = TaskAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = services.assign_task(request.user, task, serializer.validated_data['assigned_to'])
        return success_response(TaskSerializer(task).data, message='Task assigned successfully')


class TaskCommentListCreateView(generics.ListCreateAPIView):
    serializer_class = CommentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_task(self):
        if not hasattr(self, '_task'):
            self._task = get_visible_task(self.request.user, self.kwargs['pk'])
        return self._task

    def get_queryset(self):
        return Comment.objects.filter(task=self.get_task()).select_related('user').order_by('-created_at', '-id')

    def create(self, request, *args, **kwargs):
        task = self.get_task()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = services.add_comment(request.user, task, serializer.validated_data['content'])
        return success_response(
            CommentSerializer(comment).data,
            message='Comment added successfully',
            status=status.HTTP_201_CREATED
        )


class MyTaskListView(generics.ListAPIView):
    """Tasks assigned to the requesting user, with the same filters as the task list."""
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = TaskFilter

    def get_queryset(self):
        return task_queryset().filter(assigned_to=self.request.user)


class ProjectTaskListView(generics.ListAPIView):
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = TaskFilter

    def get_queryset(self):
        project = get_visible_project(self.request.user, self.kwargs['pk'])
        return task_queryset().filter(project=project)
