from drf_yasg.utils import swagger_auto_schema
from rest_framework import generics, permissions, status
from rest_framework.views import APIView

from accounts.serializers import UserSummarySerializer
from core import policies
from core.exceptions import AccessDenied
from core.responses import success_response
from core.shortcuts import get_or_404
from .filters import ProjectFilter
from .models import Project
from .serializers import MemberIdsSerializer, ProjectSerializer, ProjectWriteSerializer
from .stats import with_task_counts
from . import membership, services


def project_queryset():
    return with_task_counts(
        Project.objects.select_related('created_by').prefetch_related('members')
    )


def get_visible_project(user, pk):
    """404 when the project does not exist, 403 when the user may not see it."""
    project = get_or_404(project_queryset(), 'Project', pk=pk)
    if not policies.can_view_project(user, project):
        raise AccessDenied("You do not have access to this project")
    return project


def require_project_manager(user):
    if not policies.can_manage_projects(user):
        raise AccessDenied("Only admins can manage projects")


class ProjectListCreateView(generics.ListCreateAPIView):
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = ProjectFilter

    def get_queryset(self):
        return project_queryset()

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return ProjectWriteSerializer
        return ProjectSerializer

    @swagger_auto_schema(
        operation_description="Create a project (admin only)",
        request_body=ProjectWriteSerializer,
        responses={
            201: ProjectSerializer(),
            403: "Access denied",
            422: "Validation failed"
        }
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        require_project_manager(request.user)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        project = services.create_project(request.user, serializer.validated_data)
        project = project_queryset().get(pk=project.pk)
        return success_response(
            ProjectSerializer(project).data,
            message='Project created successfully',
            status=status.HTTP_201_CREATED
        )


class ProjectDetailView(generics.RetrieveUpdateDestroyAPIView):
    permission_classes = [permissions.IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method in ('PUT', 'PATCH'):
            return ProjectWriteSerializer
        return ProjectSerializer

    def get_object(self):
        return get_visible_project(self.request.user, self.kwargs['pk'])

    def retrieve(self, request, *args, **kwargs):
        return success_response(ProjectSerializer(self.get_object()).data)

    def update(self, request, *args, **kwargs):
        project = self.get_object()
        require_project_manager(request.user)
        serializer = self.get_serializer(project, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        project = services.update_project(request.user, project, serializer.validated_data)
        project = project_queryset().get(pk=project.pk)
        return success_response(ProjectSerializer(project).data, message='Project updated successfully')

    def destroy(self, request, *args, **kwargs):
        project = self.get_object()
        if not policies.can_delete_project(request.user):
            raise AccessDenied("Only admins can delete projects")
        services.delete_project(request.user, project)
        return success_response(message='Project deleted successfully')


class ProjectMembersView(APIView):
    """Lists the members of a project, or attaches more of them."""
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List project members",
        responses={200: UserSummarySerializer(many=True)}
    )
    def get(self, request, pk):
        project = get_visible_project(request.user, pk)
        return success_response(UserSummarySerializer(project.members.all(), many=True).data)

    @swagger_auto_schema(
        operation_description="Add users to a project (admin)",
        request_body=MemberIdsSerializer,
        responses={200: UserSummarySerializer(many=True), 422: "Unknown user ids"}
    )
    def post(self, request, pk):
        project = get_or_404(Project.objects.all(), 'Project', pk=pk)
        require_project_manager(request.user)
        serializer = MemberIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership.attach(project, serializer.validated_data['user_ids'])
        return success_response(
            UserSummarySerializer(project.members.all(), many=True).data,
            message='Members added successfully'
        )


class ProjectMemberRemoveView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Remove a user from a project (admin)",
        responses={200: "Member removed", 422: "Unknown user id"}
    )
    def delete(self, request, pk, user_id):
        project = get_or_404(Project.objects.all(), 'Project', pk=pk)
        require_project_manager(request.user)
        membership.detach(project, [user_id], field='user_id')
        return success_response(message='Member removed successfully')
