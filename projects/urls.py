from django.urls import path

from .views import ProjectDetailView, ProjectListCreateView, ProjectMemberRemoveView, ProjectMembersView

urlpatterns = [
    path('projects/', ProjectListCreateView.as_view(), name='project-list-create'),
    path('projects/<int:pk>/', ProjectDetailView.as_view(), name='project-detail'),
    path('projects/<int:pk>/members/', ProjectMembersView.as_view(), name='project-members'),
    path('projects/<int:pk>/members/<int:user_id>/', ProjectMemberRemoveView.as_view(), name='project-member-remove'),
]
