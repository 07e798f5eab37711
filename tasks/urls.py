from django.urls import path

from .views import (
    MyTaskListView,
    ProjectTaskListView,
    TaskAssignView,
    TaskCommentListCreateView,
    TaskDetailView,
    TaskListCreateView,
)

urlpatterns = [
    path('tasks/', TaskListCreateView.as_view(), name='task-list-create'),
    path('tasks/<int:pk>/', TaskDetailView.as_view(), name='task-detail'),
    path('tasks/<int:pk>/assign/', TaskAssignView.as_view(), name='task-assign'),
    path('tasks/<int:pk>/comments/', TaskCommentListCreateView.as_view(), name='task-comments'),
    path('my-tasks/', MyTaskListView.as_view(), name='my-tasks'),
    path('projects/<int:pk>/tasks/', ProjectTaskListView.as_view(), name='project-tasks'),
]
