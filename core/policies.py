# manpro\core\policies.py
"""
Access rules for projects and tasks.

Every predicate takes the principal explicitly and has no side effects;
callers turn a False into an AccessDenied error.
"""
from accounts.models import Role
from projects.models import ProjectMembership


def is_admin(user):
    return getattr(user, 'role', None) == Role.ADMIN


def is_project_member(user, project):
    if user is None or project is None or user.pk is None:
        return False
    return ProjectMembership.objects.filter(project_id=project.pk, user_id=user.pk).exists()


def can_view_project(user, project):
    return is_admin(user) or is_project_member(user, project)


def can_manage_projects(user):
    """Create, update, delete and membership edits are admin-only."""
    return is_admin(user)


def can_delete_project(user):
    return is_admin(user)


def can_view_task(user, task):
    if is_admin(user):
        return True
    if task.assigned_to_id is not None and task.assigned_to_id == user.pk:
        return True
    return is_project_member(user, task.project)


def can_update_task(user, task):
    return can_view_task(user, task)


def can_create_task(user, project):
    return is_admin(user) or is_project_member(user, project)


def can_delete_task(user, task):
    if is_admin(user):
        return True
    return task.created_by_id is not None and task.created_by_id == user.pk
