# manpro\tasks\services.py
import logging

from core import policies
from core.exceptions import AccessDenied, ValidationFailed
from .models import Comment, Task
from .serializers import ASSIGNEE_NOT_MEMBER

logger = logging.getLogger(__name__)


def create_task(principal, data):
    project = data['project']
    if not policies.can_create_task(principal, project):
        raise AccessDenied("You can only create tasks in projects you belong to")

    task = Task.objects.create(created_by=principal, **data)
    logger.info(f"Task {task.pk} created in project {project.pk} by {principal.pk}")
    return task


def update_task(principal, task, data):
    """Partial update; moving the task to another project needs access to that project."""
    if not policies.can_update_task(principal, task):
        raise AccessDenied("You do not have access to this task")

    target = data.get('project')
    if target is not None and target.pk != task.project_id and not policies.can_create_task(principal, target):
        raise AccessDenied("You do not have access to the target project")

    for attr, value in data.items():
        setattr(task, attr, value)
    task.save()
    logger.info(f"Task {task.pk} updated by {principal.pk}")
    return task


def assign_task(principal, task, assignee):
    """Sets or clears the assignee. A rejected assignee leaves the task untouched."""
    if not policies.can_update_task(principal, task):
        raise AccessDenied("You do not have access to this task")
    if assignee is not None and not policies.is_project_member(assignee, task.project):
        raise ValidationFailed({'assigned_to': [ASSIGNEE_NOT_MEMBER]})

    task.assigned_to = assignee
    task.save(update_fields=['assigned_to', 'updated_at'])
    logger.info(f"Task {task.pk} assigned to {assignee.pk if assignee else None} by {principal.pk}")
    return task


def delete_task(principal, task):
    if not policies.can_delete_task(principal, task):
        raise AccessDenied("Only admins or the task creator can delete this task")
    task_id = task.pk
    task.delete()
    logger.info(f"Task {task_id} deleted by {principal.pk}")


def add_comment(principal, task, content):
    if not policies.can_view_task(principal, task):
        raise AccessDenied("You do not have access to this task")
    comment = Comment.objects.create(task=task, user=principal, content=content)
    logger.info(f"Comment {comment.pk} added to task {task.pk} by {principal.pk}")
    return comment
