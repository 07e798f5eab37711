# manpro\projects\membership.py
"""
Adds, removes and synchronises the users attached to a project.

Every operation resolves all requested user ids before touching the
database: a single unknown id fails the whole call with ValidationFailed and
nothing is written. Writes run in one transaction with the project row
locked, so concurrent edits of the same project cannot interleave.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from core.exceptions import ValidationFailed
from tasks.models import Task
from .models import Project, ProjectMembership

logger = logging.getLogger(__name__)

User = get_user_model()


def _normalize_ids(user_ids, field):
    ids = []
    errors = []
    for raw in user_ids:
        if isinstance(raw, bool):
            errors.append(f"The selected user id {raw} is invalid.")
            continue
        try:
            user_id = int(raw)
        except (TypeError, ValueError):
            errors.append(f"The selected user id {raw} is invalid.")
            continue
        if user_id not in ids:
            ids.append(user_id)
    if errors:
        raise ValidationFailed({field: errors})
    return ids


def resolve_user_ids(user_ids, field='user_ids'):
    """Returns the de-duplicated ids, or raises ValidationFailed naming every unknown one."""
    if user_ids is None:
        return []
    if not isinstance(user_ids, (list, tuple, set)):
        raise ValidationFailed({field: ["Expected a list of user ids."]})

    ids = _normalize_ids(user_ids, field)
    found = set(User.objects.filter(pk__in=ids).values_list('pk', flat=True))
    missing = [user_id for user_id in ids if user_id not in found]
    if missing:
        raise ValidationFailed({
            field: [f"The selected user id {user_id} is invalid." for user_id in missing]
        })
    return ids


def member_ids(project):
    return set(ProjectMembership.objects.filter(project_id=project.pk).values_list('user_id', flat=True))


def _lock(project):
    return Project.objects.select_for_update().get(pk=project.pk)


def _add(project, user_ids):
    current = member_ids(project)
    new_ids = [user_id for user_id in user_ids if user_id not in current]
    ProjectMembership.objects.bulk_create(
        [ProjectMembership(project_id=project.pk, user_id=user_id) for user_id in new_ids],
        ignore_conflicts=True
    )
    return new_ids


def _remove(project, user_ids):
    if not user_ids:
        return 0
    # Assignees must stay project members
    Task.objects.filter(project_id=project.pk, assigned_to_id__in=user_ids).update(assigned_to=None)
    deleted, _ = ProjectMembership.objects.filter(project_id=project.pk, user_id__in=user_ids).delete()
    return deleted


def attach(project, user_ids, field='user_ids'):
    ids = resolve_user_ids(user_ids, field)
    with transaction.atomic():
        _lock(project)
        added = _add(project, ids)
    logger.info(f"Project {project.pk}: attached users {added}")
    return member_ids(project)


def sync(project, user_ids, field='member_ids'):
    """Makes the membership exactly `user_ids`; None detaches everyone."""
    ids = resolve_user_ids(user_ids, field)
    with transaction.atomic():
        _lock(project)
        current = member_ids(project)
        removed = [user_id for user_id in current if user_id not in ids]
        _remove(project, removed)
        added = _add(project, ids)
    logger.info(f"Project {project.pk}: synced members, added {added}, removed {removed}")
    return member_ids(project)


def detach(project, user_ids, field='user_ids'):
    ids = resolve_user_ids(user_ids, field)
    with transaction.atomic():
        _lock(project)
        removed = _remove(project, ids)
    logger.info(f"Project {project.pk}: detached {removed} of users {ids}")
    return member_ids(project)
