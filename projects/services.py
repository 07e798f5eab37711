import logging

from django.db import transaction

from . import membership
from .models import Project

logger = logging.getLogger(__name__)


def create_project(principal, data):
    """Creates a project owned by `principal`, attaching `member_ids` when given."""
    data = dict(data)
    member_ids = data.pop('member_ids', None)
    # Unknown ids fail before the project row exists
    membership.resolve_user_ids(member_ids, 'member_ids')

    with transaction.atomic():
        project = Project.objects.create(created_by=principal, **data)
        if member_ids:
            membership.attach(project, member_ids, field='member_ids')

    logger.info(f"Project {project.pk} created by {principal.pk}")
    return project


def update_project(principal, project, data):
    """
    Applies a partial update. `member_ids` present as a list syncs the
    membership to exactly that list, present as None detaches everyone,
    absent leaves it untouched.
    """
    data = dict(data)
    sync_members = 'member_ids' in data
    member_ids = data.pop('member_ids', None)
    if sync_members:
        membership.resolve_user_ids(member_ids, 'member_ids')

    with transaction.atomic():
        for attr, value in data.items():
            setattr(project, attr, value)
        project.save()
        if sync_members:
            membership.sync(project, member_ids, field='member_ids')

    logger.info(f"Project {project.pk} updated by {principal.pk}")
    return project


def delete_project(principal, project):
    project_id = project.pk
    project.delete()
    logger.info(f"Project {project_id} deleted by {principal.pk}")
