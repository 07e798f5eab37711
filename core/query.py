# manpro\core\query.py
"""
Predicate composition for list endpoints.

build_query() combines three parts, all AND'd together:
  * a free-text search, OR'd across the resource's text fields
  * equality filters, each skipped when its value is missing or empty
  * visibility scoping for non-admin principals
"""
from enum import Enum

from django.db.models import Q

from core.policies import is_admin
from projects.models import ProjectMembership

# Newest first; id breaks ties between rows created in the same instant
ORDERING = ('-created_at', '-id')


class Resource(str, Enum):
    PROJECT = 'project'
    TASK = 'task'
    USER = 'user'


SEARCH_FIELDS = {
    Resource.PROJECT: ('name', 'description'),
    Resource.TASK: ('title', 'description'),
    Resource.USER: ('name', 'email'),
}


def search_q(resource, term):
    term = (term or '').strip()
    if not term:
        return Q()
    query = Q()
    for field in SEARCH_FIELDS[Resource(resource)]:
        query |= Q(**{f'{field}__icontains': term})
    return query


def equality_q(filters):
    query = Q()
    for field, value in (filters or {}).items():
        if value is None or value == '':
            continue
        query &= Q(**{field: value})
    return query


def visibility_q(resource, user):
    resource = Resource(resource)
    if resource == Resource.USER or is_admin(user):
        return Q()

    member_projects = ProjectMembership.objects.filter(user_id=user.pk).values('project_id')
    if resource == Resource.PROJECT:
        return Q(pk__in=member_projects)
    return Q(assigned_to_id=user.pk) | Q(project_id__in=member_projects)


def build_query(resource, user, search=None, filters=None):
    return visibility_q(resource, user) & search_q(resource, search) & equality_q(filters)
