import django_filters

from core.filters import ScopedFilterSet
from core.query import Resource
from .models import Project, ProjectStatus


class ProjectFilter(ScopedFilterSet):
    resource = Resource.PROJECT

    status = django_filters.ChoiceFilter(choices=ProjectStatus.choices)

    class Meta:
        model = Project
        fields = []
