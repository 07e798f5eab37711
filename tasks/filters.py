# manpro\tasks\filters.py
import django_filters
from django import forms
from django.utils import timezone

from core.filters import ScopedFilterSet
from core.query import Resource
from .models import Priority, Task, TaskStatus
from .stats import UNFINISHED_STATUSES


class IdFilter(django_filters.NumberFilter):
    """Whole-number ids only; `1.7` fails the form instead of matching id 1."""
    field_class = forms.IntegerField


class TaskFilter(ScopedFilterSet):
    resource = Resource.TASK

    status = django_filters.ChoiceFilter(choices=TaskStatus.choices)
    priority = django_filters.ChoiceFilter(choices=Priority.choices)
    project_id = IdFilter(field_name='project_id')
    assigned_to = IdFilter(field_name='assigned_to_id')
    overdue = django_filters.BooleanFilter(method='filter_overdue')

    class Meta:
        model = Task
        fields = []

    def filter_overdue(self, queryset, name, value):
        overdue = {'due_date__lt': timezone.localdate(), 'status__in': UNFINISHED_STATUSES}
        if value:
            return queryset.filter(**overdue)
        return queryset.exclude(**overdue)
