# manpro\projects\stats.py
from django.db.models import Count, Q
from django.utils import timezone

from tasks.models import TaskStatus
from tasks.stats import UNFINISHED_STATUSES


def with_task_counts(queryset, today=None):
    """Annotates task_total, task_completed and task_overdue on a Project queryset."""
    today = today or timezone.localdate()
    return queryset.annotate(
        task_total=Count('tasks', distinct=True),
        task_completed=Count('tasks', filter=Q(tasks__status=TaskStatus.COMPLETED), distinct=True),
        task_overdue=Count(
            'tasks',
            filter=Q(tasks__due_date__lt=today, tasks__status__in=UNFINISHED_STATUSES),
            distinct=True
        ),
    )


def project_progress(total, completed):
    """Percentage of completed tasks, 0 for a project without tasks."""
    if not total:
        return 0
    return round(completed / total * 100, 2)
