# manpro\tasks\stats.py
from .models import TaskStatus

UNFINISHED_STATUSES = [value for value in TaskStatus.values if value != TaskStatus.COMPLETED]


def is_overdue(due_date, status, today):
    return due_date is not None and due_date < today and status != TaskStatus.COMPLETED


def days_until_due(due_date, status, today):
    """Signed number of days left; None once completed or when there is no due date."""
    if due_date is None or status == TaskStatus.COMPLETED:
        return None
    return (due_date - today).days
