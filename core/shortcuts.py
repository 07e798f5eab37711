from core.exceptions import NotFound


def get_or_404(queryset, label, **lookup):
    """Like get_object_or_404, but raises the API's NotFound with a readable message."""
    try:
        return queryset.get(**lookup)
    except queryset.model.DoesNotExist:
        raise NotFound(f"{label} not found")
