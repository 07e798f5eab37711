import django_filters
from django.contrib.auth import get_user_model

from core.filters import ScopedFilterSet
from core.query import Resource
from .models import Role, UserStatus

User = get_user_model()


class UserFilter(ScopedFilterSet):
    resource = Resource.USER

    role = django_filters.ChoiceFilter(choices=Role.choices)
    status = django_filters.ChoiceFilter(choices=UserStatus.choices)

    class Meta:
        model = User
        fields = []
