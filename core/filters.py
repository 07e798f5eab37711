# manpro\core\filters.py
import django_filters

from core.query import ORDERING, build_query


class ScopedFilterSet(django_filters.FilterSet):
    """
    Parses list query parameters and hands them to build_query().

    Subclasses set `resource` and declare their equality filters. `search` is
    matched against the resource's text fields; filters declared with a
    `method` are applied as-is; every other filter becomes an equality
    predicate on its field_name. Results are scoped to what the requesting
    user may see and ordered newest first.
    """
    resource = None

    search = django_filters.CharFilter(label='Search')

    def filter_queryset(self, queryset):
        search = None
        equality = {}
        for name, value in self.form.cleaned_data.items():
            declared = self.filters[name]
            if name == 'search':
                search = value
            elif declared.method:
                queryset = declared.filter(queryset, value)
            else:
                equality[declared.field_name] = value

        user = getattr(self.request, 'user', None)
        return queryset.filter(build_query(self.resource, user, search, equality)).order_by(*ORDERING)
