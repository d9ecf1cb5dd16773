import django_filters
from django.db.models import Q


class TransactionFilter(django_filters.FilterSet):
    """Filters shared by the contribution, income and expense lists"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    start_date = django_filters.DateFilter(field_name='payment_at', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='payment_at', lookup_expr='date__lte')
    payment_method = django_filters.CharFilter(field_name='payment_method')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    type = django_filters.CharFilter(method='filter_type', label='Type')

    type_field = None

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(transaction_id__icontains=value) | Q(reason__icontains=value) | Q(description__icontains=value)
        )

    def filter_type(self, queryset, name, value):
        if not value or not self.type_field:
            return queryset
        return queryset.filter(**{self.type_field: value})


def transaction_filter_for(model, type_field):
    """Build a TransactionFilter bound to one ledger model"""
    meta = type('Meta', (), {'model': model, 'fields': []})
    return type(f'{model.__name__}Filter', (TransactionFilter,), {'Meta': meta, 'type_field': type_field})
