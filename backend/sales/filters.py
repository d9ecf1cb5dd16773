import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """Filters for the order list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(field_name='status')
    payment_status = django_filters.CharFilter(field_name='payment_status')
    customer = django_filters.NumberFilter(field_name='customer_id')
    customer_type = django_filters.CharFilter(field_name='customer__customer_type')
    sold_by = django_filters.NumberFilter(field_name='sold_by_id')
    start_date = django_filters.DateFilter(field_name='order_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='order_date', lookup_expr='lte')
    is_locked = django_filters.BooleanFilter(field_name='is_locked')
    is_on_hold = django_filters.BooleanFilter(field_name='is_on_hold')
    product_tag = django_filters.NumberFilter(method='filter_product_tag', label='Produced goods tag')

    class Meta:
        model = Order
        fields = []

    def filter_search(self, queryset, name, value):
        """Match order number, customer name or an item's product type / batch"""
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value) |
            Q(customer__name__icontains=value) |
            Q(items__product_type__icontains=value) |
            Q(items__processed_good__batch_reference__icontains=value)
        ).distinct()

    def filter_product_tag(self, queryset, name, value):
        return queryset.filter(items__processed_good__produced_goods_tag_id=value).distinct()
