from datetime import timedelta

import django_filters
from django.db.models import F
from django.utils import timezone
from .models import Issue


class NumberInFilter(django_filters.BaseInFilter, django_filters.NumberFilter):
    pass


DUE_RANGE_CHOICES = (
    ('overdue', 'Overdue'),
    ('today', 'Due today'),
    ('week', 'Due within a week'),
)

SORT_CHOICES = (
    ('deadline', 'Soonest deadline first'),
    ('status', 'Board column order'),
)


class IssueFilter(django_filters.FilterSet):
    """Board and backlog filters; list params are comma separated ids"""
    status_ids = NumberInFilter(field_name='status_id', lookup_expr='in')
    owner_ids = NumberInFilter(field_name='owner_id', lookup_expr='in')
    tag = django_filters.CharFilter(method='filter_tag')
    ready_only = django_filters.BooleanFilter(method='filter_ready_only')
    assigned_to_me = django_filters.BooleanFilter(method='filter_assigned_to_me')
    due_range = django_filters.ChoiceFilter(choices=DUE_RANGE_CHOICES, method='filter_due_range')
    sort = django_filters.ChoiceFilter(choices=SORT_CHOICES, method='filter_sort')
    priority = django_filters.CharFilter(field_name='priority')
    roadmap_bucket = django_filters.CharFilter(field_name='roadmap_bucket_id')

    class Meta:
        model = Issue
        fields = []

    def filter_tag(self, queryset, name, value):
        # tags is a JSON list; membership is checked in Python so it works on every backend
        matching = [pk for pk, tags in queryset.values_list('id', 'tags') if value in (tags or [])]
        return queryset.filter(id__in=matching)

    def filter_ready_only(self, queryset, name, value):
        if value:
            return queryset.filter(ready_for_review=True)
        return queryset

    def filter_assigned_to_me(self, queryset, name, value):
        if value and self.request is not None:
            return queryset.filter(owner=self.request.user)
        return queryset

    def filter_due_range(self, queryset, name, value):
        # issues without a deadline never match a due range
        today = timezone.localdate()
        if value == 'overdue':
            return queryset.filter(deadline_date__lt=today)
        if value == 'today':
            return queryset.filter(deadline_date=today)
        return queryset.filter(deadline_date__gte=today, deadline_date__lte=today + timedelta(days=7))

    def filter_sort(self, queryset, name, value):
        if value == 'deadline':
            return queryset.order_by(F('deadline_date').asc(nulls_last=True), 'ordering', 'id')
        return queryset.order_by(F('status__position').asc(nulls_last=True), 'ordering', 'id')
