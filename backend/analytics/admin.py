from django.contrib import admin
from .models import AnalyticsTarget


@admin.register(AnalyticsTarget)
class AnalyticsTargetAdmin(admin.ModelAdmin):
    list_display = ['target_name', 'target_type', 'target_value', 'tag', 'period_start', 'period_end', 'status']
    list_filter = ['target_type', 'status']
    search_fields = ['target_name', 'description']
