from django.contrib import admin
from .models import Status, RoadmapBucket, Issue


@admin.register(Status)
class StatusAdmin(admin.ModelAdmin):
    list_display = ['name', 'position', 'color', 'created_at']
    ordering = ['position']


@admin.register(RoadmapBucket)
class RoadmapBucketAdmin(admin.ModelAdmin):
    list_display = ['key', 'name', 'sort_order']
    ordering = ['sort_order']


@admin.register(Issue)
class IssueAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'priority', 'owner', 'estimate', 'ordering', 'ready_for_review', 'review_rejected']
    list_filter = ['status', 'priority', 'ready_for_review', 'roadmap_bucket']
    search_fields = ['title', 'description', 'owner_name']
    readonly_fields = ['created_at', 'updated_at']
