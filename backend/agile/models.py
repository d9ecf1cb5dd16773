from django.conf import settings
from django.db import models


PRIORITY_CHOICES = [
    ('high', 'High'),
    ('normal', 'Normal'),
    ('low', 'Low'),
]


class Status(models.Model):
    """A board column"""
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    position = models.IntegerField(default=0)
    color = models.CharField(max_length=30, default='sky')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def is_done(self):
        name = self.name.strip().lower()
        return 'done' in name or name == 'complete'

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'agile_statuses'
        ordering = ['position', 'id']
        verbose_name_plural = 'Statuses'


class RoadmapBucket(models.Model):
    key = models.SlugField(max_length=50, primary_key=True)
    name = models.CharField(max_length=100)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'agile_roadmap_buckets'
        ordering = ['sort_order', 'key']


class Issue(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.ForeignKey(Status, on_delete=models.SET_NULL, null=True, blank=True, related_name='issues')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')
    deadline_date = models.DateField(null=True, blank=True)
    estimate = models.PositiveIntegerField(null=True, blank=True)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='agile_issues')
    owner_name = models.CharField(max_length=200, blank=True)
    tags = models.JSONField(default=list, blank=True)
    roadmap_bucket = models.ForeignKey(RoadmapBucket, on_delete=models.SET_NULL, null=True, blank=True, related_name='issues')
    ordering = models.IntegerField(default=0)
    ready_for_review = models.BooleanField(default=False)
    review_rejected = models.BooleanField(default=False)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'agile_issues'
        ordering = ['ordering', 'id']
        indexes = [
            models.Index(fields=['status', 'ordering'], name='agile_issue_status_idx'),
        ]
