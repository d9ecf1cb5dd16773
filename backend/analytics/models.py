from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class AnalyticsTarget(models.Model):
    """A numeric goal measured over a date period"""
    TARGET_TYPE_CHOICES = [
        ('sales_count', 'Sales Count'),
        ('sales_revenue', 'Sales Revenue'),
        ('product_sales', 'Product Sales'),
        ('production_quantity', 'Production Quantity'),
    ]
    TAGGED_TARGET_TYPES = ['product_sales', 'production_quantity']

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    target_name = models.CharField(max_length=200)
    target_type = models.CharField(max_length=30, choices=TARGET_TYPE_CHOICES)
    target_value = models.DecimalField(max_digits=14, decimal_places=2)
    tag = models.ForeignKey('operations.Tag', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    period_start = models.DateField()
    period_end = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def clean(self):
        if self.period_start and self.period_end and self.period_end < self.period_start:
            raise ValidationError({'period_end': 'Period end cannot be before period start'})
        if self.target_value is not None and self.target_value <= 0:
            raise ValidationError({'target_value': 'Target value must be greater than zero'})

    def __str__(self):
        return self.target_name

    class Meta:
        db_table = 'analytics_targets'
        ordering = ['-period_start', '-created_at']
