from django.contrib.auth.models import AbstractUser
from django.db import models


MODULE_CHOICES = [
    ('finance', 'Finance'),
    ('analytics', 'Analytics'),
    ('documents', 'Documents'),
    ('agile', 'Agile'),
    ('operations', 'Operations'),
    ('sales', 'Sales'),
]

MODULE_IDS = [module_id for module_id, _ in MODULE_CHOICES]

ACCESS_READ_WRITE = 'read-write'
ACCESS_READ_ONLY = 'read-only'
ACCESS_NONE = 'no-access'

ACCESS_LEVEL_CHOICES = [
    (ACCESS_READ_WRITE, 'Read & Write'),
    (ACCESS_READ_ONLY, 'Read Only'),
    (ACCESS_NONE, 'No Access'),
]


class User(AbstractUser):
    """Extended user model with profile and role fields"""
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('user', 'User'),
    ]

    full_name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='user')
    requires_password_change = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    @property
    def is_app_admin(self):
        return self.is_superuser or self.role == 'admin'

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username


class ModuleAccess(models.Model):
    """Per-user access level for one application module"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='module_access')
    module = models.CharField(max_length=20, choices=MODULE_CHOICES)
    access_level = models.CharField(max_length=20, choices=ACCESS_LEVEL_CHOICES, default=ACCESS_NONE)
    granted_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.username} - {self.module}: {self.access_level}"

    class Meta:
        db_table = 'user_module_access'
        unique_together = [['user', 'module']]
        ordering = ['user', 'module']


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('access_change', 'Access Changed'),
        ('password_change', 'Password Changed'),
        ('order_lock', 'Order Locked'),
        ('order_unlock', 'Order Unlocked'),
        ('delivery', 'Delivery Recorded'),
        ('payment_add', 'Payment Added'),
        ('stock_waste', 'Waste Recorded'),
        ('stock_transfer', 'Transfer Recorded'),
        ('batch_complete', 'Batch Completed'),
        ('issue_move', 'Issue Moved'),
        ('document_upload', 'Document Uploaded'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, lot id, batch id)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_ref_idx'),
        ]
