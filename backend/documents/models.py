from django.conf import settings
from django.db import models
from backend.core.models import ACCESS_LEVEL_CHOICES, ACCESS_NONE


class Folder(models.Model):
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'document_folders'
        ordering = ['name']


class FolderAccess(models.Model):
    """Access level of one non-admin user to one folder"""
    folder = models.ForeignKey(Folder, on_delete=models.CASCADE, related_name='access_entries')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='folder_access')
    access_level = models.CharField(max_length=20, choices=ACCESS_LEVEL_CHOICES, default=ACCESS_NONE)
    assigned_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    assigned_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} - {self.folder}: {self.access_level}"

    class Meta:
        db_table = 'folder_user_access'
        unique_together = [['folder', 'user']]
        verbose_name_plural = 'Folder access'


class Document(models.Model):
    name = models.CharField(max_length=255)
    file = models.FileField(upload_to='documents/%Y/%m/')
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=100, blank=True)
    file_size = models.BigIntegerField(null=True, blank=True)
    folder = models.ForeignKey(Folder, on_delete=models.CASCADE, related_name='documents')
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    uploaded_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'documents'
        ordering = ['-uploaded_at', '-id']
