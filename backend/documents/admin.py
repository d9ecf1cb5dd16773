from django.contrib import admin
from .models import Folder, FolderAccess, Document


class FolderAccessInline(admin.TabularInline):
    model = FolderAccess
    fk_name = 'folder'
    extra = 0


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_by', 'created_at']
    search_fields = ['name', 'description']
    inlines = [FolderAccessInline]


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['name', 'folder', 'file_name', 'file_type', 'file_size', 'uploaded_by', 'uploaded_at']
    list_filter = ['folder', 'file_type']
    search_fields = ['name', 'file_name']
