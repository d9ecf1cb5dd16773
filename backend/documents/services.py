"""Folder-level access rules and stored file handling for documents"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count

from backend.core.exceptions import BusinessRuleError
from backend.core.models import ACCESS_READ_WRITE, ACCESS_READ_ONLY, ACCESS_NONE
from backend.core.permissions import can_write
from .models import Folder, FolderAccess, Document

logger = logging.getLogger('backend.documents')

ACCESS_ADMIN = 'admin'


def is_folder_admin(user):
    """Read-write users of the documents module manage every folder"""
    return can_write(user, 'documents')


def folder_access_map(user):
    """{folder_id: access_level} for a non-admin user"""
    return dict(FolderAccess.objects.filter(user=user).values_list('folder_id', 'access_level'))


def folder_access_level(user, folder):
    if is_folder_admin(user):
        return ACCESS_ADMIN
    level = FolderAccess.objects.filter(user=user, folder=folder).values_list('access_level', flat=True).first()
    return level or ACCESS_NONE


def can_view_folder(user, folder):
    return folder_access_level(user, folder) in (ACCESS_ADMIN, ACCESS_READ_WRITE, ACCESS_READ_ONLY)


def can_edit_folder(user, folder):
    return folder_access_level(user, folder) in (ACCESS_ADMIN, ACCESS_READ_WRITE)


def visible_folders(user):
    """Folders the user can open, annotated with document_count"""
    queryset = Folder.objects.annotate(document_count=Count('documents'))
    if is_folder_admin(user):
        return queryset
    return queryset.filter(
        access_entries__user=user,
        access_entries__access_level__in=[ACCESS_READ_WRITE, ACCESS_READ_ONLY],
    )


@transaction.atomic
def set_folder_access(folder, entries, assigned_by=None):
    """
    Replace access levels for the given users.

    entries is a list of (user, access_level); users not listed keep their
    current level.
    """
    result = []
    for user, access_level in entries:
        access, _ = FolderAccess.objects.update_or_create(
            folder=folder, user=user,
            defaults={'access_level': access_level, 'assigned_by': assigned_by}
        )
        result.append(access)
    logger.info(f"Updated access for {len(result)} user(s) on folder '{folder.name}'")
    return result


def upload_document(folder, uploaded_file, name=None, user=None):
    max_size = settings.DOCUMENT_MAX_UPLOAD_BYTES
    if uploaded_file.size > max_size:
        raise BusinessRuleError(f"File exceeds the maximum size of {max_size // (1024 * 1024)} MB")

    document = Document(
        name=(name or '').strip() or uploaded_file.name,
        file_name=uploaded_file.name,
        file_type=getattr(uploaded_file, 'content_type', '') or '',
        file_size=uploaded_file.size,
        folder=folder,
        uploaded_by=user,
    )
    document.file.save(uploaded_file.name, uploaded_file, save=False)
    document.save()
    logger.info(f"Uploaded document {document.id} '{document.name}' to folder '{folder.name}'")
    return document


def delete_document(document):
    """Remove the stored file, then the row"""
    if document.file:
        document.file.delete(save=False)
    document_id = document.id
    document.delete()
    logger.info(f"Deleted document {document_id}")


@transaction.atomic
def delete_folder(folder):
    for document in folder.documents.all():
        if document.file:
            document.file.delete(save=False)
    name = folder.name
    folder.delete()
    logger.info(f"Deleted folder '{name}'")
