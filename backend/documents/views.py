import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.response import Response
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from backend.core.permissions import module_access, can_read
from backend.core.utils import create_audit_log
from .models import Folder, FolderAccess, Document
from .serializers import (
    FolderSerializer, FolderAccessSerializer, FolderAccessEntrySerializer, DocumentSerializer,
    DocumentUploadSerializer
)
from . import services

logger = logging.getLogger('backend.documents')

DocumentsAccess = module_access('documents')


class DocumentsReader(BasePermission):
    """Any documents module access; folder rules decide the rest"""
    message = 'You do not have access to this module.'

    def has_permission(self, request, view):
        return can_read(request.user, 'documents')


def _forbidden(message='You do not have access to this folder'):
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


def _access_levels(user, folders):
    if services.is_folder_admin(user):
        return {folder.id: services.ACCESS_ADMIN for folder in folders}
    return services.folder_access_map(user)


# Folders
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, DocumentsAccess])
def folder_list_create(request):
    """List folders visible to the user or create one (folder admins)"""
    if request.method == 'GET':
        folders = list(services.visible_folders(request.user))
        serializer = FolderSerializer(folders, many=True, context={'access_levels': _access_levels(request.user, folders)})
        return Response(serializer.data)
    else:
        serializer = FolderSerializer(data=request.data)
        if serializer.is_valid():
            folder = serializer.save(created_by=request.user)
            create_audit_log(request, 'create', 'Folder', folder.id, object_reference=folder.name)
            return Response(FolderSerializer(folder, context={'access_levels': {folder.id: services.ACCESS_ADMIN}}).data,
                            status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, DocumentsAccess])
def folder_detail(request, pk):
    folder = get_object_or_404(Folder, pk=pk)
    level = services.folder_access_level(request.user, folder)

    if request.method == 'GET':
        if not services.can_view_folder(request.user, folder):
            return _forbidden()
        folder.document_count = folder.documents.count()
        return Response(FolderSerializer(folder, context={'access_levels': {folder.id: level}}).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = FolderSerializer(folder, data=request.data, partial=request.method == 'PATCH',
                                      context={'access_levels': {folder.id: level}})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        name = folder.name
        services.delete_folder(folder)
        create_audit_log(request, 'delete', 'Folder', pk, object_reference=name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, DocumentsAccess])
def folder_access(request, pk):
    """
    GET lists per-user access entries of a folder.
    PUT takes [{"user": id, "access_level": level}, ...] and upserts them.
    Folder admins only.
    """
    folder = get_object_or_404(Folder, pk=pk)
    if not services.is_folder_admin(request.user):
        return _forbidden('Only folder admins can manage folder access')

    if request.method == 'PUT':
        serializer = FolderAccessEntrySerializer(data=request.data, many=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        entries = [(entry['user'], entry['access_level']) for entry in serializer.validated_data]
        services.set_folder_access(folder, entries, assigned_by=request.user)
        create_audit_log(request, 'access_change', 'Folder', folder.id,
                         changes={str(user.id): level for user, level in entries}, object_reference=folder.name)

    entries = FolderAccess.objects.filter(folder=folder).select_related('user').order_by('user__username')
    return Response(FolderAccessSerializer(entries, many=True).data)


# Documents
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, DocumentsReader])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def folder_documents(request, pk):
    """List a folder's documents or upload one (multipart: file, name)"""
    folder = get_object_or_404(Folder, pk=pk)

    if request.method == 'GET':
        if not services.can_view_folder(request.user, folder):
            return _forbidden()
        documents = folder.documents.select_related('uploaded_by')
        return Response(DocumentSerializer(documents, many=True, context={'request': request}).data)
    else:
        if not services.can_edit_folder(request.user, folder):
            return _forbidden('You need read-write access to upload to this folder')
        serializer = DocumentUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        document = services.upload_document(
            folder, serializer.validated_data['file'], name=serializer.validated_data.get('name'), user=request.user
        )
        create_audit_log(request, 'document_upload', 'Document', document.id,
                         changes={'folder': folder.id, 'file_size': document.file_size}, object_reference=document.name)
        return Response(DocumentSerializer(document, context={'request': request}).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, DocumentsReader])
def document_detail(request, pk):
    document = get_object_or_404(Document.objects.select_related('folder', 'uploaded_by'), pk=pk)

    if request.method == 'GET':
        if not services.can_view_folder(request.user, document.folder):
            return _forbidden()
        return Response(DocumentSerializer(document, context={'request': request}).data)
    else:  # DELETE
        if not services.can_edit_folder(request.user, document.folder):
            return _forbidden('You need read-write access to delete from this folder')
        name = document.name
        services.delete_document(document)
        create_audit_log(request, 'delete', 'Document', pk, object_reference=name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, DocumentsReader])
def document_download(request, pk):
    document = get_object_or_404(Document.objects.select_related('folder'), pk=pk)
    if not services.can_view_folder(request.user, document.folder):
        return _forbidden()
    try:
        handle = document.file.open('rb')
    except FileNotFoundError:
        logger.warning(f"Stored file missing for document {document.id}")
        return Response({'error': 'File not found'}, status=status.HTTP_404_NOT_FOUND)
    return FileResponse(handle, as_attachment=True, filename=document.file_name,
                        content_type=document.file_type or None)
