from django.contrib.auth import get_user_model
from rest_framework import serializers
from backend.core.models import ACCESS_LEVEL_CHOICES
from .models import Folder, FolderAccess, Document

User = get_user_model()


class FolderSerializer(serializers.ModelSerializer):
    document_count = serializers.IntegerField(read_only=True, default=0)
    user_access_level = serializers.SerializerMethodField()

    class Meta:
        model = Folder
        fields = ['id', 'name', 'description', 'document_count', 'user_access_level', 'created_by',
                  'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_user_access_level(self, obj):
        return self.context.get('access_levels', {}).get(obj.id)


class FolderAccessSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.display_name', read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = FolderAccess
        fields = ['id', 'folder', 'user', 'user_name', 'user_email', 'access_level', 'assigned_by', 'assigned_at']
        read_only_fields = ['folder', 'assigned_by', 'assigned_at']


class FolderAccessEntrySerializer(serializers.Serializer):
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    access_level = serializers.ChoiceField(choices=ACCESS_LEVEL_CHOICES)


class DocumentSerializer(serializers.ModelSerializer):
    uploaded_by_name = serializers.CharField(source='uploaded_by.display_name', read_only=True, default=None)
    file_url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = ['id', 'name', 'file_name', 'file_type', 'file_size', 'file_url', 'folder',
                  'uploaded_by', 'uploaded_by_name', 'uploaded_at']
        read_only_fields = fields

    def get_file_url(self, obj):
        if not obj.file:
            return None
        request = self.context.get('request')
        return request.build_absolute_uri(obj.file.url) if request else obj.file.url


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
