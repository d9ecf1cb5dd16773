from rest_framework import serializers
from .models import Status, RoadmapBucket, Issue


class StatusSerializer(serializers.ModelSerializer):
    is_done = serializers.BooleanField(read_only=True)

    class Meta:
        model = Status
        fields = ['id', 'name', 'description', 'position', 'color', 'is_done', 'created_by', 'created_at']
        read_only_fields = ['created_by', 'created_at']
        extra_kwargs = {'position': {'required': False}}


class RoadmapBucketSerializer(serializers.ModelSerializer):
    class Meta:
        model = RoadmapBucket
        fields = ['key', 'name', 'sort_order', 'created_at']
        read_only_fields = ['created_at']


class IssueSerializer(serializers.ModelSerializer):
    status_name = serializers.CharField(source='status.name', read_only=True, default=None)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Issue
        fields = ['id', 'title', 'description', 'status', 'status_name', 'priority', 'deadline_date', 'estimate',
                  'owner', 'owner_name', 'tags', 'roadmap_bucket', 'ordering', 'ready_for_review',
                  'review_rejected', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']
        extra_kwargs = {'ordering': {'required': False}}

    def validate_tags(self, value):
        tags = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class MoveIssueSerializer(serializers.Serializer):
    status = serializers.PrimaryKeyRelatedField(queryset=Status.objects.all())
    index = serializers.IntegerField(min_value=0)


class ChangeStatusSerializer(serializers.Serializer):
    status = serializers.PrimaryKeyRelatedField(queryset=Status.objects.all())
