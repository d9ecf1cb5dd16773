from rest_framework import serializers
from .models import AnalyticsTarget


class AnalyticsTargetSerializer(serializers.ModelSerializer):
    tag_name = serializers.CharField(source='tag.display_name', read_only=True, default=None)
    tag_type = serializers.CharField(source='tag.tag_type', read_only=True, default=None)

    class Meta:
        model = AnalyticsTarget
        fields = ['id', 'target_name', 'target_type', 'target_value', 'tag', 'tag_name', 'tag_type',
                  'period_start', 'period_end', 'status', 'description', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_target_value(self, value):
        if value <= 0:
            raise serializers.ValidationError("Target value must be greater than zero")
        return value

    def validate(self, attrs):
        period_start = attrs.get('period_start', getattr(self.instance, 'period_start', None))
        period_end = attrs.get('period_end', getattr(self.instance, 'period_end', None))
        if period_start and period_end and period_end < period_start:
            raise serializers.ValidationError({'period_end': 'Period end cannot be before period start'})

        target_type = attrs.get('target_type', getattr(self.instance, 'target_type', None))
        tag = attrs.get('tag', getattr(self.instance, 'tag', None))
        if target_type in AnalyticsTarget.TAGGED_TARGET_TYPES:
            if tag is None or tag.tag_type != 'produced_goods':
                raise serializers.ValidationError({'tag': 'A produced goods tag is required for this target type'})
        return attrs


class TargetProgressSerializer(serializers.Serializer):
    target = AnalyticsTargetSerializer()
    achieved = serializers.DecimalField(max_digits=16, decimal_places=3)
    remaining = serializers.DecimalField(max_digits=16, decimal_places=3)
    percentage = serializers.FloatField()
    days_remaining = serializers.IntegerField()
    expected_percentage = serializers.FloatField()
    is_on_track = serializers.BooleanField()
