from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, ModuleAccess, AuditLog, MODULE_IDS, ACCESS_LEVEL_CHOICES


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'full_name', 'first_name', 'last_name', 'phone', 'role',
                  'requires_password_change', 'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['is_superuser', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'full_name', 'phone', 'role']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        # Accounts created by an admin must change the initial password
        user = User.objects.create(**validated_data, is_active=True, requires_password_change=True)
        user.set_password(password)
        user.save()
        return user


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])
    new_password_confirm = serializers.CharField(write_only=True)

    def validate_current_password(self, value):
        if not self.context['request'].user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect")
        return value

    def validate(self, attrs):
        if attrs['new_password'] != attrs['new_password_confirm']:
            raise serializers.ValidationError({"new_password": "Passwords don't match"})
        if attrs['new_password'] == attrs['current_password']:
            raise serializers.ValidationError({"new_password": "New password must differ from the current one"})
        return attrs


class ModuleAccessSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = ModuleAccess
        fields = ['id', 'user', 'username', 'module', 'access_level', 'granted_by', 'updated_at']
        read_only_fields = ['granted_by', 'updated_at']


class ModuleAccessMapSerializer(serializers.Serializer):
    """Validates a {module: access_level} mapping"""
    access = serializers.DictField(child=serializers.ChoiceField(choices=ACCESS_LEVEL_CHOICES))

    def validate_access(self, value):
        unknown = sorted(set(value) - set(MODULE_IDS))
        if unknown:
            raise serializers.ValidationError(f"Unknown modules: {', '.join(unknown)}")
        return value


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id',
                  'object_reference', 'changes', 'ip_address', 'created_at']
