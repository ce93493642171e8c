from django.contrib.auth.models import User
from rest_framework import serializers

from .models import display_name


class UserSerializer(serializers.ModelSerializer):
    """Public view of an account (never exposes the password hash)"""

    full_name = serializers.SerializerMethodField()
    role = serializers.CharField(source='profile.role', read_only=True)
    created_at = serializers.DateTimeField(source='date_joined', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'full_name', 'email', 'role', 'is_active', 'created_at']
        read_only_fields = fields

    def get_full_name(self, obj):
        return display_name(obj)


class SignupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, trim_whitespace=True)
    email = serializers.EmailField(max_length=100)
    password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)

    def validate_email(self, value):
        return value.strip().lower()

    def create(self, validated_data):
        email = validated_data['email']
        user = User.objects.create_user(
            username=email,
            email=email,
            password=validated_data['password'],
        )
        # Profile is created by the post_save signal
        user.profile.full_name = validated_data['name']
        user.profile.save(update_fields=['full_name'])
        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)

    def validate_email(self, value):
        return value.strip().lower()
