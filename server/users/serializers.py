from rest_framework import serializers

from users.models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "username", "email", "name", "avatar", "is_active", "is_staff", "last_active", "date_joined")
        read_only_fields = fields


class UserMeSerializer(serializers.ModelSerializer):
    is_content_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = (
            "id",
            "username",
            "email",
            "name",
            "avatar",
            "is_content_admin",
            "last_login",
            "last_active",
            "date_joined",
        )
        read_only_fields = fields


class UserUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("name", "avatar")
