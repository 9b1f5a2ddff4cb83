"""JSON serializers for user data."""

from rest_framework import serializers

from users.models import User


class UserBriefSerializer(serializers.ModelSerializer):
    """Minimal user information embedded in loan responses."""

    class Meta:
        """Metaclass options."""

        model = User
        fields = ['pk', 'username', 'nombre', 'email', 'rol']
        read_only_fields = fields
