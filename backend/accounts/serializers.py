"""
Accounts app serializers.

Read-only representations of users as assignment candidates, plus the
query-parameter serializer for the user directory.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import User, UserRole


class UserDirectorySerializer(serializers.ModelSerializer):
    """
    Compact user card used for assignment dropdowns.

    ``fullName`` mirrors the key the assignment resolver reads when a
    user is embedded as a record.
    """

    role = serializers.CharField(source="role.name", read_only=True, default=None)
    fullName = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "email", "fullName", "ward", "role"]
        read_only_fields = fields


class UserDirectoryFilterSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.choices)
    ward = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)
