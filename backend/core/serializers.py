"""
Core app serializers.

Response serializers for the system-constants and notification
endpoints under ``/api/core/``.
"""

from __future__ import annotations

from rest_framework import serializers


# ════════════════════════════════════════════════════════════════════
#  System Constants / Enums
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "IN_PROGRESS", "label": "In Progress"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class StatusOptionsRowSerializer(serializers.Serializer):
    role = serializers.CharField(help_text="UserRole code.")
    current_status = serializers.CharField(help_text="Complaint status the row applies to.")
    options = serializers.ListField(
        child=serializers.CharField(),
        help_text="Statuses the role may select next.",
    )


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "complaint_statuses": [{"value": "REGISTERED", "label": "Registered"}, ...],
            "complaint_priorities": [...],
            "roles": [...],
            "status_options": [
                {"role": "WARD_OFFICER", "current_status": "ASSIGNED",
                 "options": ["REGISTERED", "ASSIGNED", ...]},
                ...
            ]
        }
    """

    complaint_statuses = ChoiceItemSerializer(many=True)
    complaint_priorities = ChoiceItemSerializer(many=True)
    roles = ChoiceItemSerializer(many=True)
    status_options = StatusOptionsRowSerializer(
        many=True,
        help_text="Role × current status → selectable next statuses.",
    )


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    event_type = serializers.CharField(
        read_only=True,
        help_text="Lifecycle event key, e.g. ``complaint_status_changed``.",
    )
    title = serializers.CharField(
        read_only=True,
        help_text="Short notification title.",
    )
    message = serializers.CharField(
        read_only=True,
        help_text="Full notification message body.",
    )
    is_read = serializers.BooleanField(
        read_only=True,
        help_text="Whether the recipient has marked this notification as read.",
    )
    created_at = serializers.DateTimeField(
        read_only=True,
        help_text="When the notification was created.",
    )
    content_type = serializers.StringRelatedField(
        read_only=True,
        help_text="Related content type (if any).",
    )
    object_id = serializers.IntegerField(
        read_only=True,
        allow_null=True,
        help_text="PK of the related complaint (if any).",
    )
