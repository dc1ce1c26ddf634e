"""
Complaints app serializers.

Serializers handle field definitions, read/write constraints, and
field-level validation only.  **No lifecycle rules live here** — status
and priority strings are passed through untouched so the engine can
report every problem in one pass.

Structure
---------
1. Filter / query-param serializers
2. Shared field types
3. Complaint read serializers
4. Complaint write / action serializers
5. Sub-resource serializers (status log, SLA, status options)
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from .models import (
    Complaint,
    ComplaintPriority,
    ComplaintStatus,
    ComplaintStatusLog,
)
from .services import AssignmentResolver, SlaCalculator


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintFilterSerializer(serializers.Serializer):
    """
    Query-parameter filters for ``GET /api/complaints/``.

    All fields are optional; the validated dict is passed straight to
    ``ComplaintQueryService.get_visible_queryset``.
    """

    status = serializers.ChoiceField(
        choices=ComplaintStatus.choices,
        required=False,
        help_text="Filter by complaint status.",
    )
    priority = serializers.ChoiceField(
        choices=ComplaintPriority.choices,
        required=False,
        help_text="Filter by priority.",
    )
    type = serializers.CharField(
        required=False,
        max_length=100,
        help_text="Filter by complaint type (case-insensitive).",
    )


# ═══════════════════════════════════════════════════════════════════
#  2. Shared field types
# ═══════════════════════════════════════════════════════════════════


class AssignmentField(serializers.Field):
    """
    Accepts an assignee as a bare id (``7`` / ``"7"``), a record
    (``{"id": "7", "fullName": "..."}``) or ``null`` / ``"none"``, and
    normalises it to the canonical id string (``"none"`` if unassigned).
    """

    default_error_messages = {
        "invalid": "Expected a user id, a user record with an 'id', or null.",
    }

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("required", False)
        kwargs.setdefault("allow_null", True)
        super().__init__(**kwargs)

    def to_internal_value(self, data: Any) -> str:
        if not isinstance(data, (str, int, dict)) or isinstance(data, bool):
            self.fail("invalid")
        return AssignmentResolver.resolve_assignment_id(data)

    def to_representation(self, value: Any) -> str:
        return AssignmentResolver.resolve_assignment_id(value)


class AssignedUserSerializer(serializers.Serializer):
    """Compact assignee record: ``{id, fullName, email, ward}``."""

    id = serializers.IntegerField(read_only=True)
    fullName = serializers.SerializerMethodField()
    email = serializers.EmailField(read_only=True)
    ward = serializers.CharField(read_only=True)

    def get_fullName(self, obj) -> str | None:
        return AssignmentResolver.resolve_assignment_name(obj)


# ═══════════════════════════════════════════════════════════════════
#  3. Complaint Read Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintListSerializer(serializers.ModelSerializer):
    """Compact representation for the list endpoint."""

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    priority_display = serializers.CharField(source="get_priority_display", read_only=True)
    ward_officer_id = serializers.SerializerMethodField()
    maintenance_team_id = serializers.SerializerMethodField()

    class Meta:
        model = Complaint
        fields = [
            "id",
            "complaint_id",
            "type",
            "area",
            "priority",
            "priority_display",
            "status",
            "status_display",
            "ward_officer_id",
            "maintenance_team_id",
            "needs_team_assignment",
            "submitted_on",
            "version",
        ]
        read_only_fields = fields

    def get_ward_officer_id(self, obj: Complaint) -> str:
        return AssignmentResolver.resolve_assignment_id(obj.ward_officer_id)

    def get_maintenance_team_id(self, obj: Complaint) -> str:
        return AssignmentResolver.resolve_assignment_id(obj.maintenance_team_id)


class SlaResultSerializer(serializers.Serializer):
    status = serializers.CharField()
    deadline = serializers.DateTimeField(allow_null=True)
    submitted_at = serializers.DateTimeField(allow_null=True)
    closed_at = serializers.DateTimeField(allow_null=True)
    actual_resolution_hours = serializers.IntegerField(allow_null=True)


class ComplaintDetailSerializer(serializers.ModelSerializer):
    """
    Full complaint representation, including assignee records and the
    SLA verdict computed at serialisation time.
    """

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    priority_display = serializers.CharField(source="get_priority_display", read_only=True)
    ward_officer = AssignedUserSerializer(read_only=True, allow_null=True)
    maintenance_team = AssignedUserSerializer(read_only=True, allow_null=True)
    assigned_to = AssignedUserSerializer(read_only=True, allow_null=True)
    submitted_by = AssignedUserSerializer(read_only=True, allow_null=True)
    sla = serializers.SerializerMethodField()

    class Meta:
        model = Complaint
        fields = [
            "id",
            "complaint_id",
            "type",
            "description",
            "area",
            "priority",
            "priority_display",
            "status",
            "status_display",
            "ward_officer",
            "maintenance_team",
            "assigned_to",
            "needs_team_assignment",
            "submitted_by",
            "submitted_on",
            "assigned_on",
            "resolved_on",
            "closed_on",
            "deadline",
            "remarks",
            "version",
            "sla",
        ]
        read_only_fields = fields

    def get_sla(self, obj: Complaint) -> dict[str, Any]:
        return SlaResultSerializer(SlaCalculator.compute(obj).as_dict()).data


# ═══════════════════════════════════════════════════════════════════
#  4. Complaint Write / Action Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintCreateSerializer(serializers.Serializer):
    """Request body for ``POST /api/complaints/``."""

    type = serializers.CharField(max_length=100)
    description = serializers.CharField()
    area = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    priority = serializers.ChoiceField(
        choices=ComplaintPriority.choices,
        required=False,
        help_text="Defaults to the complaint type's priority, else MEDIUM.",
    )
    deadline = serializers.DateTimeField(
        required=False,
        allow_null=True,
        help_text="Explicit deadline, used only when the type has no SLA.",
    )

    def validate_type(self, value: str) -> str:
        if not value.strip():
            raise serializers.ValidationError("Complaint type cannot be blank.")
        return value.strip()


class ComplaintUpdateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/complaints/{id}/update-status/``.

    ``status`` and ``priority`` are free strings on purpose: unknown
    values are reported by the lifecycle validator in its error list.
    Omitted fields keep their current value.
    """

    status = serializers.CharField(required=False, max_length=20)
    priority = serializers.CharField(required=False, max_length=10)
    ward_officer_id = AssignmentField()
    maintenance_team_id = AssignmentField()
    remarks = serializers.CharField(required=False, allow_blank=True)
    version = serializers.IntegerField(
        required=False,
        min_value=0,
        help_text="Version last read by the client; a stale value yields 409.",
    )


class ComplaintReopenSerializer(serializers.Serializer):
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# ═══════════════════════════════════════════════════════════════════
#  5. Sub-resource Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintStatusLogSerializer(serializers.ModelSerializer):
    """Read-only serializer for the complaint audit trail."""

    actor_name = serializers.SerializerMethodField()

    class Meta:
        model = ComplaintStatusLog
        fields = [
            "id",
            "from_status",
            "to_status",
            "actor",
            "actor_name",
            "comment",
            "created_at",
        ]
        read_only_fields = fields

    def get_actor_name(self, obj: ComplaintStatusLog) -> str | None:
        return AssignmentResolver.resolve_assignment_name(obj.actor)


class UpdateResultSerializer(serializers.Serializer):
    complaint = ComplaintDetailSerializer()
    notices = serializers.ListField(child=serializers.CharField())


class StatusOptionsSerializer(serializers.Serializer):
    role = serializers.CharField()
    current_status = serializers.CharField()
    options = serializers.ListField(child=serializers.CharField())
