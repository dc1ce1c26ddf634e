"""
Complaints app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Role checks are never done here; the acting user is passed into the
service layer, which reads the authentic role from the user row.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.access import get_actor_role
from core.domain.exceptions import ValidationFailed

from .serializers import (
    ComplaintCreateSerializer,
    ComplaintDetailSerializer,
    ComplaintFilterSerializer,
    ComplaintListSerializer,
    ComplaintReopenSerializer,
    ComplaintStatusLogSerializer,
    ComplaintUpdateSerializer,
    SlaResultSerializer,
    StatusOptionsSerializer,
    UpdateResultSerializer,
)
from .services import (
    ComplaintCreationService,
    ComplaintLifecycleService,
    ComplaintQueryService,
    ReopenWorkflowService,
    SlaCalculator,
    StatusTransitionValidator,
)

logger = logging.getLogger(__name__)


class ComplaintViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the complaints app.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined; complaints are never edited or deleted through
    generic CRUD.  Every detail route first resolves the complaint
    through the actor's visibility scope, so complaints outside that
    scope answer 404.
    """

    permission_classes = [IsAuthenticated]

    def _get_visible(self, request: Request, pk):
        return ComplaintQueryService.get_complaint(pk, actor=request.user)

    # ── Standard endpoints ───────────────────────────────────────────

    @extend_schema(
        summary="List complaints",
        description="Complaints visible to the authenticated user's role, optionally filtered.",
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by status."),
            OpenApiParameter(name="priority", type=str, location=OpenApiParameter.QUERY, description="Filter by priority."),
            OpenApiParameter(name="type", type=str, location=OpenApiParameter.QUERY, description="Filter by complaint type."),
        ],
        responses={200: OpenApiResponse(response=ComplaintListSerializer(many=True))},
        tags=["Complaints"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = ComplaintFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = ComplaintQueryService.get_visible_queryset(request.user, filter_serializer.validated_data)
        return Response(ComplaintListSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Register a complaint",
        request=ComplaintCreateSerializer,
        responses={201: OpenApiResponse(response=ComplaintDetailSerializer, description="Complaint registered.")},
        tags=["Complaints"],
    )
    def create(self, request: Request) -> Response:
        """
        POST /api/complaints/

        Creates the complaint in REGISTERED with its initial status-log
        entry and a generated complaint code.
        """
        serializer = ComplaintCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = ComplaintCreationService.register_complaint(serializer.validated_data, request.user)
        return Response(ComplaintDetailSerializer(complaint).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a complaint",
        responses={
            200: OpenApiResponse(response=ComplaintDetailSerializer),
            404: OpenApiResponse(description="Complaint not found."),
        },
        tags=["Complaints"],
    )
    def retrieve(self, request: Request, pk=None) -> Response:
        complaint = self._get_visible(request, pk)
        return Response(ComplaintDetailSerializer(complaint).data, status=status.HTTP_200_OK)

    # ── Lifecycle @actions ───────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="update-status")
    @extend_schema(
        summary="Update status and assignment",
        description=(
            "Validates the patch against the actor's role rules and applies it. "
            "All validation errors are returned together; nothing is written when any fail. "
            "Status REOPENED runs the reopen cascade."
        ),
        request=ComplaintUpdateSerializer,
        responses={
            200: OpenApiResponse(response=UpdateResultSerializer, description="Update applied."),
            400: OpenApiResponse(description='Validation failed: {"errors": [...]}.'),
            403: OpenApiResponse(description="Reopen requested by a non-administrator."),
            404: OpenApiResponse(description="Complaint not found."),
            409: OpenApiResponse(description="Stale version or invalid reopen."),
        },
        tags=["Complaints – Lifecycle"],
    )
    def update_status(self, request: Request, pk=None) -> Response:
        """
        POST /api/complaints/{id}/update-status/
        """
        self._get_visible(request, pk)
        serializer = ComplaintUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ComplaintLifecycleService.apply_update(pk, request.user, serializer.validated_data)
        if not result.ok:
            raise ValidationFailed(result.errors)
        out = UpdateResultSerializer({"complaint": result.complaint, "notices": result.notices})
        return Response(out.data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="reopen")
    @extend_schema(
        summary="Reopen a closed complaint",
        description=(
            "Administrator only. Logs CLOSED → REOPENED → ASSIGNED, clears the "
            "maintenance team and flags the complaint for team assignment."
        ),
        request=ComplaintReopenSerializer,
        responses={
            200: OpenApiResponse(response=ComplaintDetailSerializer, description="Complaint reopened."),
            403: OpenApiResponse(description="Only administrators can reopen complaints."),
            404: OpenApiResponse(description="Complaint not found."),
            409: OpenApiResponse(description="Only closed complaints can be reopened."),
        },
        tags=["Complaints – Lifecycle"],
    )
    def reopen(self, request: Request, pk=None) -> Response:
        serializer = ComplaintReopenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = ReopenWorkflowService.reopen(pk, request.user, serializer.validated_data.get("comment"))
        return Response(ComplaintDetailSerializer(complaint).data, status=status.HTTP_200_OK)

    # ── Read-only sub-resources ──────────────────────────────────────

    @action(detail=True, methods=["get"], url_path="sla")
    @extend_schema(
        summary="SLA verdict",
        responses={200: OpenApiResponse(response=SlaResultSerializer)},
        tags=["Complaints – SLA"],
    )
    def sla(self, request: Request, pk=None) -> Response:
        complaint = self._get_visible(request, pk)
        result = SlaCalculator.compute(complaint)
        return Response(SlaResultSerializer(result.as_dict()).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"], url_path="status-options")
    @extend_schema(
        summary="Selectable next statuses",
        description="Statuses the authenticated user's role may set from the complaint's current status.",
        responses={200: OpenApiResponse(response=StatusOptionsSerializer)},
        tags=["Complaints – Lifecycle"],
    )
    def status_options(self, request: Request, pk=None) -> Response:
        complaint = self._get_visible(request, pk)
        role = get_actor_role(request.user)
        data = {
            "role": role,
            "current_status": complaint.status,
            "options": StatusTransitionValidator.get_available_status_options(role, complaint.status),
        }
        return Response(StatusOptionsSerializer(data).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"], url_path="status-log")
    @extend_schema(
        summary="Status history",
        responses={200: OpenApiResponse(response=ComplaintStatusLogSerializer(many=True))},
        tags=["Complaints"],
    )
    def status_log(self, request: Request, pk=None) -> Response:
        complaint = self._get_visible(request, pk)
        logs = ComplaintQueryService.get_status_log(complaint)
        return Response(ComplaintStatusLogSerializer(logs, many=True).data, status=status.HTTP_200_OK)
