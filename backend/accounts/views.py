"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``UserDirectoryView`` — GET /users/?role=&ward=&search=
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import UserDirectoryFilterSerializer, UserDirectorySerializer
from .services import UserDirectoryService


class UserDirectoryView(APIView):
    """
    GET /api/accounts/users/

    List assignable users for a role.  Ward officers only see users of
    their own ward.  Access: ward officers and administrators.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List users by role",
        parameters=[
            OpenApiParameter(name="role", type=str, location=OpenApiParameter.QUERY, required=True, description="Role code, e.g. MAINTENANCE_TEAM."),
            OpenApiParameter(name="ward", type=str, location=OpenApiParameter.QUERY, description="Optional ward scope."),
            OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, description="Free-text match on name/email."),
        ],
        responses={
            200: OpenApiResponse(response=UserDirectorySerializer(many=True), description="Matching users."),
            403: OpenApiResponse(description="Role not allowed to browse the directory."),
        },
        tags=["Accounts"],
    )
    def get(self, request: Request) -> Response:
        filters = UserDirectoryFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        data = filters.validated_data

        users = UserDirectoryService.list_for_actor(
            request.user,
            data["role"],
            data.get("ward") or None,
            search=data.get("search") or None,
        )
        serializer = UserDirectorySerializer(users, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)
