"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``roles`` fixture seeding the four portal roles.
  - ``create_user`` factory fixture for creating test users by role code.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``create_complaint`` factory fixture for complaints in any status.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def roles(db):
    """``{role_code: Role}`` for the four portal roles."""
    from accounts.models import Role, UserRole

    return {
        code: Role.objects.get_or_create(name=code)[0]
        for code in UserRole.values
    }


@pytest.fixture()
def create_user(roles):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            officer = create_user(role="WARD_OFFICER", ward="Ward 7")
            citizen = create_user(username="alice", full_name="Alice A.")
    """
    from accounts.models import User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        role: str | None = "CITIZEN",
        ward: str = "",
        full_name: str = "",
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            full_name=full_name,
            ward=ward,
            role=roles[role] if role else None,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that creates a user and returns ``(user, header)``
    where ``header`` holds a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            user, header = auth_header(role="ADMINISTRATOR")
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(**user_kwargs):
        user = create_user(**user_kwargs)
        token = AccessToken.for_user(user)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def create_complaint(db):
    """
    Factory fixture that creates a complaint directly in the database,
    bypassing the lifecycle engine, with its initial log entry.
    """
    from django.utils import timezone

    from complaints.models import Complaint, ComplaintStatus, ComplaintStatusLog

    _counter = 0

    def _factory(**fields) -> Complaint:
        nonlocal _counter
        _counter += 1
        fields.setdefault("complaint_id", f"TST-{_counter:05d}")
        fields.setdefault("type", "Pothole")
        fields.setdefault("description", "Deep pothole near the bus stop.")
        fields.setdefault("area", "Ward 7")
        fields.setdefault("status", ComplaintStatus.REGISTERED)
        fields.setdefault("submitted_on", timezone.now())
        complaint = Complaint.objects.create(**fields)
        ComplaintStatusLog.objects.create(
            complaint=complaint,
            from_status=None,
            to_status=ComplaintStatus.REGISTERED,
            actor=complaint.submitted_by,
        )
        return complaint

    return _factory
