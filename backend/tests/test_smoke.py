"""
Smoke tests — verify that Django boots, URL routing resolves, and
the core domain modules behave as the apps expect.

These tests require a DB only where marked; they just prove the
plumbing works.
"""

from __future__ import annotations

import pytest
from django.db import transaction
from django.urls import resolve, reverse


# ════════════════════════════════════════════════════════════════════
#  URL Routing Smoke Tests
# ════════════════════════════════════════════════════════════════════

class TestURLRouting:
    """Ensure all top-level app URL namespaces resolve without 404."""

    EXPECTED_URLS = [
        # (url_name, expected_path)
        ("complaint-list",           "/api/complaints/"),
        ("accounts:user-directory",  "/api/accounts/users/"),
        ("core:system-constants",    "/api/core/constants/"),
        ("core:notification-list",   "/api/core/notifications/"),
        ("schema",                   "/api/schema/"),
    ]

    @pytest.mark.parametrize("url_name,expected_path", EXPECTED_URLS)
    def test_url_resolves(self, url_name: str, expected_path: str):
        """Named URL reverses to the expected path."""
        assert reverse(url_name) == expected_path

    @pytest.mark.parametrize("url_name,expected_path", EXPECTED_URLS)
    def test_url_resolve_matches_view(self, url_name: str, expected_path: str):
        """Path resolves to a view function (not a 404)."""
        match = resolve(expected_path)
        assert match.func is not None

    @pytest.mark.parametrize(
        "url_name,suffix",
        [
            ("complaint-detail", ""),
            ("complaint-update-status", "update-status/"),
            ("complaint-reopen", "reopen/"),
            ("complaint-sla", "sla/"),
            ("complaint-status-options", "status-options/"),
            ("complaint-status-log", "status-log/"),
        ],
    )
    def test_complaint_detail_routes(self, url_name: str, suffix: str):
        assert reverse(url_name, args=[7]) == f"/api/complaints/7/{suffix}"


# ════════════════════════════════════════════════════════════════════
#  Exception Behaviour Tests
# ════════════════════════════════════════════════════════════════════

class TestDomainExceptions:
    """Unit tests for domain exception classes."""

    def test_inheritance_chain(self):
        from core.domain.exceptions import (
            Conflict,
            DomainError,
            InvalidTransition,
            NotFound,
            PermissionDenied,
            ValidationFailed,
        )
        assert issubclass(InvalidTransition, Conflict)
        assert issubclass(Conflict, DomainError)
        assert issubclass(PermissionDenied, DomainError)
        assert issubclass(NotFound, DomainError)
        assert issubclass(ValidationFailed, DomainError)

    def test_validation_failed_keeps_every_error(self):
        from core.domain.exceptions import ValidationFailed
        err = ValidationFailed(["first", "second"])
        assert err.errors == ["first", "second"]
        assert str(err) == "first; second"

    def test_invalid_transition_structured(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition(
            current="RESOLVED",
            target="REOPENED",
            reason="Only closed complaints can be reopened",
        )
        assert "RESOLVED" in str(err)
        assert "REOPENED" in str(err)
        assert err.current == "RESOLVED"
        assert err.target == "REOPENED"

    def test_invalid_transition_plain_message(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition("Only closed complaints can be reopened.")
        assert str(err) == "Only closed complaints can be reopened."


class TestExceptionHandler:
    """The DRF handler maps domain errors to status codes."""

    @pytest.mark.parametrize(
        "exc_name,status_code",
        [
            ("ValidationFailed", 400),
            ("PermissionDenied", 403),
            ("NotFound", 404),
            ("Conflict", 409),
            ("InvalidTransition", 409),
            ("DomainError", 400),
        ],
    )
    def test_status_mapping(self, exc_name: str, status_code: int):
        from core.domain import exceptions
        from core.domain.exception_handler import domain_exception_handler

        exc_class = getattr(exceptions, exc_name)
        exc = exc_class(["bad"]) if exc_name == "ValidationFailed" else exc_class()
        response = domain_exception_handler(exc, {"view": None})
        assert response.status_code == status_code

    def test_validation_failed_body_carries_errors(self):
        from core.domain.exception_handler import domain_exception_handler
        from core.domain.exceptions import ValidationFailed

        response = domain_exception_handler(ValidationFailed(["a", "b"]), {})
        assert response.data["errors"] == ["a", "b"]

    def test_unrelated_exception_is_not_handled(self):
        from core.domain.exception_handler import domain_exception_handler
        assert domain_exception_handler(RuntimeError("boom"), {}) is None


# ════════════════════════════════════════════════════════════════════
#  Access Helper Tests
# ════════════════════════════════════════════════════════════════════

class TestAccessHelpers:
    """Role resolution and guards, without a database."""

    @staticmethod
    def _user(role_name: str | None, *, is_superuser: bool = False):
        from unittest.mock import MagicMock

        user = MagicMock()
        user.is_authenticated = True
        user.is_active = True
        user.is_superuser = is_superuser
        if role_name is None:
            user.role = None
        else:
            user.role.name = role_name
        return user

    @pytest.mark.parametrize(
        "role_name,expected",
        [
            ("Ward Officer", "WARD_OFFICER"),
            ("maintenance_team", "MAINTENANCE_TEAM"),
            ("ADMINISTRATOR", "ADMINISTRATOR"),
            ("Detective", ""),
            (None, ""),
        ],
    )
    def test_get_actor_role(self, role_name, expected):
        from core.domain.access import get_actor_role
        assert get_actor_role(self._user(role_name)) == expected

    def test_require_role(self):
        from core.domain.access import require_role
        from core.domain.exceptions import PermissionDenied

        require_role(self._user("Administrator"), "ADMINISTRATOR")
        with pytest.raises(PermissionDenied):
            require_role(self._user("Citizen"), "ADMINISTRATOR")


# ════════════════════════════════════════════════════════════════════
#  Transaction Helper Tests
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestTransactionHelpers:

    def test_check_version(self, create_complaint):
        from core.domain.exceptions import Conflict
        from core.domain.transactions import check_version

        complaint = create_complaint(version=2)
        check_version(complaint, None)
        check_version(complaint, 2)
        with pytest.raises(Conflict):
            check_version(complaint, 1)

    def test_lock_for_update_missing_row(self):
        from complaints.models import Complaint
        from core.domain.exceptions import NotFound
        from core.domain.transactions import lock_for_update

        with transaction.atomic():
            with pytest.raises(NotFound):
                lock_for_update(Complaint, 31337)
            with pytest.raises(NotFound):
                lock_for_update(Complaint, "not-a-pk")


# ════════════════════════════════════════════════════════════════════
#  Core Endpoint Tests
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestCoreEndpoints:

    def test_constants_are_public(self, api_client):
        resp = api_client.get("/api/core/constants/")
        assert resp.status_code == 200
        assert {"value": "IN_PROGRESS", "label": "In Progress"} in resp.data["complaint_statuses"]
        rows = {
            (row["role"], row["current_status"]): row["options"]
            for row in resp.data["status_options"]
        }
        assert rows[("MAINTENANCE_TEAM", "RESOLVED")] == ["RESOLVED"]
        assert "REOPENED" in rows[("ADMINISTRATOR", "CLOSED")]

    def test_notifications_list_and_mark_read(self, api_client, auth_header, create_user):
        from core.domain.notifications import NotificationService

        user, header = auth_header(role="CITIZEN")
        officer = create_user(role="WARD_OFFICER")
        [note] = NotificationService.create(
            actor=officer,
            recipients=[user, None, user],
            event_type="complaint_registered",
            payload={"complaint_id": "CMP-00001"},
        )
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

        listing = api_client.get("/api/core/notifications/")
        assert [row["id"] for row in listing.data] == [note.pk]
        assert listing.data[0]["message"] == "Complaint CMP-00001 has been registered."
        assert listing.data[0]["event_type"] == "complaint_registered"

        marked = api_client.post(f"/api/core/notifications/{note.pk}/read/")
        assert marked.status_code == 200
        assert marked.data["is_read"] is True

        unread = api_client.get("/api/core/notifications/", {"unread": "true"})
        assert unread.data == []

    def test_other_users_notification_is_not_found(self, api_client, auth_header, create_user):
        from core.models import Notification

        _, header = auth_header(role="CITIZEN")
        stranger = create_user()
        note = Notification.objects.create(recipient=stranger, title="t", message="m")
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

        resp = api_client.post(f"/api/core/notifications/{note.pk}/read/")
        assert resp.status_code == 404

    def test_actor_is_never_notified(self, create_user):
        from core.domain.notifications import NotificationService

        officer = create_user(role="WARD_OFFICER")
        assert NotificationService.create(
            actor=officer, recipients=officer, event_type="complaint_assigned",
        ) == []
