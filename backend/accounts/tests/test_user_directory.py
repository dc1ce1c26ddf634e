"""
Accounts app tests — user directory and role seeding.

Covers:
  1. Service: role filter, ward scope (case-insensitive), inactive users hidden
  2. Service: unknown role rejected
  3. Endpoint: ward officers are pinned to their own ward
  4. Endpoint: administrators may browse any ward; citizens are forbidden
  5. ``setup_roles`` is idempotent
  6. Actor role resolution
"""

from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import call_command
from rest_framework import status

from accounts.models import Role, UserRole
from accounts.services import UserDirectoryService
from core.domain.access import get_actor_role
from core.domain.exceptions import DomainError

DIRECTORY_URL = "/api/accounts/users/"


@pytest.fixture()
def crews(create_user):
    return {
        "north": create_user(role="MAINTENANCE_TEAM", ward="North", full_name="Bea North"),
        "north_inactive": create_user(role="MAINTENANCE_TEAM", ward="North", is_active=False),
        "south": create_user(role="MAINTENANCE_TEAM", ward="South", full_name="Al South"),
    }


@pytest.mark.django_db
class TestUserDirectoryService:

    def test_lists_active_users_with_role(self, crews, create_user):
        create_user(role="WARD_OFFICER", ward="North")
        users = list(UserDirectoryService.list_users_by_role(UserRole.MAINTENANCE_TEAM))
        assert users == [crews["south"], crews["north"]]

    def test_ward_scope_is_case_insensitive(self, crews):
        users = list(UserDirectoryService.list_users_by_role(UserRole.MAINTENANCE_TEAM, " north "))
        assert users == [crews["north"]]

    def test_role_stored_as_label_is_listed(self, create_user):
        member = create_user(role=None, full_name="Lee Label")
        member.role = Role.objects.create(name="Maintenance Team")
        member.save()

        assert get_actor_role(member) == UserRole.MAINTENANCE_TEAM
        assert list(UserDirectoryService.list_users_by_role(UserRole.MAINTENANCE_TEAM)) == [member]

    def test_unknown_role_is_rejected(self):
        with pytest.raises(DomainError):
            UserDirectoryService.list_users_by_role("JANITOR")


@pytest.mark.django_db
class TestUserDirectoryEndpoint:

    def test_ward_officer_is_pinned_to_own_ward(self, api_client, auth_header, crews):
        _, header = auth_header(role="WARD_OFFICER", ward="North")
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

        resp = api_client.get(DIRECTORY_URL, {"role": "MAINTENANCE_TEAM", "ward": "South"})

        assert resp.status_code == status.HTTP_200_OK
        assert [row["id"] for row in resp.data] == [crews["north"].pk]
        assert resp.data[0]["fullName"] == "Bea North"
        assert resp.data[0]["role"] == "MAINTENANCE_TEAM"

    def test_administrator_may_pick_any_ward(self, api_client, auth_header, crews):
        _, header = auth_header(role="ADMINISTRATOR")
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

        resp = api_client.get(DIRECTORY_URL, {"role": "MAINTENANCE_TEAM", "ward": "South"})

        assert [row["id"] for row in resp.data] == [crews["south"].pk]

    def test_citizen_is_forbidden(self, api_client, auth_header):
        _, header = auth_header(role="CITIZEN")
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
        resp = api_client.get(DIRECTORY_URL, {"role": "MAINTENANCE_TEAM"})
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_role_is_required(self, api_client, auth_header):
        _, header = auth_header(role="ADMINISTRATOR")
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
        resp = api_client.get(DIRECTORY_URL)
        assert resp.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestSetupRoles:

    def test_creates_all_roles_once(self):
        out = StringIO()
        call_command("setup_roles", stdout=out)
        call_command("setup_roles", stdout=out)

        assert sorted(Role.objects.values_list("name", flat=True)) == sorted(UserRole.values)
        assert "4 role(s) created" in out.getvalue()
        assert "0 role(s) created, 0 updated" in out.getvalue()

    def test_refreshes_descriptions(self):
        Role.objects.create(name=UserRole.CITIZEN, description="old")
        out = StringIO()
        call_command("setup_roles", stdout=out)
        assert Role.objects.get(name=UserRole.CITIZEN).description != "old"
        assert "3 role(s) created, 1 updated" in out.getvalue()


@pytest.mark.django_db
class TestActorRole:

    def test_role_is_read_from_user_row(self, create_user):
        assert get_actor_role(create_user(role="WARD_OFFICER")) == "WARD_OFFICER"

    def test_superuser_acts_as_administrator(self, create_user):
        assert get_actor_role(create_user(role=None, is_superuser=True)) == "ADMINISTRATOR"

    def test_inactive_or_roleless_users_have_no_role(self, create_user):
        assert get_actor_role(create_user(role="ADMINISTRATOR", is_active=False)) == ""
        assert get_actor_role(create_user(role=None)) == ""
        assert get_actor_role(None) == ""
