"""
Assignment resolver tests.

An assignee may arrive as a bare id, an embedded record or be absent;
every shape must normalise without raising.
"""

from __future__ import annotations

import pytest

from complaints.services import (
    AssignedById,
    AssignedByRecord,
    AssignmentResolver,
    Unassigned,
)

resolve_id = AssignmentResolver.resolve_assignment_id
resolve_name = AssignmentResolver.resolve_assignment_name


class TestResolveAssignmentId:

    @pytest.mark.parametrize(
        "relation,expected",
        [
            (None, "none"),
            ("none", "none"),
            ("NONE", "none"),
            ("", "none"),
            ("   ", "none"),
            ("7", "7"),
            ("usr_ab12", "usr_ab12"),
            (7, "7"),
            ({"id": "7", "fullName": "Ana Perez"}, "7"),
            ({"id": 7}, "7"),
            ({"id": None, "fullName": "Ghost"}, "none"),
            ({"fullName": "No Id"}, "none"),
            ({"id": ["7"]}, "none"),
            (True, "none"),
            (3.5, "none"),
            (["7"], "none"),
            (object(), "none"),
        ],
    )
    def test_every_shape_resolves_without_raising(self, relation, expected):
        assert resolve_id(relation) == expected

    def test_same_user_in_all_shapes_yields_same_id(self):
        shapes = ["42", 42, {"id": "42", "fullName": "Crew Lead"}]
        assert {resolve_id(shape) for shape in shapes} == {"42"}

    @pytest.mark.django_db
    def test_model_instance_uses_primary_key(self, create_user):
        user = create_user(role="MAINTENANCE_TEAM")
        assert resolve_id(user) == str(user.pk)


class TestResolveAssignmentName:

    @pytest.mark.parametrize(
        "relation,expected",
        [
            (None, None),
            ("none", None),
            ("None", None),
            ("", None),
            ("  Ana Perez ", "Ana Perez"),
            ({"id": "7", "fullName": "Ana Perez", "email": "ana@city.gov"}, "Ana Perez"),
            ({"id": "7", "fullName": "", "email": "ana@city.gov"}, "ana@city.gov"),
            ({"id": "7", "fullName": "  ", "email": ""}, "7"),
            ({"id": 7}, "7"),
            (7, "7"),
            ({}, None),
            (object(), None),
        ],
    )
    def test_name_fallback_chain(self, relation, expected):
        assert resolve_name(relation) == expected

    @pytest.mark.django_db
    def test_user_record_prefers_full_name(self, create_user):
        user = create_user(full_name="Ward Officer Kim", role="WARD_OFFICER")
        assert resolve_name(user) == "Ward Officer Kim"

    @pytest.mark.django_db
    def test_user_record_falls_back_to_email(self, create_user):
        user = create_user(username="crew9", email="crew9@city.gov")
        assert resolve_name(user) == "crew9@city.gov"


class TestNormalize:

    def test_tagged_variants(self):
        assert AssignmentResolver.normalize(None) == Unassigned()
        assert AssignmentResolver.normalize("9") == AssignedById("9")
        assert AssignmentResolver.normalize({"id": "9", "fullName": "Team 9"}) == AssignedByRecord("9", "Team 9")

    def test_is_assigned(self):
        assert AssignmentResolver.is_assigned("9")
        assert AssignmentResolver.is_assigned({"id": 9})
        assert not AssignmentResolver.is_assigned("none")
        assert not AssignmentResolver.is_assigned(None)
