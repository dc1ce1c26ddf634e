"""
Complaint registration tests.

Covers:
  1. Code sequence continues from the highest existing code
  2. A code taken by a concurrent registration is retried
  3. Exhausted retries surface as a conflict, not a database error
"""

from __future__ import annotations

import pytest

from complaints.models import Complaint, ComplaintStatus
from complaints.services import CODE_ALLOCATION_ATTEMPTS, ComplaintCreationService
from core.domain.exceptions import Conflict

register = ComplaintCreationService.register_complaint

PAYLOAD = {"type": "Pothole", "description": "Deep pothole near the bus stop."}


@pytest.mark.django_db
class TestComplaintCodeAllocation:

    def test_sequence_continues_from_highest_code(self, create_complaint):
        create_complaint(complaint_id="CMP-00007")
        create_complaint(complaint_id="CMP-00003")
        create_complaint(complaint_id="OLD-00042")

        assert ComplaintCreationService.next_complaint_id() == "CMP-00008"

    def test_taken_code_is_retried(self, create_complaint, create_user, monkeypatch):
        create_complaint(complaint_id="CMP-00001")
        codes = iter(["CMP-00001", "CMP-00002"])
        monkeypatch.setattr(
            ComplaintCreationService, "next_complaint_id", staticmethod(lambda: next(codes)),
        )

        complaint = register(PAYLOAD, create_user())

        assert complaint.complaint_id == "CMP-00002"
        assert complaint.status == ComplaintStatus.REGISTERED
        assert complaint.status_logs.count() == 1
        assert Complaint.objects.filter(complaint_id="CMP-00002").count() == 1

    def test_exhausted_retries_are_a_conflict(self, create_complaint, create_user, monkeypatch):
        create_complaint(complaint_id="CMP-00001")
        calls = []

        def always_taken():
            calls.append(1)
            return "CMP-00001"

        monkeypatch.setattr(ComplaintCreationService, "next_complaint_id", staticmethod(always_taken))

        with pytest.raises(Conflict):
            register(PAYLOAD, create_user())

        assert len(calls) == CODE_ALLOCATION_ATTEMPTS
        assert Complaint.objects.count() == 1
