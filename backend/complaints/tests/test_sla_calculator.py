"""
SLA calculator tests.

Covers:
  1. Closed complaints: verdict by closure time, half-up hour rounding
  2. Open complaints: verdict by the evaluation clock
  3. Fallbacks: explicit deadline, missing configuration → N/A
  4. Database-backed type configuration (case-insensitive, active only)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace

import pytest

from complaints.models import ComplaintType
from complaints.services import (
    ComplaintTypeConfigService,
    SlaCalculator,
    SlaTable,
)

T = datetime(2024, 3, 1, 8, 0, tzinfo=dt_timezone.utc)
TABLE = SlaTable({"Pothole": 48, "Streetlight": 0})


def make_complaint(**overrides):
    data = {
        "type": "pothole",
        "status": "CLOSED",
        "submitted_on": T,
        "closed_on": None,
        "deadline": None,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class TestClosedComplaints:

    def test_closed_within_sla_is_on_time(self):
        result = SlaCalculator.compute(make_complaint(closed_on=T + timedelta(hours=40)), TABLE)
        assert result.status == "ON_TIME"
        assert result.actual_resolution_hours == 40
        assert result.deadline == T + timedelta(hours=48)
        assert result.submitted_at == T

    def test_closed_after_sla_is_overdue(self):
        result = SlaCalculator.compute(make_complaint(closed_on=T + timedelta(hours=50)), TABLE)
        assert result.status == "OVERDUE"
        assert result.actual_resolution_hours == 50

    def test_closed_exactly_at_deadline_is_on_time(self):
        result = SlaCalculator.compute(make_complaint(closed_on=T + timedelta(hours=48)), TABLE)
        assert result.status == "ON_TIME"

    @pytest.mark.parametrize(
        "elapsed,expected_hours",
        [
            (timedelta(hours=40, minutes=29), 40),
            (timedelta(hours=40, minutes=30), 41),
            (timedelta(hours=40, minutes=31), 41),
        ],
    )
    def test_resolution_hours_round_half_up(self, elapsed, expected_hours):
        result = SlaCalculator.compute(make_complaint(closed_on=T + elapsed), TABLE)
        assert result.actual_resolution_hours == expected_hours

    def test_resolved_with_closure_timestamp_uses_it(self):
        complaint = make_complaint(status="RESOLVED", closed_on=T + timedelta(hours=10))
        result = SlaCalculator.compute(complaint, TABLE)
        assert result.status == "ON_TIME"
        assert result.actual_resolution_hours == 10


class TestOpenComplaints:

    def test_open_before_deadline_is_on_time(self):
        complaint = make_complaint(status="IN_PROGRESS")
        result = SlaCalculator.compute(complaint, TABLE, now=T + timedelta(hours=47))
        assert result.status == "ON_TIME"
        assert result.actual_resolution_hours is None

    def test_open_after_deadline_is_overdue(self):
        complaint = make_complaint(status="ASSIGNED")
        result = SlaCalculator.compute(complaint, TABLE, now=T + timedelta(hours=49))
        assert result.status == "OVERDUE"

    def test_finalized_without_closure_timestamp_uses_clock(self):
        complaint = make_complaint(status="RESOLVED", closed_on=None)
        result = SlaCalculator.compute(complaint, TABLE, now=T + timedelta(hours=60))
        assert result.status == "OVERDUE"
        assert result.actual_resolution_hours is None

    def test_repeated_calls_follow_the_clock(self):
        complaint = make_complaint(status="IN_PROGRESS")
        early = SlaCalculator.compute(complaint, TABLE, now=T + timedelta(hours=1))
        late = SlaCalculator.compute(complaint, TABLE, now=T + timedelta(hours=100))
        assert (early.status, late.status) == ("ON_TIME", "OVERDUE")


class TestNotApplicable:

    def test_missing_submission_time(self):
        result = SlaCalculator.compute(make_complaint(submitted_on=None), TABLE)
        assert result.status == "N/A"
        assert result.deadline is None

    def test_unknown_type_without_deadline(self):
        result = SlaCalculator.compute(make_complaint(type="Graffiti"), TABLE)
        assert result.status == "N/A"
        assert result.deadline is None
        assert result.submitted_at == T

    def test_non_positive_sla_counts_as_unconfigured(self):
        result = SlaCalculator.compute(make_complaint(type="Streetlight"), TABLE)
        assert result.status == "N/A"

    def test_explicit_deadline_used_when_type_unconfigured(self):
        complaint = make_complaint(
            type="Graffiti",
            deadline=T + timedelta(hours=24),
            closed_on=T + timedelta(hours=30),
        )
        result = SlaCalculator.compute(complaint, TABLE)
        assert result.status == "OVERDUE"
        assert result.deadline == T + timedelta(hours=24)
        assert result.actual_resolution_hours == 30

    def test_as_dict_keys(self):
        result = SlaCalculator.compute(make_complaint(submitted_on=None), TABLE)
        assert result.as_dict() == {
            "status": "N/A",
            "deadline": None,
            "submitted_at": None,
            "closed_at": None,
            "actual_resolution_hours": None,
        }


@pytest.mark.django_db
class TestComplaintTypeConfig:

    def test_lookup_is_case_insensitive(self):
        ComplaintType.objects.create(name="Water Leakage", sla_hours=24)
        assert ComplaintTypeConfigService.get_sla_hours("water leakage") == 24
        assert ComplaintTypeConfigService.get_sla_hours("WATER LEAKAGE") == 24

    def test_inactive_or_missing_type_has_no_sla(self):
        ComplaintType.objects.create(name="Noise", sla_hours=12, is_active=False)
        assert ComplaintTypeConfigService.get_sla_hours("Noise") is None
        assert ComplaintTypeConfigService.get_sla_hours("Unknown") is None

    def test_default_provider_reads_current_configuration(self):
        complaint_type = ComplaintType.objects.create(name="Pothole", sla_hours=48)
        complaint = make_complaint(closed_on=T + timedelta(hours=40))
        assert SlaCalculator.compute(complaint).status == "ON_TIME"

        complaint_type.sla_hours = 24
        complaint_type.save()
        assert SlaCalculator.compute(complaint).status == "OVERDUE"

    def test_default_priority_falls_back_to_medium(self):
        ComplaintType.objects.create(name="Sewage", priority="CRITICAL")
        assert ComplaintTypeConfigService.get_default_priority("sewage") == "CRITICAL"
        assert ComplaintTypeConfigService.get_default_priority("Unknown") == "MEDIUM"
