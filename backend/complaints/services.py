"""
Complaints app Service Layer.

This module is the **single source of truth** for the complaint
lifecycle engine.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in
a DRF ``Response``.

Architecture
------------
- ``StatusTransitionValidator``   — Role × status state machine and the
                                    per-role update rules.
- ``AssignmentResolver``          — Normalises assignment relations
                                    (bare id / record / absent).
- ``SlaCalculator``               — Deadline + on-time/overdue verdict.
- ``ReopenWorkflowService``       — Administrator-only two-step reopen
                                    cascade.
- ``ComplaintLifecycleService``   — The only mutating entry point for an
                                    existing complaint (``apply_update``).
- ``ComplaintCreationService``    — Citizen registration.
- ``ComplaintQueryService``       — Role-scoped listing / retrieval.

Status State-Machine Overview
-----------------------------
::

  REGISTERED → ASSIGNED → IN_PROGRESS → RESOLVED → CLOSED
                  ▲                                  │
                  └──── (REOPENED, logged only) ◄────┘
                         administrator only

The allowed *next* statuses depend on the actor's role and, for the
maintenance team, on the current status.  See ``STATUS_OPTIONS_BY_ROLE``.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol, Union

from django.conf import settings
from django.db import IntegrityError, models, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from accounts.models import User, UserRole
from accounts.services import UserDirectoryService
from core import constants
from core.domain.access import apply_role_scope, get_actor_role, require_role
from core.domain.exceptions import Conflict, InvalidTransition, NotFound
from core.domain.notifications import NotificationService
from core.domain.transactions import check_version, lock_for_update

from .models import (
    FINALIZED_STATUSES,
    Complaint,
    ComplaintPriority,
    ComplaintStatus,
    ComplaintStatusLog,
    ComplaintType,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Status options table
# ═══════════════════════════════════════════════════════════════════

#: Key used for "any current status" inside a role's row.
ANY_STATUS = "*"
#: Key used for roles without a dedicated row (e.g. CITIZEN).
OTHER_ROLE = ""

#: Maps role → {current status | ANY_STATUS → allowed next statuses}.
#: Every read of the state machine goes through this table.
STATUS_OPTIONS_BY_ROLE: dict[str, dict[str, tuple[str, ...]]] = {
    UserRole.MAINTENANCE_TEAM: {
        ComplaintStatus.ASSIGNED: (ComplaintStatus.ASSIGNED, ComplaintStatus.IN_PROGRESS),
        ComplaintStatus.IN_PROGRESS: (ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED),
        ComplaintStatus.RESOLVED: (ComplaintStatus.RESOLVED,),
        ComplaintStatus.REOPENED: (ComplaintStatus.REOPENED, ComplaintStatus.IN_PROGRESS),
        ANY_STATUS: (ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED),
    },
    UserRole.WARD_OFFICER: {
        ANY_STATUS: (
            ComplaintStatus.REGISTERED,
            ComplaintStatus.ASSIGNED,
            ComplaintStatus.IN_PROGRESS,
            ComplaintStatus.RESOLVED,
            ComplaintStatus.CLOSED,
        ),
    },
    UserRole.ADMINISTRATOR: {
        ANY_STATUS: (
            ComplaintStatus.REGISTERED,
            ComplaintStatus.ASSIGNED,
            ComplaintStatus.IN_PROGRESS,
            ComplaintStatus.RESOLVED,
            ComplaintStatus.CLOSED,
            ComplaintStatus.REOPENED,
        ),
    },
    OTHER_ROLE: {
        ANY_STATUS: (
            ComplaintStatus.REGISTERED,
            ComplaintStatus.ASSIGNED,
            ComplaintStatus.IN_PROGRESS,
            ComplaintStatus.RESOLVED,
        ),
    },
}

REOPEN_CASCADE_NOTICE = (
    "Reopening will automatically move the complaint to 'Assigned' and "
    "clear the maintenance team assignment."
)


# ═══════════════════════════════════════════════════════════════════
#  Assignment Resolver
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Unassigned:
    """No assignee."""

    @property
    def identifier(self) -> str:
        return constants.UNASSIGNED


@dataclass(frozen=True)
class AssignedById:
    """Assignee known only by identifier."""

    id: str

    @property
    def identifier(self) -> str:
        return self.id


@dataclass(frozen=True)
class AssignedByRecord:
    """Assignee carried as an embedded user record."""

    id: str
    name: str | None = None

    @property
    def identifier(self) -> str:
        return self.id


Assignment = Union[Unassigned, AssignedById, AssignedByRecord]


def _coerce_identifier(value: Any) -> str | None:
    """Return ``value`` as an identifier string, or ``None`` if unusable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        if not value.strip() or value.strip().lower() == constants.UNASSIGNED:
            return None
        return value
    return None


class AssignmentResolver:
    """
    Normalises the three assignment relations of a complaint
    (``assigned_to``, ``ward_officer``, ``maintenance_team``).

    A relation may arrive as a bare identifier (``"7"`` / ``7``), a
    record (a ``User`` instance or a mapping such as
    ``{"id": "7", "fullName": "Ana"}``) or be absent (``None`` /
    ``"none"``).  Every method is total: unknown shapes degrade to
    ``Unassigned`` and never raise.
    """

    @staticmethod
    def normalize(relation: Any) -> Assignment:
        if relation is None or isinstance(relation, bool):
            return Unassigned()

        if isinstance(relation, (str, int)):
            identifier = _coerce_identifier(relation)
            return AssignedById(identifier) if identifier is not None else Unassigned()

        if isinstance(relation, Mapping):
            identifier = _coerce_identifier(relation.get("id"))
        elif isinstance(relation, models.Model):
            identifier = _coerce_identifier(relation.pk)
        else:
            return Unassigned()

        if identifier is None:
            return Unassigned()
        return AssignedByRecord(identifier, AssignmentResolver.resolve_assignment_name(relation))

    @staticmethod
    def resolve_assignment_id(relation: Any) -> str:
        """Canonical identifier string, or ``"none"`` when unassigned."""
        return AssignmentResolver.normalize(relation).identifier

    @staticmethod
    def resolve_assignment_name(relation: Any) -> str | None:
        """
        Display name for an assignment relation.

        Absent / ``"none"`` → ``None``; a non-empty string → itself
        (trimmed); a record → the first non-empty of its full name,
        email and id.
        """
        if relation is None or isinstance(relation, bool):
            return None
        if isinstance(relation, str):
            text = relation.strip()
            if not text or text.lower() == constants.UNASSIGNED:
                return None
            return text
        if isinstance(relation, int):
            return str(relation)

        if isinstance(relation, Mapping):
            candidates = [
                relation.get("fullName"),
                relation.get("full_name"),
                relation.get("email"),
                relation.get("id"),
            ]
        elif isinstance(relation, models.Model):
            get_full_name = getattr(relation, "get_full_name", None)
            candidates = [
                getattr(relation, "full_name", None),
                get_full_name() if callable(get_full_name) else None,
                getattr(relation, "email", None),
                relation.pk,
            ]
        else:
            return None

        for candidate in candidates:
            if isinstance(candidate, bool):
                continue
            if isinstance(candidate, int):
                return str(candidate)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return None

    @staticmethod
    def is_assigned(value: Any) -> bool:
        """True unless ``value`` normalises to ``Unassigned``."""
        return not isinstance(AssignmentResolver.normalize(value), Unassigned)


# ═══════════════════════════════════════════════════════════════════
#  Status Transition Validator
# ═══════════════════════════════════════════════════════════════════


class StatusTransitionValidator:
    """
    Validates a proposed update against the role rules.

    ``proposed`` is the update patch (``status``, ``priority``,
    ``ward_officer_id``, ``maintenance_team_id``, ...).  Keys missing
    from the patch fall back to the complaint's current values, so a
    patch without ``status`` proposes the current status again.

    Validation never mutates the complaint and returns every error in a
    single pass.
    """

    @staticmethod
    def get_available_status_options(role: str, current_status: str | None) -> list[str]:
        """Statuses the role may select next from ``current_status``."""
        row = STATUS_OPTIONS_BY_ROLE.get(role or OTHER_ROLE, STATUS_OPTIONS_BY_ROLE[OTHER_ROLE])
        options = row.get(current_status or "", row[ANY_STATUS])
        return [str(status) for status in options]

    @staticmethod
    def _effective_assignment(proposed: Mapping[str, Any], key: str, current: Any) -> str:
        if key in proposed:
            return AssignmentResolver.resolve_assignment_id(proposed[key])
        return AssignmentResolver.resolve_assignment_id(current)

    @classmethod
    def validate(cls, proposed: Mapping[str, Any], role: str, complaint: Any) -> list[str]:
        """
        Return the list of human-readable errors for ``proposed``.

        An empty list means the update may be applied.
        """
        errors: list[str] = []
        current_status = getattr(complaint, "status", None) or ComplaintStatus.REGISTERED
        current_priority = getattr(complaint, "priority", None) or ComplaintPriority.MEDIUM
        status = proposed.get("status") or current_status
        priority = proposed.get("priority")
        is_finalized = current_status in FINALIZED_STATUSES

        available = cls.get_available_status_options(role, current_status)
        if status not in available:
            errors.append(
                f"You don't have permission to set status to '{status}'. "
                f"Available options: {', '.join(available)}"
            )

        if role == UserRole.MAINTENANCE_TEAM:
            if status == ComplaintStatus.ASSIGNED and current_status != ComplaintStatus.ASSIGNED:
                errors.append("Maintenance team cannot set status back to 'Assigned'.")
            if status == ComplaintStatus.REGISTERED:
                errors.append("Maintenance team cannot set status to 'Registered'.")
            if priority is not None and priority != current_priority:
                errors.append(
                    "Maintenance team cannot change complaint priority. "
                    "Contact your supervisor if needed."
                )
        elif priority is not None and priority not in ComplaintPriority.values:
            errors.append(f"Invalid priority '{priority}'.")

        maintenance_team_id = cls._effective_assignment(
            proposed, "maintenance_team_id", getattr(complaint, "maintenance_team", None),
        )
        has_team = maintenance_team_id != constants.UNASSIGNED

        if status == ComplaintStatus.ASSIGNED and not is_finalized:
            if role == UserRole.WARD_OFFICER:
                if not has_team:
                    errors.append(
                        "Please assign a maintenance team member before setting status to 'Assigned'."
                    )
            elif role == UserRole.ADMINISTRATOR:
                ward_officer_id = cls._effective_assignment(
                    proposed, "ward_officer_id", getattr(complaint, "ward_officer", None),
                )
                if ward_officer_id == constants.UNASSIGNED:
                    errors.append("Please select a Ward Officer before setting status to 'Assigned'.")
                if not has_team:
                    errors.append(
                        "Please assign a maintenance team member before setting status to 'Assigned'."
                    )

        if status == ComplaintStatus.REOPENED:
            if role != UserRole.ADMINISTRATOR:
                errors.append("Only administrators can reopen complaints.")
            elif current_status != ComplaintStatus.CLOSED:
                errors.append("Only closed complaints can be reopened.")

        if (
            role == UserRole.WARD_OFFICER
            and not is_finalized
            and getattr(complaint, "needs_team_assignment", False)
            and status != ComplaintStatus.REGISTERED
            and not has_team
        ):
            errors.append(
                "This complaint needs a maintenance team assignment. Please select a team member."
            )

        return errors

    @staticmethod
    def notices(proposed: Mapping[str, Any], role: str, complaint: Any) -> list[str]:
        """Informational notes for a valid update (never errors)."""
        if (
            proposed.get("status") == ComplaintStatus.REOPENED
            and role == UserRole.ADMINISTRATOR
            and getattr(complaint, "status", None) == ComplaintStatus.CLOSED
        ):
            return [REOPEN_CASCADE_NOTICE]
        return []


# ═══════════════════════════════════════════════════════════════════
#  SLA Calculator
# ═══════════════════════════════════════════════════════════════════


class SlaStatus:
    ON_TIME = "ON_TIME"
    OVERDUE = "OVERDUE"
    NOT_APPLICABLE = "N/A"


class SlaConfig(Protocol):
    def get_sla_hours(self, type_name: str) -> float | None: ...


@dataclass(frozen=True)
class SlaResult:
    status: str
    deadline: datetime | None = None
    submitted_at: datetime | None = None
    closed_at: datetime | None = None
    actual_resolution_hours: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _positive_hours(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if value > 0 else None


class SlaTable:
    """In-memory ``type name → SLA hours`` table, matched case-insensitively."""

    def __init__(self, hours_by_type: Mapping[str, float] | None = None) -> None:
        self._hours = {
            name.strip().lower(): hours
            for name, hours in (hours_by_type or {}).items()
        }

    def get_sla_hours(self, type_name: str) -> float | None:
        if not type_name:
            return None
        return _positive_hours(self._hours.get(type_name.strip().lower()))


class ComplaintTypeConfigService:
    """Reads SLA hours from active ``ComplaintType`` rows."""

    @staticmethod
    def get_sla_hours(type_name: str) -> float | None:
        if not type_name:
            return None
        hours = (
            ComplaintType.objects
            .filter(name__iexact=type_name.strip(), is_active=True)
            .values_list("sla_hours", flat=True)
            .first()
        )
        return _positive_hours(hours)

    @staticmethod
    def get_default_priority(type_name: str) -> str:
        priority = (
            ComplaintType.objects
            .filter(name__iexact=(type_name or "").strip(), is_active=True)
            .values_list("priority", flat=True)
            .first()
        )
        return priority or ComplaintPriority.MEDIUM


class SlaCalculator:
    """
    Computes a complaint's SLA deadline and verdict.

    Results are derived on demand from the configuration in effect at
    evaluation time and are never stored on the complaint.
    """

    @staticmethod
    def compute(
        complaint: Any,
        type_config: SlaConfig | None = None,
        now: datetime | None = None,
    ) -> SlaResult:
        """
        Rules
        -----
        1. No ``submitted_on`` → ``N/A``.
        2. Deadline = ``submitted_on + sla_hours`` when the type has an
           SLA; else the complaint's explicit ``deadline``; else ``N/A``.
        3. RESOLVED/CLOSED with ``closed_on``: ON_TIME iff
           ``closed_on <= deadline``; resolution hours rounded half-up.
        4. Otherwise ON_TIME iff ``now <= deadline``.
        """
        if type_config is None:
            type_config = ComplaintTypeConfigService()

        submitted_on = getattr(complaint, "submitted_on", None)
        closed_on = getattr(complaint, "closed_on", None)
        if submitted_on is None:
            return SlaResult(status=SlaStatus.NOT_APPLICABLE, closed_at=closed_on)

        sla_hours = type_config.get_sla_hours(getattr(complaint, "type", "") or "")
        if sla_hours:
            deadline = submitted_on + timedelta(hours=sla_hours)
        else:
            deadline = getattr(complaint, "deadline", None)
        if deadline is None:
            return SlaResult(
                status=SlaStatus.NOT_APPLICABLE,
                submitted_at=submitted_on,
                closed_at=closed_on,
            )

        if getattr(complaint, "status", None) in FINALIZED_STATUSES and closed_on is not None:
            elapsed = (closed_on - submitted_on).total_seconds() / 3600
            return SlaResult(
                status=SlaStatus.ON_TIME if closed_on <= deadline else SlaStatus.OVERDUE,
                deadline=deadline,
                submitted_at=submitted_on,
                closed_at=closed_on,
                actual_resolution_hours=int(math.floor(elapsed + 0.5)),
            )

        now = now or timezone.now()
        return SlaResult(
            status=SlaStatus.ON_TIME if now <= deadline else SlaStatus.OVERDUE,
            deadline=deadline,
            submitted_at=submitted_on,
            closed_at=closed_on,
        )


# ═══════════════════════════════════════════════════════════════════
#  Shared helpers
# ═══════════════════════════════════════════════════════════════════

_MILESTONES: dict[str, str] = {
    ComplaintStatus.ASSIGNED: "assigned_on",
    ComplaintStatus.RESOLVED: "resolved_on",
    ComplaintStatus.CLOSED: "closed_on",
}


def _stamp_milestone(complaint: Complaint, status: str, when: datetime) -> None:
    field_name = _MILESTONES.get(status)
    if field_name and getattr(complaint, field_name) is None:
        setattr(complaint, field_name, when)


def _log_transition(
    complaint: Complaint,
    from_status: str | None,
    to_status: str,
    actor: User | None,
    comment: str = "",
) -> ComplaintStatusLog:
    return ComplaintStatusLog.objects.create(
        complaint=complaint,
        from_status=from_status,
        to_status=to_status,
        actor=actor,
        comment=comment or "",
    )


# ═══════════════════════════════════════════════════════════════════
#  Reopen Workflow Service
# ═══════════════════════════════════════════════════════════════════


class ReopenWorkflowService:
    """
    Administrator-only reopen cascade.

    A CLOSED complaint is logged CLOSED → REOPENED and immediately
    REOPENED → ASSIGNED.  The maintenance team is cleared, the ward
    officer kept, and ``needs_team_assignment`` raised so a new team
    must be assigned before the complaint can progress.
    """

    @staticmethod
    def reopen(complaint_pk: Any, actor: User, comment: str | None = None) -> Complaint:
        """
        Reopen a CLOSED complaint.

        Raises
        ------
        PermissionDenied
            If ``actor`` is not an administrator.
        NotFound
            If the complaint does not exist.
        InvalidTransition
            If the complaint is not CLOSED.
        """
        require_role(actor, UserRole.ADMINISTRATOR, message="Only administrators can reopen complaints.")
        with transaction.atomic():
            complaint = lock_for_update(Complaint, complaint_pk, select_related=("ward_officer",))
            return ReopenWorkflowService.perform(complaint, actor, comment)

    @staticmethod
    def perform(complaint: Complaint, actor: User, comment: str | None = None) -> Complaint:
        """Run the cascade on an already locked complaint."""
        require_role(actor, UserRole.ADMINISTRATOR, message="Only administrators can reopen complaints.")
        if complaint.status != ComplaintStatus.CLOSED:
            raise InvalidTransition(
                "Only closed complaints can be reopened.",
                current=complaint.status,
                target=ComplaintStatus.REOPENED,
            )

        comment = (comment or "").strip() or constants.DEFAULT_REOPEN_COMMENT
        _log_transition(complaint, ComplaintStatus.CLOSED, ComplaintStatus.REOPENED, actor, comment)
        _log_transition(
            complaint,
            ComplaintStatus.REOPENED,
            ComplaintStatus.ASSIGNED,
            actor,
            constants.REOPEN_CASCADE_COMMENT,
        )

        complaint.status = ComplaintStatus.ASSIGNED
        complaint.maintenance_team = None
        complaint.needs_team_assignment = True
        _stamp_milestone(complaint, ComplaintStatus.ASSIGNED, timezone.now())
        complaint.version += 1
        complaint.save()

        logger.info(
            "Complaint %s reopened by %s (ward officer kept: %s)",
            complaint.complaint_id,
            actor,
            complaint.ward_officer_id,
        )

        ward_officer = complaint.ward_officer
        transaction.on_commit(
            lambda: NotificationService.create(
                actor=actor,
                recipients=ward_officer,
                event_type="complaint_reopened",
                payload={"complaint_id": complaint.complaint_id},
                related_object=complaint,
            )
        )
        return complaint


# ═══════════════════════════════════════════════════════════════════
#  Complaint Lifecycle Service
# ═══════════════════════════════════════════════════════════════════


@dataclass
class UpdateResult:
    """Outcome of ``apply_update``: the complaint, or the errors."""

    complaint: Complaint
    errors: list[str] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


#: patch key → (complaint field, required role, label used in errors)
_ASSIGNMENT_FIELDS: dict[str, tuple[str, str, str]] = {
    "ward_officer_id": ("ward_officer", UserRole.WARD_OFFICER, "Ward Officer"),
    "maintenance_team_id": ("maintenance_team", UserRole.MAINTENANCE_TEAM, "Maintenance team member"),
}


class ComplaintLifecycleService:
    """
    Applies an update patch to an existing complaint.

    The complaint row is locked for the whole operation, so two actors
    updating the same complaint are serialised; a stale ``version`` in
    the patch is rejected with ``Conflict``.
    """

    @staticmethod
    def _assignable_keys(role: str) -> tuple[str, ...]:
        if role == UserRole.WARD_OFFICER:
            return ("maintenance_team_id",)
        if role == UserRole.ADMINISTRATOR:
            return ("ward_officer_id", "maintenance_team_id")
        return ()

    @staticmethod
    def _resolve_assignees(
        patch: Mapping[str, Any],
        role: str,
    ) -> tuple[dict[str, User], list[str]]:
        """
        Look up the users referenced by the patch keys ``role`` may set.

        Unassigned values (absent / ``"none"``) are skipped, so an update
        never clears an existing assignment.
        """
        resolved: dict[str, User] = {}
        errors: list[str] = []
        for key in ComplaintLifecycleService._assignable_keys(role):
            identifier = AssignmentResolver.resolve_assignment_id(patch.get(key))
            if identifier == constants.UNASSIGNED:
                continue
            field_name, required_role, label = _ASSIGNMENT_FIELDS[key]
            user = (
                User.objects.select_related("role")
                .filter(pk=identifier, is_active=True)
                .first()
                if identifier.isdigit() else None
            )
            if user is None:
                errors.append(f"{label} '{identifier}' does not exist.")
            elif get_actor_role(user) != required_role:
                errors.append(
                    f"{label} '{identifier}' does not have the "
                    f"'{UserRole(required_role).label}' role."
                )
            else:
                resolved[field_name] = user
        return resolved, errors

    @staticmethod
    def apply_update(complaint_pk: Any, actor: User, patch: Mapping[str, Any]) -> UpdateResult:
        """
        Validate and apply ``patch`` on behalf of ``actor``.

        Parameters
        ----------
        complaint_pk : int
            Primary key of the complaint.
        actor : User
            The authenticated user; the role is read from the user row.
        patch : Mapping
            Any of ``status``, ``priority``, ``ward_officer_id``,
            ``maintenance_team_id``, ``remarks``, ``version``.  Other keys
            are ignored; the legacy ``assigned_to`` only follows the ward
            officer.

        Returns
        -------
        UpdateResult
            ``ok`` with the updated complaint, or the complete error list
            with the complaint unchanged.

        Raises
        ------
        NotFound
            Unknown complaint.
        Conflict
            ``version`` does not match the stored version.
        PermissionDenied / InvalidTransition
            From the reopen workflow when ``status`` is REOPENED.
        """
        role = get_actor_role(actor)
        patch = dict(patch)

        with transaction.atomic():
            complaint = lock_for_update(
                Complaint,
                complaint_pk,
                select_related=("ward_officer", "maintenance_team", "assigned_to", "submitted_by"),
            )
            check_version(complaint, patch.get("version"))

            if patch.get("status") == ComplaintStatus.REOPENED:
                notices = StatusTransitionValidator.notices(patch, role, complaint)
                complaint = ReopenWorkflowService.perform(complaint, actor, patch.get("remarks"))
                return UpdateResult(complaint=complaint, notices=notices)

            errors = StatusTransitionValidator.validate(patch, role, complaint)
            assignees, lookup_errors = ComplaintLifecycleService._resolve_assignees(patch, role)
            errors.extend(lookup_errors)
            if errors:
                logger.warning(
                    "Rejected update of complaint %s by %s (%s): %s",
                    complaint.complaint_id,
                    actor,
                    role or "no role",
                    "; ".join(errors),
                )
                return UpdateResult(complaint=complaint, errors=errors)

            previous_status = complaint.status
            previous_assignees = {
                "ward_officer": complaint.ward_officer_id,
                "maintenance_team": complaint.maintenance_team_id,
            }
            new_status = patch.get("status") or previous_status
            now = timezone.now()

            complaint.status = new_status
            if role != UserRole.MAINTENANCE_TEAM and patch.get("priority"):
                complaint.priority = patch["priority"]
            for field_name, user in assignees.items():
                setattr(complaint, field_name, user)
            if "ward_officer" in assignees:
                complaint.assigned_to = assignees["ward_officer"]
            if "maintenance_team" in assignees:
                complaint.needs_team_assignment = False

            remarks = (patch.get("remarks") or "").strip()
            if remarks:
                complaint.remarks = remarks

            _stamp_milestone(complaint, new_status, now)
            complaint.version += 1
            complaint.save()
            _log_transition(complaint, previous_status, new_status, actor, remarks)

            logger.info(
                "Complaint %s updated by %s: %s → %s",
                complaint.complaint_id,
                actor,
                previous_status,
                new_status,
            )

            transaction.on_commit(
                lambda: ComplaintLifecycleService._dispatch_notifications(
                    complaint, previous_status, previous_assignees, actor,
                )
            )
        return UpdateResult(complaint=complaint)

    @staticmethod
    def _dispatch_notifications(
        complaint: Complaint,
        previous_status: str,
        previous_assignees: dict[str, int | None],
        actor: User,
    ) -> None:
        """
        Record notifications for a committed update.

        ┌──────────────────────────────┬────────────────────────────┐
        │ change                       │ recipient(s)               │
        ├──────────────────────────────┼────────────────────────────┤
        │ status changed               │ submitter                  │
        │ new ward officer             │ that ward officer          │
        │ new maintenance team         │ that team member           │
        └──────────────────────────────┴────────────────────────────┘
        """
        if complaint.status != previous_status:
            NotificationService.create(
                actor=actor,
                recipients=complaint.submitted_by,
                event_type="complaint_status_changed",
                payload={
                    "complaint_id": complaint.complaint_id,
                    "from_status": ComplaintStatus(previous_status).label,
                    "to_status": ComplaintStatus(complaint.status).label,
                },
                related_object=complaint,
            )
        newly_assigned = [
            getattr(complaint, field_name)
            for field_name, previous_id in previous_assignees.items()
            if getattr(complaint, f"{field_name}_id") not in (None, previous_id)
        ]
        if newly_assigned:
            NotificationService.create(
                actor=actor,
                recipients=newly_assigned,
                event_type="complaint_assigned",
                payload={"complaint_id": complaint.complaint_id},
                related_object=complaint,
            )


# ═══════════════════════════════════════════════════════════════════
#  Complaint Creation Service
# ═══════════════════════════════════════════════════════════════════


def _complaint_id_format() -> tuple[str, int, int]:
    return (
        getattr(settings, "COMPLAINT_ID_PREFIX", constants.COMPLAINT_ID_PREFIX),
        int(getattr(settings, "COMPLAINT_ID_LENGTH", constants.COMPLAINT_ID_LENGTH)),
        int(getattr(settings, "COMPLAINT_ID_START_NUMBER", constants.COMPLAINT_ID_START_NUMBER)),
    )


CODE_ALLOCATION_ATTEMPTS = 5


class ComplaintCreationService:
    """Registers new complaints."""

    @staticmethod
    def next_complaint_id() -> str:
        """
        Next human-readable code, e.g. ``CMP-00045``.

        The sequence continues from the highest existing code with the
        configured prefix and never goes below the configured start.
        """
        prefix, length, start = _complaint_id_format()
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
        highest = start - 1
        for code in Complaint.objects.filter(
            complaint_id__startswith=f"{prefix}-",
        ).values_list("complaint_id", flat=True):
            match = pattern.match(code)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}-{highest + 1:0{length}d}"

    @staticmethod
    @transaction.atomic
    def register_complaint(data: Mapping[str, Any], actor: User) -> Complaint:
        """
        Create a complaint in REGISTERED with its initial log entry.

        ``data`` holds the validated ``type``, ``description`` and
        optional ``area``, ``priority`` and ``deadline``.  Without an
        explicit priority the complaint type's default is used.
        """
        complaint_type = data["type"].strip()
        fields = {
            "type": complaint_type,
            "description": data["description"],
            "area": (data.get("area") or "").strip(),
            "priority": data.get("priority") or ComplaintTypeConfigService.get_default_priority(complaint_type),
            "status": ComplaintStatus.REGISTERED,
            "deadline": data.get("deadline"),
            "submitted_by": actor,
            "submitted_on": timezone.now(),
        }
        for attempt in range(1, CODE_ALLOCATION_ATTEMPTS + 1):
            code = ComplaintCreationService.next_complaint_id()
            try:
                # Savepoint: a concurrent registration may take the same code.
                with transaction.atomic():
                    complaint = Complaint.objects.create(complaint_id=code, **fields)
                break
            except IntegrityError:
                logger.warning("Complaint code %s already taken (attempt %d)", code, attempt)
        else:
            raise Conflict("Could not allocate a complaint code. Please retry.")
        _log_transition(complaint, None, ComplaintStatus.REGISTERED, actor, "Complaint registered")

        logger.info("Complaint %s registered by %s", complaint.complaint_id, actor)

        if complaint.area:
            ward_officers = list(
                UserDirectoryService.list_users_by_role(UserRole.WARD_OFFICER, complaint.area)
            )
            transaction.on_commit(
                lambda: NotificationService.create(
                    actor=actor,
                    recipients=ward_officers,
                    event_type="complaint_registered",
                    payload={"complaint_id": complaint.complaint_id},
                    related_object=complaint,
                )
            )
        return complaint


# ═══════════════════════════════════════════════════════════════════
#  Complaint Query Service
# ═══════════════════════════════════════════════════════════════════


def _ward_officer_scope(qs: QuerySet, user: User) -> QuerySet:
    condition = Q(ward_officer=user) | Q(assigned_to=user)
    if user.ward:
        condition |= Q(area__iexact=user.ward)
    return qs.filter(condition)


_COMPLAINT_SCOPE_RULES = {
    UserRole.ADMINISTRATOR: lambda qs, u: qs,
    UserRole.WARD_OFFICER: _ward_officer_scope,
    UserRole.MAINTENANCE_TEAM: lambda qs, u: qs.filter(Q(maintenance_team=u) | Q(assigned_to=u)),
    UserRole.CITIZEN: lambda qs, u: qs.filter(submitted_by=u),
}


class ComplaintQueryService:
    """Role-scoped complaint look-ups."""

    @staticmethod
    def get_visible_queryset(actor: User, filters: Mapping[str, Any] | None = None) -> QuerySet:
        """
        Complaints ``actor`` may see, with optional ``status``,
        ``priority`` and ``type`` filters applied.

        - **Administrator**: everything.
        - **Ward officer**: complaints in their ward or assigned to them.
        - **Maintenance team**: complaints assigned to them.
        - **Citizen**: their own submissions.
        - Users without a recognised role see nothing.
        """
        qs = apply_role_scope(
            Complaint.objects.select_related(
                "ward_officer", "maintenance_team", "assigned_to", "submitted_by",
            ),
            actor,
            scope_rules=_COMPLAINT_SCOPE_RULES,
        )
        filters = filters or {}
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("priority"):
            qs = qs.filter(priority=filters["priority"])
        if filters.get("type"):
            qs = qs.filter(type__iexact=filters["type"])
        return qs

    @staticmethod
    def get_complaint(pk: Any, actor: User | None = None) -> Complaint:
        """
        Fetch one complaint; with ``actor`` the look-up is restricted to
        the actor's visible complaints.

        Raises
        ------
        NotFound
            Unknown or invisible complaint.
        """
        if actor is not None:
            qs = ComplaintQueryService.get_visible_queryset(actor)
        else:
            qs = Complaint.objects.select_related(
                "ward_officer", "maintenance_team", "assigned_to", "submitted_by",
            )
        try:
            return qs.get(pk=pk)
        except (Complaint.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Complaint with pk={pk} does not exist.")

    @staticmethod
    def get_status_log(complaint: Complaint) -> QuerySet:
        return complaint.status_logs.select_related("actor").order_by("created_at", "id")
