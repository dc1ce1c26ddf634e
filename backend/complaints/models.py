"""
Complaints app models.

Covers the complete complaint lifecycle — citizen registration, ward
officer triage and assignment, maintenance-team field work, closure and
the administrator-only reopen cascade.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.domain.exceptions import DomainError
from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class ComplaintStatus(models.TextChoices):
    """
    The only status values a complaint may hold.

    ``REOPENED`` is logged as a transient milestone by the reopen
    cascade; a complaint never rests in it.
    """

    REGISTERED = "REGISTERED", "Registered"
    ASSIGNED = "ASSIGNED", "Assigned"
    IN_PROGRESS = "IN_PROGRESS", "In Progress"
    RESOLVED = "RESOLVED", "Resolved"
    CLOSED = "CLOSED", "Closed"
    REOPENED = "REOPENED", "Reopened"


class ComplaintPriority(models.TextChoices):
    LOW = "LOW", "Low"
    MEDIUM = "MEDIUM", "Medium"
    HIGH = "HIGH", "High"
    CRITICAL = "CRITICAL", "Critical"


#: Statuses after which assignment rules no longer apply.
FINALIZED_STATUSES = frozenset({ComplaintStatus.RESOLVED, ComplaintStatus.CLOSED})


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class ComplaintType(TimeStampedModel):
    """
    Complaint category with its SLA duration.

    Looked up by case-insensitive ``name`` match.  A non-positive
    ``sla_hours`` is treated as "no SLA configured".
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Type Name",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    priority = models.CharField(
        max_length=10,
        choices=ComplaintPriority.choices,
        default=ComplaintPriority.MEDIUM,
        verbose_name="Default Priority",
    )
    sla_hours = models.PositiveIntegerField(
        default=48,
        verbose_name="SLA (hours)",
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name="Active",
    )

    class Meta:
        verbose_name = "Complaint Type"
        verbose_name_plural = "Complaint Types"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.sla_hours}h)"


class Complaint(TimeStampedModel):
    """
    Aggregate root — a citizen complaint.

    * Created once in ``REGISTERED`` with one initial status-log entry.
    * Mutated only through ``ComplaintLifecycleService.apply_update`` and
      ``ReopenWorkflowService.reopen``.
    * Never deleted; ``CLOSED`` is the terminal resting state.

    ``ward_officer`` / ``maintenance_team`` are the current assignment
    relations.  ``assigned_to`` is the legacy single-assignee relation
    kept for older clients.
    """

    complaint_id = models.CharField(
        max_length=32,
        unique=True,
        verbose_name="Complaint Code",
        help_text="Human-readable code such as CMP-00045.",
    )
    type = models.CharField(
        max_length=100,
        verbose_name="Complaint Type",
        db_index=True,
    )
    description = models.TextField(
        verbose_name="Description",
    )
    area = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Area / Ward",
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=ComplaintPriority.choices,
        default=ComplaintPriority.MEDIUM,
        verbose_name="Priority",
    )
    status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        default=ComplaintStatus.REGISTERED,
        verbose_name="Current Status",
        db_index=True,
    )

    # ── Assignment ──────────────────────────────────────────────────
    ward_officer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ward_officer_complaints",
        verbose_name="Ward Officer",
    )
    maintenance_team = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="maintenance_complaints",
        verbose_name="Maintenance Team",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_complaints",
        verbose_name="Assigned To (legacy)",
    )
    needs_team_assignment = models.BooleanField(
        default=False,
        verbose_name="Needs Team Assignment",
        help_text="Set when a maintenance-team assignment is still outstanding.",
    )

    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="submitted_complaints",
        verbose_name="Submitted By",
    )

    # ── Milestones (each set at most once) ──────────────────────────
    submitted_on = models.DateTimeField(
        default=timezone.now,
        null=True,
        blank=True,
        verbose_name="Submitted On",
    )
    assigned_on = models.DateTimeField(null=True, blank=True, verbose_name="Assigned On")
    resolved_on = models.DateTimeField(null=True, blank=True, verbose_name="Resolved On")
    closed_on = models.DateTimeField(null=True, blank=True, verbose_name="Closed On")
    deadline = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Explicit Deadline",
        help_text="Used for SLA only when the complaint type has no SLA configured.",
    )

    remarks = models.TextField(
        blank=True,
        default="",
        verbose_name="Latest Remarks",
    )
    version = models.PositiveIntegerField(
        default=0,
        verbose_name="Version",
        help_text="Incremented on every write; used to reject stale updates.",
    )

    class Meta:
        verbose_name = "Complaint"
        verbose_name_plural = "Complaints"
        ordering = ["-submitted_on", "-id"]
        indexes = [
            models.Index(fields=["status", "priority"]),
        ]

    def __str__(self):
        return f"{self.complaint_id} — {self.type} [{self.status}]"

    @property
    def is_finalized(self) -> bool:
        """True once the complaint is RESOLVED or CLOSED."""
        return self.status in FINALIZED_STATUSES


class ComplaintStatusLog(TimeStampedModel):
    """
    Immutable, append-only audit trail of every status transition.

    ``from_status`` is ``NULL`` only for the initial REGISTERED entry.
    ``created_at`` is the entry's timestamp.
    """

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="status_logs",
        verbose_name="Complaint",
    )
    from_status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        null=True,
        blank=True,
        verbose_name="Previous Status",
    )
    to_status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        verbose_name="New Status",
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="complaint_status_changes",
        verbose_name="Changed By",
    )
    comment = models.TextField(
        blank=True,
        default="",
        verbose_name="Comment",
    )

    class Meta:
        verbose_name = "Complaint Status Log"
        verbose_name_plural = "Complaint Status Logs"
        ordering = ["created_at", "id"]

    def __str__(self):
        return (
            f"{self.complaint_id}: "
            f"{self.from_status or '—'} → {self.to_status}"
        )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise DomainError("Status log entries are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise DomainError("Status log entries cannot be deleted.")
