"""
core.domain.notifications — Synchronous notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Records only** — a ``Notification`` row is the hand-off point to the
  (external) delivery channel.  Email/SMS/push are not sent from here.
* **Supports multiple recipients** — pass a single ``User`` or an
  iterable of ``User`` instances.  ``None`` entries and duplicates are
  dropped.
* **Generic relation** — ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=[complaint.maintenance_team, complaint.submitted_by],
        event_type="complaint_status_changed",
        payload={"complaint_id": complaint.complaint_id},
        related_object=complaint,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.contrib.contenttypes.models import ContentType
from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → human-readable templates ───────────────────────────
# Templates are formatted with ``payload`` keys; missing keys leave the
# template untouched.
_EVENT_TEMPLATES: dict[str, tuple[str, str]] = {
    # event_type: (title_template, message_template)
    "complaint_registered":     ("Complaint Registered",     "Complaint {complaint_id} has been registered."),
    "complaint_status_changed": ("Complaint Status Updated", "Complaint {complaint_id} moved from {from_status} to {to_status}."),
    "complaint_assigned":       ("Complaint Assigned",       "Complaint {complaint_id} has been assigned to you."),
    "complaint_reopened":       ("Complaint Reopened",       "Complaint {complaint_id} was reopened and needs a maintenance team assignment."),
}


def _normalise_recipients(recipients: Any) -> list[Any]:
    if recipients is None:
        return []
    if isinstance(recipients, models.Model):
        recipients = [recipients]
    unique: list[Any] = []
    seen: set[Any] = set()
    for recipient in recipients:
        if recipient is None or recipient.pk in seen:
            continue
        seen.add(recipient.pk)
        unique.append(recipient)
    return unique


def _render(template: str, payload: dict[str, Any]) -> str:
    try:
        return template.format(**payload)
    except (KeyError, IndexError):
        return template


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def create(
        cls,
        *,
        actor: User,
        recipients: User | Iterable[User | None] | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per distinct recipient.

        Args:
            actor:          The user who performed the action.  The actor
                            never notifies themselves.
            recipients:     A single ``User`` or iterable of ``User``
                            instances (``None`` entries are skipped).
            event_type:     Key into ``_EVENT_TEMPLATES``.  If unknown
                            the raw event_type is used as title.
            payload:        Context dict used for template interpolation.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # lazy: core.models imports settings-bound apps

        targets = [
            r for r in _normalise_recipients(recipients)
            if actor is None or r.pk != getattr(actor, "pk", None)
        ]
        if not targets:
            logger.debug(
                "No recipients for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        title_tpl, message_tpl = _EVENT_TEMPLATES.get(
            event_type,
            (event_type.replace("_", " ").title(), f"Event: {event_type}"),
        )
        payload = payload or {}
        title = _render(title_tpl, payload)
        message = _render(message_tpl, payload)

        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        notifications: list[Notification] = []
        for recipient in targets:
            notif = Notification.objects.create(
                recipient=recipient,
                event_type=event_type,
                title=title,
                message=message,
                content_type=content_type,
                object_id=object_id,
            )
            notifications.append(notif)

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
