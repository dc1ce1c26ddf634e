"""
Core app Service Layer.

Cross-app read services that back the ``/api/core/`` endpoints.

Architecture
------------
- ``SystemConstantsService``   — Choice enumerations and the role ×
                                 status options table for the frontend.
- ``NotificationInboxService`` — Listing / mark-as-read of the
                                 ``Notification`` records the lifecycle
                                 engine emits.

Notification *creation* lives in ``core.domain.notifications``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.db.models import QuerySet

from core.domain.exceptions import NotFound

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all system-wide choice enumerations into a single dict for
    the frontend.

    This service is **stateless** — it does not depend on the requesting
    user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import UserRole
        from complaints.models import ComplaintPriority, ComplaintStatus
        from complaints.services import StatusTransitionValidator

        to_list = SystemConstantsService._choices_to_list

        status_options = [
            {
                "role": role,
                "current_status": current,
                "options": StatusTransitionValidator.get_available_status_options(role, current),
            }
            for role in UserRole.values
            for current in ComplaintStatus.values
        ]

        return {
            "complaint_statuses": to_list(ComplaintStatus),
            "complaint_priorities": to_list(ComplaintPriority),
            "roles": to_list(UserRole),
            "status_options": status_options,
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification Inbox Service
# ═══════════════════════════════════════════════════════════════════

class NotificationInboxService:
    """
    Handles listing and marking notifications as read for a given user.
    """

    def __init__(self, user: User) -> None:
        self.user = user

    def list_notifications(self, *, unread_only: bool = False) -> QuerySet[Notification]:
        """Return notifications for ``self.user``, most recent first."""
        from core.models import Notification

        qs = (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("content_type")
            .order_by("-created_at", "-id")
        )
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs

    def mark_as_read(self, notification_id: Any) -> Notification:
        """
        Mark a single notification as read.

        Raises:
            NotFound: If the notification does not exist or belongs to
                      another user.
        """
        from core.models import Notification

        try:
            notification = Notification.objects.get(
                pk=notification_id,
                recipient=self.user,
            )
        except (Notification.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Notification with pk={notification_id} does not exist.")
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
        return notification
