"""
Accounts app Service Layer.

Architecture
------------
- ``UserDirectoryService`` — Read-only listing of assignable users
                             (ward officers, maintenance-team members)
                             by role and optional ward scope.

User provisioning and authentication-token issuance are handled outside
this system; the engine only consumes user records.
"""

from __future__ import annotations

import logging

from django.db.models import Q, QuerySet

from core.domain.access import normalize_role_name, require_role
from core.domain.exceptions import DomainError

from .models import Role, User, UserRole

logger = logging.getLogger(__name__)


class UserDirectoryService:
    """
    Look-ups used to populate assignment candidates for the complaint
    update form.

    The lifecycle engine itself never calls this: it assumes that any
    identifier passed in an update patch was chosen from this list, and
    re-checks the role of the referenced user before persisting.
    """

    #: Roles allowed to browse the directory.
    BROWSER_ROLES: tuple[str, ...] = (
        UserRole.WARD_OFFICER,
        UserRole.ADMINISTRATOR,
    )

    @staticmethod
    def list_users_by_role(
        role: str,
        ward: str | None = None,
        *,
        search: str | None = None,
    ) -> QuerySet[User]:
        """
        Return active users holding ``role``, optionally restricted to
        ``ward`` (case-insensitive exact match).

        Parameters
        ----------
        role : str
            A ``UserRole`` code.
        ward : str, optional
            Ward scope.  Blank / ``None`` → all wards.
        search : str, optional
            Case-insensitive match on full name, email or username.

        Raises
        ------
        DomainError
            If ``role`` is not a known role code.
        """
        if role not in UserRole.values:
            raise DomainError(
                f"Unknown role '{role}'. Expected one of: {', '.join(UserRole.values)}."
            )

        # Stored role names may be labels ("Ward Officer") rather than codes.
        role_ids = [
            pk for pk, name in Role.objects.values_list("pk", "name")
            if normalize_role_name(name) == role
        ]
        qs = (
            User.objects
            .select_related("role")
            .filter(is_active=True, role_id__in=role_ids)
        )
        if ward:
            qs = qs.filter(ward__iexact=ward.strip())
        if search:
            qs = qs.filter(
                Q(full_name__icontains=search)
                | Q(email__icontains=search)
                | Q(username__icontains=search)
            )
        return qs.order_by("full_name", "email")

    @classmethod
    def list_for_actor(
        cls,
        actor: User,
        role: str,
        ward: str | None = None,
        *,
        search: str | None = None,
    ) -> QuerySet[User]:
        """
        Directory listing on behalf of ``actor``.

        Ward officers are always scoped to their own ward; administrators
        may pass any ward (or none).
        """
        actor_role = require_role(actor, *cls.BROWSER_ROLES)
        if actor_role == UserRole.WARD_OFFICER and actor.ward:
            ward = actor.ward
        users = cls.list_users_by_role(role, ward, search=search)
        logger.debug(
            "Directory lookup role=%s ward=%s by %s", role, ward or "*", actor,
        )
        return users
