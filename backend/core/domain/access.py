"""
core.domain.access — Authentic actor-role resolution and role guards.

Role is the **sole** authorization axis of the complaint lifecycle engine.
The role is always read from the authenticated ``User`` row (via its
``Role`` FK) — never from a request payload, header, or ambient session
state — and passed explicitly into every engine call.

Architecture overview
---------------------
::

    ┌─────────┐      ┌────────────────┐      ┌──────────────────┐
    │  View   │─────▶│  App service   │─────▶│ core.domain      │
    │ (thin)  │      │ (owns logic)   │      │   .access        │
    └─────────┘      └────────────────┘      └──────────────────┘

Usage in an app's service layer::

    from core.domain.access import apply_role_scope, get_actor_role

    role = get_actor_role(actor)
    qs = apply_role_scope(
        Complaint.objects.all(),
        actor,
        scope_rules={
            "ADMINISTRATOR": lambda qs, u: qs,
            "MAINTENANCE_TEAM": lambda qs, u: qs.filter(maintenance_team=u),
        },
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

if TYPE_CHECKING:
    from accounts.models import User

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]


def normalize_role_name(name: str | None) -> str:
    """
    Map a stored ``Role.name`` to its ``UserRole`` code.

    Matching ignores case and treats spaces as underscores, so
    ``"Ward Officer"`` and ``"WARD_OFFICER"`` are the same role.
    Unrecognised names yield ``""``.
    """
    from accounts.models import UserRole

    code = (name or "").strip().upper().replace(" ", "_")
    return code if code in UserRole.values else ""


def get_actor_role(user: User | None) -> str:
    """
    Return the canonical role code (``UserRole`` value) for ``user``.

    * Superusers act as ``ADMINISTRATOR``.
    * A role whose name is not one of the ``UserRole`` codes (matched
      case-insensitively, spaces treated as underscores) yields ``""``,
      which the engine treats as an "other" role.
    * Anonymous / inactive / missing users yield ``""``.
    """
    from accounts.models import UserRole

    if user is None or not getattr(user, "is_authenticated", False):
        return ""
    if not getattr(user, "is_active", True):
        return ""
    if getattr(user, "is_superuser", False):
        return UserRole.ADMINISTRATOR
    role = getattr(user, "role", None)
    if role is None:
        return ""
    return normalize_role_name(role.name)


def apply_role_scope(
    queryset: QuerySet,
    user: User,
    *,
    scope_rules: dict[str, ScopeFilter],
    default: ScopeFilter | None = None,
) -> QuerySet:
    """
    Apply the scope rule registered for the user's role.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_rules:  ``{role_code: filter_fn}``.
        default:      Filter used when the role has no rule.  ``None``
                      (default) → empty queryset.
    """
    role = get_actor_role(user)
    if role in scope_rules:
        return scope_rules[role](queryset, user)
    if default is not None:
        return default(queryset, user)
    return queryset.none()


def require_role(user: User, *allowed_roles: str, message: str = "") -> str:
    """
    Guard that raises ``PermissionDenied`` if the user's authentic role
    is not among ``allowed_roles``.

    Returns:
        The resolved role code, for the caller's convenience.
    """
    from core.domain.exceptions import PermissionDenied as DomainPermissionDenied

    role = get_actor_role(user)
    if role not in allowed_roles:
        raise DomainPermissionDenied(
            message
            or f"Role '{role or 'none'}' is not permitted for this operation. "
               f"Required: {', '.join(allowed_roles)}."
        )
    return role
