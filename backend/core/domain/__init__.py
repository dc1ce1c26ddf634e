"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions     Domain-specific exceptions that map cleanly to HTTP responses.
notifications  Synchronous notification creation helper.
transactions   Helpers for ``transaction.atomic`` + ``select_for_update``.
access         Authentic actor-role resolution and role-scoped querysets.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.notifications import NotificationService
    from core.domain.transactions import lock_for_update
    from core.domain.access import get_actor_role
"""
