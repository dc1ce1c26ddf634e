"""
core.domain.transactions — Helpers for safe, per-entity serialised writes.

Provides utilities that wrap ``transaction.atomic`` and
``select_for_update`` into reusable patterns so that every mutating
service follows the same concurrency-safe approach.

Two actors updating the *same* complaint are serialised by the row lock;
updates to *different* complaints never contend.

Usage::

    from core.domain.transactions import check_version, lock_for_update

    with transaction.atomic():
        complaint = lock_for_update(Complaint, pk)
        check_version(complaint, patch.get("version"))
        ...
"""

from __future__ import annotations

from typing import Any, TypeVar

from django.db import models

from core.domain.exceptions import Conflict, NotFound

M = TypeVar("M", bound=models.Model)


def lock_for_update(
    model_class: type[M],
    pk: Any,
    *,
    select_related: tuple[str, ...] = (),
) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class:    The Django model class.
        pk:             Primary key value.
        select_related: Relations to join in the same query.

    Raises:
        NotFound: If no row with that PK exists.
    """
    if select_related:
        # Only the target row is locked; joined rows may be NULL.
        qs = model_class.objects.select_for_update(of=("self",)).select_related(*select_related)
    else:
        qs = model_class.objects.select_for_update()
    try:
        return qs.get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")


def check_version(instance: models.Model, expected: int | None, field: str = "version") -> None:
    """
    Optimistic concurrency guard.

    ``expected`` is the version the caller last read.  ``None`` skips the
    check (the row lock alone serialises the write).

    Raises:
        Conflict: If the stored version differs from ``expected``.
    """
    if expected is None:
        return
    current = getattr(instance, field)
    if current != expected:
        raise Conflict(
            f"{type(instance).__name__} pk={instance.pk} was modified by another "
            f"user (version {current}, you sent {expected}). Reload and retry."
        )
