"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the complaint lifecycle
engine stays framework-agnostic.  The global DRF exception handler in
``core.domain.exception_handler`` maps them to HTTP responses.

Mapping cheatsheet
------------------
┌─────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception    │ HTTP equivalent              │ Code │
├─────────────────────┼──────────────────────────────┼──────┤
│ DomainError         │ Bad Request                  │ 400  │
│ ValidationFailed    │ Bad Request ({"errors": []}) │ 400  │
│ PermissionDenied    │ Forbidden                    │ 403  │
│ NotFound            │ Not Found                    │ 404  │
│ Conflict            │ Conflict                     │ 409  │
│ InvalidTransition   │ Conflict                     │ 409  │
└─────────────────────┴──────────────────────────────┴──────┘

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if complaint.status != ComplaintStatus.CLOSED:
        raise InvalidTransition(
            "Only closed complaints can be reopened.",
            current=complaint.status,
            target=ComplaintStatus.REOPENED,
        )
"""

from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class ValidationFailed(DomainError):
    """
    One or more recoverable validation rules failed.

    Carries the **complete** list of human-readable errors collected in a
    single validation pass so the caller can show every outstanding
    problem at once.  Maps to HTTP 400 with an ``errors`` array.
    """

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed.")


class PermissionDenied(DomainError):
    """
    The authenticated user does not have the required role for this
    operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user given their role scope).

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: a stale ``version`` supplied with an update (another
    actor saved the complaint in between).  Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A state-machine transition that is not allowed from the current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="RESOLVED",
            target="REOPENED",
            reason="Only closed complaints can be reopened.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f": {reason}")
            message = " ".join(parts).replace(" :", ":") + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason
