"""
core.domain.exception_handler — DRF-compatible global exception handler.

Turns the domain exceptions raised by the complaint services into HTTP
responses, so views never wrap service calls in try/except.

Registered in ``backend/settings.py``::

    REST_FRAMEWORK = {
        ...
        'EXCEPTION_HANDLER': 'core.domain.exception_handler.domain_exception_handler',
    }

Response bodies
---------------
* every domain error      → ``{"detail": "<message>"}``
* ``ValidationFailed``    → adds ``"errors": [...]`` (all messages)
* ``InvalidTransition``   → adds ``"current_status"`` / ``"target_status"``
  when the exception carries them
"""

from __future__ import annotations

import logging
from typing import Any

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses before their bases.
_STATUS_MAP: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationFailed, 400),
    (PermissionDenied, 403),
    (NotFound, 404),
    (InvalidTransition, 409),
    (Conflict, 409),
    (DomainError, 400),
)


def _body_for(exc: DomainError) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": str(exc)}
    if isinstance(exc, ValidationFailed):
        body["errors"] = exc.errors
    elif isinstance(exc, InvalidTransition):
        if exc.current:
            body["current_status"] = exc.current
        if exc.target:
            body["target_status"] = exc.target
    return body


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that also understands ``core.domain.exceptions``.

    DRF's own handler runs first; anything it does not recognise and that
    is not a ``DomainError`` is left to propagate (``None``).
    """
    response = drf_default_handler(exc, context)
    if response is not None or not isinstance(exc, DomainError):
        return response

    status_code = next(code for cls, code in _STATUS_MAP if isinstance(exc, cls))
    log = logger.info if status_code == 404 else logger.warning
    log(
        "%s in %s: %s",
        type(exc).__name__,
        context.get("view", "unknown"),
        exc,
    )
    return Response(_body_for(exc), status=status_code)
