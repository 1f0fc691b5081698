"""DRF exception handler that understands the domain error taxonomy."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import ConflictError, DomainError, DomainValidationError, NotFoundError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DomainValidationError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def status_for(exc: DomainError) -> int:
    for kind, http_status in STATUS_BY_KIND:
        if isinstance(exc, kind):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):  # type: ignore
    """Render DomainError subclasses as structured API failures."""

    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.info(
            f"Rejected {view.__class__.__name__ if view else 'request'}: "
            f"{exc.code} - {exc.message}"
        )
        return Response(exc.to_dict(), status=status_for(exc))
    return drf_exception_handler(exc, context)
