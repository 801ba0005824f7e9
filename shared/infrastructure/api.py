"""
REST error rendering

Maps allocation errors onto HTTP responses so every endpoint reports
``{"detail", "code", "context"}`` with the status the error declares.
"""

import logging

from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import AllocationError

logger = logging.getLogger(__name__)


def allocation_exception_handler(exc, context):
    if isinstance(exc, AllocationError):
        view = context.get("view")
        logger.info(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        headers = {"Retry-After": "1"} if exc.retryable else None
        return Response(exc.to_dict(), status=exc.http_status, headers=headers)
    return drf_exception_handler(exc, context)
