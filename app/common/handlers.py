from __future__ import annotations

import logging

from django.db import DatabaseError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from common.exceptions import StorageUnavailable, WorkforceError


logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception("Storage failure", extra={"view": view.__class__.__name__ if view else ""})
        exc = StorageUnavailable()

    if isinstance(exc, WorkforceError):
        if exc.status_code < 500:
            logger.warning(
                "Request rejected: %s",
                exc.message,
                extra={"error": exc.__class__.__name__, "status": exc.status_code},
            )
        return Response({"message": exc.message}, status=exc.status_code)

    return exception_handler(exc, context)
