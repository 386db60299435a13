"""
REST framework exception handler for scheduling errors.
"""

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import SchedulingError, SlotConflictError


logger = logging.getLogger(__name__)


def scheduling_exception_handler(exc, context):
    """Render SchedulingError subclasses as {"error": code, "detail": message}."""
    if not isinstance(exc, SchedulingError):
        return exception_handler(exc, context)

    data = {'error': exc.code, 'detail': exc.message}
    if isinstance(exc, SlotConflictError) and exc.reason:
        data['reason'] = exc.reason

    logger.debug("%s handled as %s: %s", type(exc).__name__, exc.status_code, exc.message)
    return Response(data, status=exc.status_code)
