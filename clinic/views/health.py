from __future__ import annotations

import logging
import time

from django.conf import settings
from django.db import DatabaseError, connections
from django.utils import timezone
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

logger = logging.getLogger(__name__)

_STARTED = time.monotonic()


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    """Liveness plus a database round-trip."""
    try:
        with connections['default'].cursor() as cursor:
            cursor.execute('SELECT 1')
        database = 'connected'
    except DatabaseError:
        logger.exception("Health check database query failed")
        database = 'unavailable'
    ok = database == 'connected'
    return Response({
        'success': ok,
        'message': 'Server is running' if ok else 'Database unavailable',
        'environment': settings.ENV,
        'database': database,
        'uptime': round(time.monotonic() - _STARTED, 1),
        'timestamp': timezone.now().isoformat(),
    }, status=200 if ok else 503)
