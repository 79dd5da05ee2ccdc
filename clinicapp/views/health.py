import logging

from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except DatabaseError as e:
        logger.warning('health probe failed: %s', e)
        return JsonResponse({'ok': False, 'database': 'disconnected', 'error': str(e)}, status=503)
    return JsonResponse({
        'ok': bool(row and row[0] == 1),
        'database': 'connected',
        'timestamp': timezone.now().isoformat(),
    })
