"""Core app views.

Login and token refresh are served by SimpleJWT directly (see urls.py);
this module only holds the health check.
"""

from django.db import connection
from django.http import JsonResponse


def health(request):
    """Health check endpoint - no authentication required."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1;')
    except Exception as exc:
        return JsonResponse({'status': 'error', 'detail': str(exc)}, status=503)

    return JsonResponse({'status': 'ok'})
