"""
Infrastructure endpoints that sit outside the ticketing and payments domains.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for container orchestration and load balancers.

    The database is required; the Redis cache backs the reconciliation
    lock, so a cache outage is reported as "degraded" while the endpoint
    still answers 200 (checkout and gate scans keep working).

    Example Response:
        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    health_status = {"status": "healthy", "database": "unknown", "cache": "unknown"}
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        status_code = 503

    try:
        cache.set("health_check", "ok", timeout=1)
        connected = cache.get("health_check") == "ok"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        connected = False
    health_status["cache"] = "connected" if connected else "disconnected"
    if not connected and status_code == 200:
        health_status["status"] = "degraded"

    return JsonResponse(health_status, status=status_code)
