from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from infrastructure.cache import check_cache_connection
from infrastructure.database import check_database_connection


class HealthCheckView(APIView):
    """Liveness probe"""

    authentication_classes = []
    permission_classes = []

    def get(self, request):
        return Response(
            {"status": "healthy", "service": "dispatch"},
            status=status.HTTP_200_OK,
        )


class ReadinessCheckView(APIView):
    """Readiness check - verifies the database and the cache answer"""

    authentication_classes = []
    permission_classes = []

    def get(self, request):
        checks = {
            "database": check_database_connection(),
            "cache": check_cache_connection(),
        }

        all_healthy = all(checks.values())

        return Response(
            {"status": "ready" if all_healthy else "not_ready", "checks": checks},
            status=status.HTTP_200_OK
            if all_healthy
            else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
