"""
Backend liveness endpoint
"""

from client.base import BaseService
from schemas.api import HealthStatus


class HealthService(BaseService):

    async def check(self) -> HealthStatus:
        # /health lives outside the API prefix and needs no credential
        payload = await self.api.get("/health", absolute=True, escalate_unauthorized=False)
        return self.parse(HealthStatus, payload, "/health")
