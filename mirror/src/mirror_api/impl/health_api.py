from __future__ import annotations

from mirror_api.apis.health_api_base import BaseHealthApi
from mirror_api.models.health_status import HealthStatus


class HealthApiImpl(BaseHealthApi):
    async def get_health(self) -> HealthStatus:
        return HealthStatus(status="ok")
