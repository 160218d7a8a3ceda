"""
Tenant endpoints
"""

from typing import Any, Dict, Optional
from urllib.parse import quote
from client.base import BaseService
from core.exceptions import ResponseShapeError
from schemas.api import Tenant


def _tenant_path(tenant_id: str) -> str:
    return f"/tenants/{quote(tenant_id, safe='')}"


class TenantService(BaseService):

    async def get_current(self) -> Tenant:
        return self.parse(Tenant, await self.api.get("/tenants/current"), "/tenants/current")

    async def get_by_id(self, tenant_id: str) -> Tenant:
        endpoint = _tenant_path(tenant_id)
        return self.parse(Tenant, await self.api.get(endpoint), endpoint)

    async def get_by_domain(self, domain: str) -> Tenant:
        endpoint = f"/tenants/domain/{quote(domain, safe='')}"
        return self.parse(Tenant, await self.api.get(endpoint), endpoint)

    async def update(self, tenant_id: str, changes: Dict[str, Any]) -> Tenant:
        endpoint = _tenant_path(tenant_id)
        return self.parse(Tenant, await self.api.put(endpoint, json=changes), endpoint)

    async def upload_logo(
        self,
        tenant_id: str,
        file_name: str,
        content: bytes,
        content_type: Optional[str] = None
    ) -> str:
        """Returns the new logo URL."""
        endpoint = f"{_tenant_path(tenant_id)}/logo"
        payload = await self.api.post(
            endpoint,
            files={"logo": (file_name, content, content_type or "application/octet-stream")}
        )
        logo_url = payload.get("logoUrl") if isinstance(payload, dict) else None
        if not logo_url:
            raise ResponseShapeError(
                "Logo upload response is missing logoUrl",
                context={"endpoint": endpoint, "response_body": str(payload)[:500]}
            )
        return logo_url
