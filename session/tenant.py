"""
Tenant (branding) resolution.

Branding is non-critical: every failure is logged and reported through
``error`` instead of being raised.
"""

from typing import Any, Dict, Optional
from client.http import APIClient
from client.tenants import TenantService
from core.exceptions import RequestError
from schemas.api import Tenant
import logging

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1")


class TenantResolver:
    """Keeps the active tenant for the current hostname."""

    def __init__(self, api: APIClient):
        self.tenants = TenantService(api)
        self.tenant: Optional[Tenant] = None
        self.error: Optional[str] = None

    async def resolve(self, hostname: Optional[str] = None) -> Optional[Tenant]:
        """
        Look the tenant up by domain, then fall back to the tenant of the
        current identity. Local hosts skip the domain lookup.
        """
        self.error = None
        host = (hostname or "").split(":", 1)[0].strip().lower()

        if host and host not in LOCAL_HOSTS:
            try:
                self.tenant = await self.tenants.get_by_domain(host)
                logger.info(f"Resolved tenant {self.tenant.id} for domain {host}")
                return self.tenant
            except RequestError as e:
                logger.warning(f"No tenant for domain {host}: {e.operator_message}")

        try:
            self.tenant = await self.tenants.get_current()
            logger.info(f"Resolved current tenant {self.tenant.id}")
        except RequestError as e:
            logger.error(f"Failed to resolve tenant: {e.operator_message}")
            self.tenant = None
            self.error = e.operator_message
        return self.tenant

    async def update(self, changes: Dict[str, Any]) -> Optional[Tenant]:
        if self.tenant is None:
            self.error = "No tenant resolved"
            return None
        self.error = None
        try:
            self.tenant = await self.tenants.update(self.tenant.id, changes)
        except RequestError as e:
            logger.error(f"Failed to update tenant {self.tenant.id}: {e.operator_message}")
            self.error = e.operator_message
        return self.tenant

    async def upload_logo(
        self,
        file_name: str,
        content: bytes,
        content_type: Optional[str] = None
    ) -> Optional[str]:
        if self.tenant is None:
            self.error = "No tenant resolved"
            return None
        self.error = None
        try:
            logo_url = await self.tenants.upload_logo(self.tenant.id, file_name, content, content_type)
        except RequestError as e:
            logger.error(f"Failed to upload logo for tenant {self.tenant.id}: {e.operator_message}")
            self.error = e.operator_message
            return None
        self.tenant = self.tenant.model_copy(update={"logo_url": logo_url})
        return logo_url
