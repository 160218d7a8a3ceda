"""
Operator console wiring.

Builds the credential store, the HTTP client, the session store and the
service wrappers once, and hands out views and import wizards bound to
them.
"""

from typing import Optional
import httpx
from client.datasources import DataSourceService
from client.health import HealthService
from client.http import APIClient
from client.uploads import UploadService
from client.users import UserService
from core.config import settings
from session.credentials import CredentialStore
from session.navigation import Navigator
from session.store import SessionStore
from session.tenant import TenantResolver
from views.datasources import DataSourceListView
from views.imports import ImportListView, RawTransactionListView
from views.server_status import ServerStatus
from wizard.wizard import ImportWizard
import logging

logger = logging.getLogger(__name__)


class Console:
    """
    One operator session against one backend.

    Usage:
        async with Console() as console:
            await console.session.login(email, password)
            wizard = console.import_wizard()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        credential_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **client_options
    ):
        self.credentials = CredentialStore(credential_path)
        self.navigator = Navigator()
        self.api = APIClient(
            base_url=base_url or settings.API_BASE_URL,
            token_provider=self.credentials.get_token,
            transport=transport,
            **client_options
        )
        self.session = SessionStore(self.api, self.credentials, self.navigator)
        self.tenant = TenantResolver(self.api)
        self.datasources = DataSourceService(self.api)
        self.uploads = UploadService(self.api)
        self.users = UserService(self.api)
        self.health = HealthService(self.api)

    async def start(self, hostname: Optional[str] = None):
        """Restore the persisted session and resolve branding."""
        identity = await self.session.init()
        if identity is not None:
            await self.tenant.resolve(hostname)
        return identity

    def import_wizard(self, **options) -> ImportWizard:
        return ImportWizard(self.datasources, self.uploads, **options)

    def data_source_list(self, **options) -> DataSourceListView:
        return DataSourceListView(self.datasources, **options)

    def import_list(self, data_source_id: str, **options) -> ImportListView:
        return ImportListView(self.datasources, data_source_id, **options)

    def raw_transactions(self, import_id: str, **options) -> RawTransactionListView:
        return RawTransactionListView(self.datasources, import_id, **options)

    def server_status(self) -> ServerStatus:
        return ServerStatus(self.health, self.credentials.get_token)

    async def aclose(self) -> None:
        await self.session.close()
        await self.api.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
