"""
Unit tests for tenant resolution and user administration
"""

import pytest

from client.tenants import TenantService
from core.exceptions import ClientValidationError, ResourceNotFoundError
from schemas.api import RoleOperation
from session.tenant import TenantResolver


class TestTenantResolver:
    """Test branding lookup"""

    @pytest.mark.asyncio
    async def test_resolve_by_domain(self, logged_in, backend):
        resolver = TenantResolver(logged_in.api)

        tenant = await resolver.resolve("acme.example.com:443")

        assert tenant.id == "t-1"
        assert backend.count("GET", "/api/v1/tenants/domain/acme.example.com") == 1
        assert backend.count("GET", "/api/v1/tenants/current") == 0

    @pytest.mark.asyncio
    async def test_localhost_uses_current(self, logged_in, backend):
        resolver = TenantResolver(logged_in.api)

        tenant = await resolver.resolve("localhost")

        assert tenant.primary_color == "#003366"
        assert backend.count("GET", "/api/v1/tenants/current") == 1
        assert not any("/tenants/domain/" in path for _, path, _ in backend.calls)

    @pytest.mark.asyncio
    async def test_unknown_domain_falls_back(self, logged_in):
        resolver = TenantResolver(logged_in.api)

        tenant = await resolver.resolve("other.example.com")

        assert tenant.id == "t-1"
        assert resolver.error is None

    @pytest.mark.asyncio
    async def test_failure_reported_not_raised(self, logged_in, backend):
        backend.fail("GET", "/api/v1/tenants/current", status=500, body={"error": "tenant db down"})
        resolver = TenantResolver(logged_in.api)

        assert await resolver.resolve() is None
        assert "tenant db down" in resolver.error

    @pytest.mark.asyncio
    async def test_update_and_logo(self, logged_in):
        resolver = TenantResolver(logged_in.api)
        await resolver.resolve()

        updated = await resolver.update({"primaryColor": "#ff0000"})
        logo_url = await resolver.upload_logo("logo.png", b"\x89PNG", "image/png")

        assert updated.primary_color == "#ff0000"
        assert logo_url == "/static/logos/logo.png"
        assert resolver.tenant.logo_url == logo_url


class TestTenantService:

    @pytest.mark.asyncio
    async def test_get_by_id(self, logged_in, backend):
        tenants = TenantService(logged_in.api)

        tenant = await tenants.get_by_id("t-1")

        assert tenant.name == "Acme"
        assert tenant.domain == "acme.example.com"
        assert backend.count("GET", "/api/v1/tenants/t-1") == 1

    @pytest.mark.asyncio
    async def test_get_by_id_unknown(self, logged_in):
        with pytest.raises(ResourceNotFoundError):
            await TenantService(logged_in.api).get_by_id("t-missing")


class TestUserService:
    """Test role administration"""

    @pytest.mark.asyncio
    async def test_add_and_remove_role(self, logged_in):
        roles = await logged_in.users.update_role("u-1", "admin", RoleOperation.ADD)
        assert roles == ["user", "admin"]

        roles = await logged_in.users.update_role("u-1", "admin", "remove")
        assert roles == ["user"]

    @pytest.mark.asyncio
    async def test_invalid_operation_rejected(self, logged_in, backend):
        with pytest.raises(ClientValidationError):
            await logged_in.users.update_role("u-1", "admin", "promote")
        assert backend.count("PUT", "/api/v1/users/u-1/roles") == 0

    @pytest.mark.asyncio
    async def test_create_user(self, logged_in):
        created = await logged_in.users.create_user("new@example.com", "secret7", "New Op", "viewer")

        assert created.roles == ["viewer"]
        users = await logged_in.users.list_users()
        assert "new@example.com" in [u.email for u in users]

    @pytest.mark.asyncio
    async def test_create_user_validates_email(self, logged_in):
        with pytest.raises(ClientValidationError):
            await logged_in.users.create_user("bad-email", "secret7", "New Op", "viewer")

    @pytest.mark.asyncio
    async def test_refresh_identity_picks_up_roles(self, logged_in, backend):
        backend.users["u-1"]["roles"].append("admin")

        await logged_in.session.refresh_identity()

        assert logged_in.session.is_admin
