"""
Backend client: the HTTP adapter and one service wrapper per resource.

Modules:
    http: APIClient (bearer injection, retries for GET, error taxonomy, 401 hook)
    base: BaseService with typed response parsing
    auth: Login, register, token-info
    datasources: Data-source registry, imports, raw transactions
    uploads: Preview upload, preview data, process
    users: Users and roles
    tenants: Tenant lookup, update, logo upload
    health: Liveness probe

Usage:
    from client.http import APIClient
    from client.datasources import DataSourceService

Example:
    async with APIClient(token_provider=lambda: token) as api:
        sources = await DataSourceService(api).list_data_sources()
"""

__all__ = [
    "APIClient",
    "BaseService",
    "AuthService",
    "DataSourceService",
    "UploadService",
    "UserService",
    "TenantService",
    "HealthService",
]
