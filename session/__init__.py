"""
Session and identity management.

Modules:
    credentials: Persisted credential file (single writer: SessionStore)
    navigation: Current route and login redirects
    scheduler: Recurring token-expiry check (APScheduler)
    store: SessionStore lifecycle (init, login, register, refresh, logout)
    tenant: TenantResolver for branding context
"""

__all__ = [
    "CredentialStore",
    "Navigator",
    "TokenExpiryScheduler",
    "SessionStore",
    "TenantResolver",
]
