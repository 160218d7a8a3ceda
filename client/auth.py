"""
Authentication endpoints
"""

from client.base import BaseService
from schemas.api import AuthResponse, LoginRequest, RegisterRequest, TokenInfo


class AuthService(BaseService):
    """Raw auth calls. Only SessionStore persists what these return."""

    async def login(self, request: LoginRequest) -> AuthResponse:
        payload = await self.api.post(
            "/auth/login",
            json=request.model_dump(),
            escalate_unauthorized=False
        )
        return self.parse(AuthResponse, payload, "/auth/login")

    async def register(self, request: RegisterRequest) -> AuthResponse:
        payload = await self.api.post(
            "/auth/register",
            json=request.model_dump(),
            escalate_unauthorized=False
        )
        return self.parse(AuthResponse, payload, "/auth/register")

    async def token_info(self, escalate_unauthorized: bool = True) -> TokenInfo:
        payload = await self.api.get("/auth/token-info", escalate_unauthorized=escalate_unauthorized)
        return self.parse(TokenInfo, payload, "/auth/token-info")
