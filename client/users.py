"""
User and role administration endpoints
"""

from typing import List, Union
from urllib.parse import quote
from pydantic import ValidationError
from client.base import BaseService
from core.exceptions import ClientValidationError
from schemas.api import (
    CreateUserRequest,
    RoleOperation,
    RoleUpdate,
    UserSummary,
    UserWithRoles,
)
import logging

logger = logging.getLogger(__name__)


def _user_path(user_id: str) -> str:
    return f"/users/{quote(user_id, safe='')}"


class UserService(BaseService):
    """Users, roles and admin-side user creation."""

    async def get_user(self, user_id: str, escalate_unauthorized: bool = True) -> UserWithRoles:
        endpoint = _user_path(user_id)
        payload = await self.api.get(endpoint, escalate_unauthorized=escalate_unauthorized)
        return self.parse(UserWithRoles, payload, endpoint)

    async def list_users(self) -> List[UserSummary]:
        return self.parse_list(UserSummary, await self.api.get("/users"), "/users")

    async def get_roles(self, user_id: str) -> List[str]:
        endpoint = f"{_user_path(user_id)}/roles"
        payload = await self.api.get(endpoint) or {}
        roles = payload.get("roles") if isinstance(payload, dict) else None
        return list(roles or [])

    async def update_role(
        self,
        user_id: str,
        role: str,
        operation: Union[RoleOperation, str]
    ) -> List[str]:
        """Add or remove one role; returns the user's roles afterwards."""
        try:
            update = RoleUpdate(role=role, operation=operation)
        except ValidationError as e:
            raise ClientValidationError(
                "Invalid role update",
                context={"field_errors": [err["msg"] for err in e.errors()]},
                original_exception=e
            )
        endpoint = f"{_user_path(user_id)}/roles"
        payload = await self.api.put(endpoint, json=update.model_dump()) or {}
        logger.info(f"Role {update.operation} '{update.role}' for user {user_id}")
        roles = payload.get("roles") if isinstance(payload, dict) else None
        return list(roles or [])

    async def create_user(self, email: str, password: str, name: str, role: str) -> UserWithRoles:
        try:
            request = CreateUserRequest(email=email, password=password, name=name, role=role)
        except ValidationError as e:
            raise ClientValidationError(
                "Invalid user details",
                context={"field_errors": [err["msg"] for err in e.errors()]},
                original_exception=e
            )
        payload = await self.api.post("/users", json=request.model_dump())
        created = self.parse(UserWithRoles, payload, "/users")
        logger.info(f"Created user {created.user.id} with role {role}")
        return created
