"""
Session/identity store.

Owns the persisted credential and the current identity. The lifecycle is
explicit: ``init`` (restore), ``login``/``register``, ``refresh``,
``logout``; teardown on expiry or on any 401 redirects to the login
entry point exactly once, preserving the route the operator was on.
"""

from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel, ValidationError
from jose import jwt, JWTError
from client.auth import AuthService
from client.http import APIClient
from client.users import UserService
from core.config import settings
from core.exceptions import ClientValidationError, RequestError, SessionError
from schemas.api import AuthResponse, Identity, LoginRequest, RegisterRequest
from session.credentials import CredentialStore
from session.navigation import Navigator
from session.scheduler import TokenExpiryScheduler
import logging
import time

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def decode_claims(token: str) -> Optional[Dict[str, Any]]:
    """Read the JWT payload without verifying it; None when undecodable."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.warning(f"Could not decode persisted token: {e}")
        return None
    return claims if isinstance(claims, dict) else None


def _validated(model, **values) -> BaseModel:
    try:
        return model(**values)
    except ValidationError as e:
        raise ClientValidationError(
            "Invalid credentials",
            context={
                "field_errors": {
                    str(err["loc"][0]) if err["loc"] else "form": err["msg"] for err in e.errors()
                }
            },
            original_exception=e
        )


class SessionStore:
    """
    Single owner of the authenticated session.

    Attributes:
        identity: The current operator, or None
        roles: Server-confirmed roles of the current operator
    """

    def __init__(
        self,
        api: APIClient,
        credentials: CredentialStore,
        navigator: Navigator,
        clock: Callable[[], float] = time.time,
        check_interval_seconds: Optional[int] = None,
        refresh_threshold_seconds: Optional[int] = None
    ):
        self.api = api
        self.credentials = credentials
        self.navigator = navigator
        self.auth = AuthService(api)
        self.users = UserService(api)
        self.identity: Optional[Identity] = None
        self.roles: List[str] = []
        self.refresh_threshold_seconds = (
            refresh_threshold_seconds
            if refresh_threshold_seconds is not None
            else settings.TOKEN_REFRESH_THRESHOLD_SECONDS
        )
        self._clock = clock
        self._torn_down = False
        self.expiry_check = TokenExpiryScheduler(self.check_expiry, check_interval_seconds)
        api.set_unauthorized_handler(self.handle_unauthorized)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self.credentials.token

    @property
    def is_authenticated(self) -> bool:
        expires_at = self.credentials.expires_at
        return (
            self.identity is not None
            and self.token is not None
            and expires_at is not None
            and self._clock() < expires_at
        )

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles

    def require_identity(self) -> Identity:
        if self.identity is None:
            raise SessionError("Not logged in")
        return self.identity

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> Optional[Identity]:
        """
        Restore the session from the persisted credential.

        The credential is discarded when its embedded expiry has passed,
        when it cannot be decoded, or when the token-info round trip or
        the identity lookup fails.
        """
        token = self.credentials.token
        if not token:
            logger.info("No persisted credential; starting anonymous")
            return None

        claims = decode_claims(token)
        if claims is None:
            return self._discard("credential could not be decoded")

        now = self._clock()
        exp = claims.get("exp")
        if exp is not None and float(exp) <= now:
            return self._discard("credential has expired")
        stored_expiry = self.credentials.expires_at
        if stored_expiry is not None and stored_expiry <= now:
            return self._discard("credential has expired")

        user_id = claims.get("user_id") or claims.get("sub")
        if not user_id:
            return self._discard("credential carries no user id")

        try:
            info = await self.auth.token_info(escalate_unauthorized=False)
            self.credentials._write_credential(info.token, self._clock() + info.expires_in)
            details = await self.users.get_user(str(user_id), escalate_unauthorized=False)
        except RequestError as e:
            return self._discard(f"credential rejected by backend ({e.operator_message})")

        self.identity = Identity(
            id=details.user.id,
            email=details.user.email,
            name=details.user.name,
            auth_provider="local"
        )
        self.roles = details.roles
        self._torn_down = False
        self.expiry_check.start()
        logger.info(f"Restored session for {self.identity.email}")
        return self.identity

    async def login(self, email: str, password: str) -> Identity:
        request = _validated(LoginRequest, email=email, password=password)
        response = await self.auth.login(request)
        return await self._establish(response)

    async def register(self, name: str, email: str, password: str) -> Identity:
        request = _validated(RegisterRequest, name=name, email=email, password=password)
        response = await self.auth.register(request)
        return await self._establish(response)

    async def _establish(self, response: AuthResponse) -> Identity:
        self.credentials._write_credential(response.token, self._clock() + response.expires_in)
        self.identity = response.user
        self._torn_down = False
        self.roles = await self._load_roles(response.user.id)
        self.expiry_check.start()
        logger.info(f"Logged in as {self.identity.email}")

        self.navigator.navigate(self.credentials._pop_redirect_path() or "/")
        return self.identity

    async def _load_roles(self, user_id: str) -> List[str]:
        try:
            return await self.users.get_roles(user_id)
        except RequestError as e:
            logger.warning(f"Could not load roles for {user_id}: {e.operator_message}")
            return []

    async def refresh(self) -> bool:
        """Renew the credential through token-info; tear down on failure."""
        try:
            info = await self.auth.token_info()
        except RequestError as e:
            logger.error(f"Token refresh failed: {e.operator_message}")
            await self.handle_unauthorized()
            return False
        self.credentials._write_credential(info.token, self._clock() + info.expires_in)
        logger.info("Credential refreshed")
        return True

    async def refresh_identity(self) -> Optional[Identity]:
        """Re-read the current operator and roles from the backend."""
        if self.identity is None:
            return None
        details = await self.users.get_user(self.identity.id)
        self.identity = Identity(
            id=details.user.id,
            email=details.user.email,
            name=details.user.name,
            auth_provider=self.identity.auth_provider or "local"
        )
        self.roles = details.roles
        return self.identity

    async def check_expiry(self) -> None:
        """Scheduled job: tear down past expiry, refresh when close to it."""
        expires_at = self.credentials.expires_at
        if self.credentials.token is None or expires_at is None:
            return

        remaining = expires_at - self._clock()
        if remaining <= 0:
            logger.info("Credential expired")
            await self.handle_unauthorized()
        elif remaining <= self.refresh_threshold_seconds:
            logger.info(f"Credential expires in {int(remaining)} seconds; refreshing")
            await self.refresh()

    def logout(self) -> None:
        self._clear()
        logger.info("Logged out")

    async def handle_unauthorized(self) -> None:
        """
        Tear the session down and send the operator to the login entry
        point. Concurrent callers after the first are no-ops until the
        next successful login.
        """
        if self._torn_down:
            logger.debug("Session already torn down; ignoring")
            return
        self._torn_down = True

        return_to = self.navigator.current_route
        self._clear()
        if not self.navigator.on_login_page:
            self.credentials._set_redirect_path(return_to)
            self.navigator.redirect_to_login()
            logger.warning(f"Session ended; redirected to login (return to {return_to})")

    async def close(self) -> None:
        self.expiry_check.stop()
        self.expiry_check.shutdown()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _discard(self, reason: str) -> None:
        logger.warning(f"Discarding persisted credential: {reason}")
        self._clear()
        return None

    def _clear(self) -> None:
        self.credentials._clear_credential()
        self.identity = None
        self.roles = []
        self.expiry_check.stop()
