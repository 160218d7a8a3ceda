"""
Backend liveness probe
"""

from typing import Callable, Optional
from client.health import HealthService
from core.exceptions import (
    AuthenticationError,
    ConsoleException,
    ResponseShapeError,
    ServerError,
    TransportError,
)
import logging

logger = logging.getLogger(__name__)

CHECKING = "Checking..."
CONNECTED = "Connected"
NO_AUTH = "No Auth"
NO_RESPONSE = "No Response"
REQUEST_FAILED = "Request Failed"


class ServerStatus:
    """Reports whether the backend answers, with the failure detail."""

    def __init__(self, health: HealthService, token_provider: Callable[[], Optional[str]]):
        self.health = health
        self.token_provider = token_provider
        self.status = CHECKING
        self.error: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.status == CONNECTED

    async def check(self) -> str:
        self.status = CHECKING
        self.error = None

        if not self.token_provider():
            self.status = NO_AUTH
            self.error = "You need to log in first"
            return self.status

        try:
            result = await self.health.check()
        except TransportError as e:
            self.status = NO_RESPONSE
            self.error = "The server is not responding. Is the backend running?"
            logger.warning(f"Health check got no response: {e.operator_message}")
        except (AuthenticationError, ServerError) as e:
            self.status = f"Error {e.status_code}"
            self.error = e.response_body or "Authentication error"
        except ResponseShapeError as e:
            self.status = "Error"
            self.error = "Unexpected response from server"
            logger.warning(f"Health check returned unexpected payload: {e.operator_message}")
        except ConsoleException as e:
            self.status = REQUEST_FAILED
            self.error = e.message
        else:
            if result.ok:
                self.status = CONNECTED
            else:
                self.status = "Error"
                self.error = "Unexpected response from server"
        return self.status
