"""
Route tracking for the operator console
"""

from typing import List, Optional
from core.config import settings
import logging

logger = logging.getLogger(__name__)


class Navigator:
    """Current route plus the history of every navigation."""

    def __init__(self, login_path: Optional[str] = None, current_route: str = "/"):
        self.login_path = login_path or settings.LOGIN_PATH
        self.current_route = current_route
        self.history: List[str] = []

    def navigate(self, route: str) -> None:
        logger.debug(f"Navigating {self.current_route} -> {route}")
        self.history.append(route)
        self.current_route = route

    @property
    def on_login_page(self) -> bool:
        return self.current_route.split("?", 1)[0] == self.login_path

    def redirect_to_login(self, expired: bool = True) -> str:
        route = f"{self.login_path}?expired=true" if expired else self.login_path
        self.navigate(route)
        return route

    @property
    def login_redirects(self) -> int:
        return sum(1 for r in self.history if r.split("?", 1)[0] == self.login_path)
