"""
Persisted credential storage.

The credential file is process-wide mutable state with a single writer:
only SessionStore calls the underscore-prefixed mutators. Everything else
reads through the accessors.
"""

from pathlib import Path
from typing import Any, Dict, Optional
from core.config import settings
import json
import logging
import os

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    JSON file holding the bearer token, its absolute expiry (epoch
    seconds) and the route to return to after re-authentication.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.CREDENTIAL_STORE_PATH).expanduser()
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable credential file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self._data.get("token") or None

    def get_token(self) -> Optional[str]:
        return self.token

    @property
    def expires_at(self) -> Optional[float]:
        value = self._data.get("expires_at")
        return float(value) if value is not None else None

    @property
    def redirect_path(self) -> Optional[str]:
        return self._data.get("redirect_path")

    # ------------------------------------------------------------------
    # Mutators (SessionStore only)
    # ------------------------------------------------------------------

    def _write_credential(self, token: str, expires_at: float) -> None:
        self._data["token"] = token
        self._data["expires_at"] = expires_at
        self._flush()

    def _clear_credential(self) -> None:
        self._data.pop("token", None)
        self._data.pop("expires_at", None)
        self._flush()

    def _set_redirect_path(self, route: str) -> None:
        self._data["redirect_path"] = route
        self._flush()

    def _pop_redirect_path(self) -> Optional[str]:
        route = self._data.pop("redirect_path", None)
        if route is not None:
            self._flush()
        return route

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self.path)
