"""
Client-side permission cache.

Fetches the caller's effective permissions from the portal once and answers
"should this control be shown" lookups from memory. This only drives what a
client displays; the server re-checks every state-changing request.
"""
from typing import Dict, Iterable, List, Optional

import httpx

from app.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)


class PermissionCache:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = client or httpx.Client(timeout=timeout)
        self._permissions: Optional[Dict[str, bool]] = None
        self._roles: List[Dict[str, str]] = []
        self.error: Optional[str] = None

    @property
    def loaded(self) -> bool:
        return self._permissions is not None

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def refresh(self) -> None:
        """Fetch the permission map. A failed fetch leaves an empty set."""
        url = f"{self.base_url}{settings.PERMISSIONS_ENDPOINT}"
        try:
            response = self._client.get(url, headers=self._headers())
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError("unexpected permissions payload shape")
            permissions = payload.get("permissions")
            roles = payload.get("roles") or []
            if not isinstance(permissions, dict) or not isinstance(roles, list):
                raise ValueError("unexpected permissions payload shape")
            self._permissions = {name: bool(granted) for name, granted in permissions.items()}
            self._roles = list(roles)
            self.error = None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not load permissions from {url}: {str(e)}")
            self._permissions = {}
            self._roles = []
            self.error = str(e)

    def invalidate(self) -> None:
        self._permissions = None
        self._roles = []
        self.error = None

    def _ensure_loaded(self) -> Dict[str, bool]:
        if self._permissions is None:
            self.refresh()
        return self._permissions

    @property
    def roles(self) -> List[Dict[str, str]]:
        self._ensure_loaded()
        return self._roles

    @property
    def permissions(self) -> List[str]:
        return sorted(name for name, granted in self._ensure_loaded().items() if granted)

    def has_permission(self, permission: str) -> bool:
        return self._ensure_loaded().get(permission, False)

    def has_any_permission(self, permissions: Iterable[str]) -> bool:
        granted = self._ensure_loaded()
        return any(granted.get(p, False) for p in permissions)

    def has_all_permissions(self, permissions: Iterable[str]) -> bool:
        granted = self._ensure_loaded()
        return all(granted.get(p, False) for p in permissions)

    def close(self) -> None:
        self._client.close()
