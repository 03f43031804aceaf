# auth.py
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from api_clients import CinemaApiError
from models import User

logger = logging.getLogger(__name__)


class AuthContext:
    """
    Single holder of the bearer token and the logged-in user for one session.
    Components receive the context and read ``token`` from it; nothing else
    keeps its own copy.
    """

    def __init__(self, client, token: Optional[str] = None, user: Optional[User] = None):
        self.client = client
        self._token = token
        self.user = user
        self._lock = threading.RLock()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self.client.login(email, password)
        token = data.get("token")
        if token:
            u = data.get("user") or {}
            with self._lock:
                self._token = token
                self.user = User(id=u.get("id"), name=u.get("name"), email=u.get("email"),
                                 phone=u.get("phone"))
            logger.info("User %s logged in", self.user.email)
        return data

    def register(self, name: str, email: str, password: str, **extra: Any) -> Dict[str, Any]:
        return self.client.register(name=name, email=email, password=password, **extra)

    def validate(self) -> bool:
        """Re-check the token against ``/users/me``; drop it if the server refuses."""
        token = self._token
        if not token:
            return False
        try:
            data = self.client.me(token)
        except CinemaApiError as exc:
            logger.warning("Token validation failed (%s), logging out", exc.message)
            self.logout()
            return False
        with self._lock:
            self.user = User(
                id=data.get("user_id"),
                name=data.get("username"),
                email=data.get("email"),
                phone=data.get("phone"),
            )
        return True

    def logout(self) -> None:
        with self._lock:
            self._token = None
            self.user = None
