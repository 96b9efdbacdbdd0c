# /app/methods/manager/SessionManager.py
from __future__ import annotations
import logging
import time
from typing import Any, Callable, Dict, Optional

from jose import jwt, JWTError
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

FLASH_KEY = "flash"
USER_KEY = "authenticated_user_id"


class Session:
    """
    Per-client key/value bag. Values must be JSON-serialisable.
    `expires_at` is absolute (unix seconds) and survives re-signing.
    """
    def __init__(self, data: Optional[Dict[str, Any]] = None, expires_at: Optional[int] = None) -> None:
        self._data: Dict[str, Any] = dict(data or {})
        self.expires_at = expires_at
        self.modified = False

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def get_int(self, key: str) -> Optional[int]:
        v = self._data.get(key)
        if v is None:
            return None
        try:
            return int(v)
        except (TypeError, ValueError):
            return None

    def exists(self, key: str) -> bool:
        return key in self._data

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self.modified = True

    def pop(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        self.modified = True
        return self._data.pop(key)

    def pop_flash(self) -> Optional[str]:
        return self.pop(FLASH_KEY)

    def items(self):
        return self._data.items()

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SessionManager:
    """Loads a Session from a signed cookie and writes it back when modified."""

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        lifetime_seconds: int = 12 * 3600,
        cookie_name: str = "session",
        secure: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime_seconds = lifetime_seconds
        self.cookie_name = cookie_name
        self.secure = secure
        self.clock = clock

    def load(self, request: Request) -> Session:
        token = request.cookies.get(self.cookie_name)
        if not token:
            return Session()
        return self.decode(token)

    def decode(self, token: str) -> Session:
        try:
            payload = jwt.decode(
                token, self.secret_key, algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            logger.warning("SessionManager.py: Ignoring session cookie with invalid signature")
            return Session()

        exp = payload.get("exp")
        data = payload.get("data")
        if not isinstance(exp, (int, float)) or not isinstance(data, dict):
            logger.warning("SessionManager.py: Ignoring malformed session payload")
            return Session()
        # expiry is checked against our own clock so tests can move time
        if exp <= self.clock():
            logger.info("SessionManager.py: Session cookie expired")
            return Session()
        return Session(data, expires_at=int(exp))

    def encode(self, session: Session) -> str:
        if session.expires_at is None:
            session.expires_at = int(self.clock()) + self.lifetime_seconds
        payload = {"data": dict(session.items()), "exp": session.expires_at}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def commit(self, session: Optional[Session], response: Response) -> None:
        if session is None or not session.modified:
            return
        token = self.encode(session)
        max_age = max(0, session.expires_at - int(self.clock()))
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=max_age,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="strict",
        )
        session.modified = False


__all__ = ["Session", "SessionManager", "FLASH_KEY", "USER_KEY"]
