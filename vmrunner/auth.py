"""Session gate: shared-secret login and the session cookie."""
import logging
import secrets
from typing import Optional

from fastapi import Response

from vmrunner.config import Settings
from vmrunner.models import LoginResult

logger = logging.getLogger(__name__)

SESSION_COOKIE = "auth"
SESSION_VALUE = "true"
SESSION_MAX_AGE = 86400  # 24 hours


class SessionGate:
    """Checks the configured username/password and manages the ``auth`` cookie."""

    def __init__(self, settings: Settings):
        if not settings.app_username or not settings.app_password:
            raise ValueError("APP_USERNAME and APP_PASSWORD must be set")
        self._username = settings.app_username
        self._password = settings.app_password
        self._secure = settings.production

    def login(self, username: str, password: str) -> LoginResult:
        # Compare both so a mismatch does not reveal which one was wrong.
        user_ok = secrets.compare_digest(username.encode(), self._username.encode())
        password_ok = secrets.compare_digest(password.encode(), self._password.encode())
        if user_ok and password_ok:
            logger.info("Operator logged in")
            return LoginResult(success=True)
        logger.warning("Rejected login attempt")
        return LoginResult(success=False, message="Invalid credentials")

    def apply_session(self, response: Response):
        response.set_cookie(
            key=SESSION_COOKIE,
            value=SESSION_VALUE,
            httponly=True,
            secure=self._secure,
            samesite="strict",
            max_age=SESSION_MAX_AGE,
            path="/",
        )

    def clear_session(self, response: Response):
        response.delete_cookie(
            SESSION_COOKIE,
            path="/",
            secure=self._secure,
            httponly=True,
            samesite="strict",
        )

    @staticmethod
    def is_authenticated(cookie_value: Optional[str]) -> bool:
        return cookie_value == SESSION_VALUE
