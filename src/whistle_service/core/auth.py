"""
Admin Authentication

Credential check and JWT issue/verify for the single admin account.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from whistle_service.config.settings import Settings
from whistle_service.core.exceptions import ConfigurationError, Unauthorized

logger = logging.getLogger(__name__)


class AdminAuthenticator:
    """Verifies admin credentials and signs/validates admin tokens"""

    def __init__(
        self,
        username: str,
        password: str,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60
    ):
        if not (username and password and secret):
            raise ConfigurationError("Admin username, password and JWT secret are required")

        self._username = username
        self._password = password
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdminAuthenticator":
        """Build from settings, failing fast on missing secrets"""
        settings.require_auth_config()
        return cls(
            username=settings.admin_username,
            password=settings.admin_password,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_expire_minutes
        )

    def verify_credentials(self, username: str, password: str) -> bool:
        """Constant-time comparison of both username and password"""
        username_ok = secrets.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        password_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        return username_ok and password_ok

    def create_token(self, subject: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed admin token"""
        now = datetime.now(timezone.utc)
        claims = {
            "sub": subject,
            "iat": now,
            "exp": now + (expires_delta or timedelta(minutes=self.expire_minutes)),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Validate an admin token

        Args:
            token: Encoded JWT

        Returns:
            Decoded claims

        Raises:
            Unauthorized: If the token is missing, invalid or expired
        """
        if not token:
            raise Unauthorized("Authentication required")
        try:
            return jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError:
            logger.info("Rejected invalid or expired admin token")
            raise Unauthorized("Invalid or expired token")
