"""
Admin Authentication

A single configured admin credential pair is exchanged for a signed,
time-limited JWT. The token is the only authority for access; the
admin_sessions table is an audit trail.
"""
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from zentro.config import Settings
from zentro.errors import AuthenticationError

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class IssuedToken:
    token: str
    expires_at: datetime
    claims: Dict[str, Any]


class AuthService:
    """Issues and verifies admin tokens."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.expire_hours = settings.token_expire_hours
        self.admin_username = settings.admin_username
        self.admin_password = settings.admin_password
        self.admin_name = settings.admin_name

        if not self.secret_key:
            logger.warning("JWT_SECRET_KEY is not set - admin login is disabled")

    def _credentials_match(self, username: str, password: str) -> bool:
        if not self.admin_password or not self.secret_key:
            return False
        username_ok = hmac.compare_digest(
            username.strip().lower().encode(), self.admin_username.lower().encode()
        )
        password_ok = hmac.compare_digest(password.encode(), self.admin_password.encode())
        return username_ok and password_ok

    def login(self, username: Optional[str], password: Optional[str]) -> IssuedToken:
        """
        Exchange the admin credentials for a token.

        Raises:
            AuthenticationError: on any mismatch, without saying which field was wrong
        """
        if not username or not password or not self._credentials_match(username, password):
            logger.info("Rejected admin login attempt")
            raise AuthenticationError("Invalid username or password")

        claims = {
            "sub": self.admin_username,
            "name": self.admin_name,
            "role": ADMIN_ROLE,
            "login_time": datetime.utcnow().isoformat(),
        }
        return self.issue_token(claims)

    def issue_token(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> IssuedToken:
        """Sign a token carrying the given claims plus exp/iat."""
        now = datetime.utcnow()
        expires_at = now + (expires_delta if expires_delta is not None else timedelta(hours=self.expire_hours))

        to_encode = dict(claims)
        to_encode.update({"exp": expires_at, "iat": now})
        token = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=expires_at, claims=claims)

    def verify(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Decode a token and check its signature and expiry.

        Raises:
            AuthenticationError: if the token is missing, malformed, tampered or expired
        """
        if not token:
            raise AuthenticationError("Access denied. No token provided.")
        if not self.secret_key:
            raise AuthenticationError("Invalid token.")

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Token rejected: {e}")
            raise AuthenticationError("Invalid token.")

        if payload.get("role") != ADMIN_ROLE:
            raise AuthenticationError("Invalid token.")
        return payload


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    return credentials.credentials if credentials else None


def require_admin(
    token: Optional[str] = Depends(bearer_token),
    auth: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """
    Dependency guarding admin-only routes.

    Usage:
        @router.get("/dashboard/stats")
        async def stats(admin: dict = Depends(require_admin)):
            ...
    """
    return auth.verify(token)
