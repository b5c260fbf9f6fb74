"""Access / refresh token issuing with python-jose (HS256)."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from haemong_backend.domain.errors import AuthenticationError

JWT_ALG = "HS256"


class TokenService:
    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(hours=24),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl

    def _encode(self, claims: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, secret, algorithm=JWT_ALG)

    def issue_pair(self, user_id: str, email: str) -> Dict[str, str]:
        claims = {"sub": user_id, "email": email}
        return {
            "access_token": self._encode(claims, self._access_secret, self._access_ttl),
            "refresh_token": self._encode(claims, self._refresh_secret, self._refresh_ttl),
        }

    def decode_access(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self._access_secret)

    def decode_refresh(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self._refresh_secret)

    @staticmethod
    def _decode(token: str, secret: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, secret, algorithms=[JWT_ALG])
        except JWTError:
            raise AuthenticationError("Invalid or expired token")
