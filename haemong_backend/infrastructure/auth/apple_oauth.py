"""Sign in with Apple (authorization-code flow)."""
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from jose import JWTError, jwt

from haemong_backend.domain.errors import AuthenticationError

logger = logging.getLogger(__name__)

APPLE_ISSUER = "https://appleid.apple.com"
APPLE_AUTH_URL = f"{APPLE_ISSUER}/auth/authorize"
APPLE_TOKEN_URL = f"{APPLE_ISSUER}/auth/token"
APPLE_KEYS_URL = f"{APPLE_ISSUER}/auth/keys"
CLIENT_SECRET_TTL = 60 * 60 * 24 * 30


class AppleOAuthClient:
    def __init__(
        self,
        client_id: Optional[str],
        team_id: Optional[str],
        key_id: Optional[str],
        private_key_path: Optional[str],
        redirect_uri: Optional[str],
    ):
        self._client_id = client_id
        self._team_id = team_id
        self._key_id = key_id
        self._private_key_path = private_key_path
        self._redirect_uri = redirect_uri

    def authorization_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "response_mode": "form_post",
            "scope": "name email",
        }
        if state:
            params["state"] = state
        return f"{APPLE_AUTH_URL}?{urlencode(params)}"

    def client_secret(self) -> str:
        """ES256-signed JWT that Apple accepts as the OAuth client secret."""
        if not self._private_key_path:
            raise AuthenticationError("Apple sign-in is not configured")
        private_key = Path(self._private_key_path).read_text()
        now = int(time.time())
        claims = {
            "iss": self._team_id,
            "iat": now,
            "exp": now + CLIENT_SECRET_TTL,
            "aud": APPLE_ISSUER,
            "sub": self._client_id,
        }
        return jwt.encode(claims, private_key, algorithm="ES256", headers={"kid": self._key_id})

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        data = {
            "client_id": self._client_id,
            "client_secret": self.client_secret(),
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self._redirect_uri,
        }
        loop = asyncio.get_running_loop()
        r = await loop.run_in_executor(None, lambda: requests.post(APPLE_TOKEN_URL, data=data, timeout=10))
        if r.status_code != 200:
            logger.warning(f"Apple code exchange failed: {r.status_code} {r.text[:200]}")
            raise AuthenticationError("Failed to exchange code with Apple")

        token = r.json().get("id_token")
        if not token:
            raise AuthenticationError("Apple response missing id_token")
        return await self.verify_id_token(token)

    async def verify_id_token(self, token: str) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        r = await loop.run_in_executor(None, lambda: requests.get(APPLE_KEYS_URL, timeout=10))
        r.raise_for_status()
        keys = r.json().get("keys", [])

        try:
            kid = jwt.get_unverified_header(token).get("kid")
            key = next((k for k in keys if k.get("kid") == kid), None)
            if key is None:
                raise AuthenticationError("Unknown Apple signing key")
            return jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                audience=self._client_id,
                issuer=APPLE_ISSUER,
                options={"verify_at_hash": False},
            )
        except JWTError as e:
            logger.warning(f"Invalid Apple id token: {e}")
            raise AuthenticationError("Invalid Apple token")
