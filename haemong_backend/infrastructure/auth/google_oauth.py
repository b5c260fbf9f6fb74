"""Google OAuth (web auth-code flow and mobile id-token verification)."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from haemong_backend.domain.errors import AuthenticationError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


class GoogleOAuthClient:
    def __init__(self, client_id: Optional[str], client_secret: Optional[str], redirect_uri: Optional[str]):
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri

    def authorization_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "offline",
            "prompt": "select_account",
        }
        if state:
            params["state"] = state
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code and return the verified id-token claims."""
        data = {
            "code": code,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "redirect_uri": self._redirect_uri,
            "grant_type": "authorization_code",
        }
        loop = asyncio.get_running_loop()
        r = await loop.run_in_executor(None, lambda: requests.post(GOOGLE_TOKEN_URL, data=data, timeout=10))
        if r.status_code != 200:
            logger.warning(f"Google code exchange failed: {r.status_code} {r.text[:200]}")
            raise AuthenticationError("Failed to exchange code with Google")

        token = r.json().get("id_token")
        if not token:
            raise AuthenticationError("Google response missing id_token")
        return await self.verify_id_token(token, audience=self._client_id)

    async def verify_id_token(self, token: str, audience: Optional[str] = None) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None,
                lambda: google_id_token.verify_oauth2_token(token, google_requests.Request(), audience),
            )
        except ValueError as e:
            logger.warning(f"Invalid Google id token: {e}")
            raise AuthenticationError("Invalid Google token")
