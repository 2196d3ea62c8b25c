"""Token checks against Google and Facebook"""
import logging
from typing import Dict, Optional

import httpx

from app.core.errors import ValidationError

logger = logging.getLogger("app")

SUPPORTED_PROVIDERS = ("google", "facebook")


class OAuthVerifier:
    def __init__(self, google_tokeninfo_url: str, facebook_graph_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.google_tokeninfo_url = google_tokeninfo_url
        self.facebook_graph_url = facebook_graph_url
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _get_json(self, url: str, params: dict) -> Optional[dict]:
        try:
            response = await self.client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"OAuth provider request failed: {e}")
            return None
        if response.status_code != 200:
            logger.warning(f"OAuth provider rejected token: {response.status_code}")
            return None
        return response.json()

    async def verify_google(self, id_token: str) -> Optional[Dict[str, str]]:
        payload = await self._get_json(self.google_tokeninfo_url, {"id_token": id_token})
        if not payload or not payload.get("email"):
            return None
        return {"email": payload["email"].lower(), "name": payload.get("name") or ""}

    async def verify_facebook(self, access_token: str) -> Optional[Dict[str, str]]:
        payload = await self._get_json(
            self.facebook_graph_url, {"fields": "id,name,email", "access_token": access_token}
        )
        if not payload or not payload.get("email"):
            return None
        return {"email": payload["email"].lower(), "name": payload.get("name") or ""}

    async def verify(self, provider: str, token: str) -> Optional[Dict[str, str]]:
        """Return {email, name} for a valid provider token, None otherwise"""
        provider = provider.lower()
        if provider == "google":
            return await self.verify_google(token)
        if provider == "facebook":
            return await self.verify_facebook(token)
        raise ValidationError("Unsupported provider")

    async def close(self) -> None:
        await self.client.aclose()
