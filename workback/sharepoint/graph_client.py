"""Microsoft Graph client with app-only (client credentials) auth."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

import httpx

from workback.config import runtime_config

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
TOKEN_URL_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
TOKEN_REFRESH_MARGIN_SECONDS = 60


class GraphConfigError(RuntimeError):
    """Graph credentials or site configuration are missing."""


class GraphRequestError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class TokenCache:
    """Holds one bearer token and its absolute expiry (epoch seconds)."""

    token: Optional[str] = None
    expires_at: float = 0.0

    def get(self, now: float) -> Optional[str]:
        if self.token and self.expires_at - TOKEN_REFRESH_MARGIN_SECONDS > now:
            return self.token
        return None

    def put(self, token: str, expires_in: float, now: float) -> None:
        self.token = token
        self.expires_at = now + expires_in

    def clear(self) -> None:
        self.token = None
        self.expires_at = 0.0


class AppTokenProvider:
    def __init__(
        self,
        tenant_id: Optional[str],
        client_id: Optional[str],
        client_secret: Optional[str],
        cache: Optional[TokenCache] = None,
        http: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.cache = cache or TokenCache()
        self._http = http or httpx.Client(timeout=30.0)
        self._clock = clock

    @classmethod
    def from_env(cls, cache: Optional[TokenCache] = None, http: Optional[httpx.Client] = None) -> "AppTokenProvider":
        return cls(
            tenant_id=runtime_config.get_aad_tenant_id(),
            client_id=runtime_config.get_aad_client_id(),
            client_secret=runtime_config.get_aad_client_secret(),
            cache=cache,
            http=http,
        )

    def get_token(self) -> str:
        if not (self.tenant_id and self.client_id and self.client_secret):
            raise GraphConfigError("Missing AAD_TENANT_ID, AAD_CLIENT_ID, or AAD_CLIENT_SECRET")

        now = self._clock()
        cached = self.cache.get(now)
        if cached:
            return cached

        response = self._http.post(
            TOKEN_URL_TEMPLATE.format(tenant_id=self.tenant_id),
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
                "scope": GRAPH_SCOPE,
            },
        )
        if response.status_code >= 400:
            raise GraphRequestError(
                f"Token request failed: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        payload = response.json()
        token = payload["access_token"]
        self.cache.put(token, float(payload.get("expires_in") or 300), now)
        logger.info("Acquired Graph app token for tenant %s", self.tenant_id)
        return token


class GraphClient:
    """Thin JSON wrapper over the Graph v1.0 REST API."""

    def __init__(self, token_provider: AppTokenProvider, http: Optional[httpx.Client] = None) -> None:
        self._tokens = token_provider
        self._http = http or httpx.Client(base_url=GRAPH_BASE_URL, timeout=30.0)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._tokens.get_token()}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, json: Any = None) -> Dict[str, Any]:
        response = self._http.request(method, path, headers=self._headers(), json=json)
        if response.status_code >= 400:
            logger.error("Graph %s %s failed: %s", method, path, response.status_code)
            raise GraphRequestError(
                f"Graph {method} {path} failed: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def get(self, path: str) -> Dict[str, Any]:
        return self._request("GET", path)

    def post(self, path: str, json: Any) -> Dict[str, Any]:
        return self._request("POST", path, json=json)

    def patch(self, path: str, json: Any) -> Dict[str, Any]:
        return self._request("PATCH", path, json=json)

    def iter_pages(self, path: str) -> Iterator[Dict[str, Any]]:
        """Yield every ``value`` entry, following ``@odata.nextLink``."""
        url: Optional[str] = path
        while url:
            page = self.get(url)
            for item in page.get("value") or []:
                yield item
            next_link = page.get("@odata.nextLink")
            url = next_link.replace(GRAPH_BASE_URL, "") if next_link else None
