"""Bearer token resolution.

Two credential sources exist:

- a static personal access token from configuration;
- an optional dynamic source, the GitHub App installation token, which is
  short-lived and refreshed on demand.

``CredentialResolver`` prefers the dynamic token and silently falls back to the
static one. Secrets (private key content, tokens, installation IDs) must never be exposed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

import httpx
import jwt

from .config import GitHubAppConfig
from .errors import SafeError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]

# Refresh installation tokens this long before GitHub expires them.
_REFRESH_MARGIN_S = 30


@dataclass(frozen=True, slots=True)
class InstallationToken:
    """Cached installation access token + expiry."""

    token: str
    expires_at: datetime


class GitHubAppAuth:
    """Manages GitHub App JWT creation and installation token caching."""

    def __init__(self, *, config: GitHubAppConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._transport = transport
        self._lock = asyncio.Lock()
        self._cached: InstallationToken | None = None

    def _build_app_jwt(self) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=10)).timestamp()),
            "iss": str(self._config.app_id),
        }
        private_key_pem = self._config.private_key_path.read_text(encoding="utf-8")
        return jwt.encode(payload, private_key_pem, algorithm="RS256")

    async def get_installation_token(self) -> str:
        """Get a valid installation access token (refreshing if needed)."""
        async with self._lock:
            if self._cached is not None:
                remaining = (self._cached.expires_at - datetime.now(timezone.utc)).total_seconds()
                if remaining > _REFRESH_MARGIN_S:
                    return self._cached.token

            headers = {
                "Authorization": f"Bearer {self._build_app_jwt()}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            url = f"https://api.github.com/app/installations/{self._config.installation_id}/access_tokens"
            async with httpx.AsyncClient(
                follow_redirects=False,
                timeout=30.0,
                transport=self._transport,
            ) as client:
                resp = await client.post(url, headers=headers, json={})

            if resp.status_code in (401, 403):
                raise SafeError(code="Auth", message="GitHub App authentication failed")
            if resp.status_code >= 400:
                raise SafeError(code="GitHub", message="Failed to obtain installation token")

            try:
                data = resp.json()
            except ValueError as exc:
                raise SafeError(code="Auth", message="GitHub token response is not valid JSON") from exc
            token = data.get("token") if isinstance(data, dict) else None
            expires_at_raw = data.get("expires_at") if isinstance(data, dict) else None
            if not isinstance(token, str) or not token or not isinstance(expires_at_raw, str):
                raise SafeError(code="Auth", message="GitHub token response missing required fields")

            # RFC3339 timestamp like 2025-01-01T00:00:00Z
            try:
                expires_at = datetime.fromisoformat(expires_at_raw.replace("Z", "+00:00")).astimezone(timezone.utc)
            except ValueError as exc:
                raise SafeError(code="Auth", message="GitHub token response has an invalid expiry") from exc
            self._cached = InstallationToken(token=token, expires_at=expires_at)
            logger.info("Obtained GitHub App installation token (expires %s)", expires_at.isoformat())
            return token


class CredentialResolver:
    """Chooses the bearer token attached to GitHub requests.

    ``resolve()`` never fails: when the dynamic provider is missing, raises, or
    returns nothing, the static token is used. That token may be empty, in which
    case GitHub answers 401 and the caller sees an HTTP status error.
    """

    def __init__(self, *, static_token: str = "", dynamic: TokenProvider | None = None) -> None:
        self._static_token = static_token
        self._dynamic = dynamic

    @property
    def has_dynamic(self) -> bool:
        return self._dynamic is not None

    @property
    def has_static(self) -> bool:
        return bool(self._static_token)

    async def resolve(self) -> str:
        token = self._static_token
        if self._dynamic is None:
            return token
        try:
            dynamic_token = await self._dynamic()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # Any provider failure degrades to the static token; cancellation still propagates.
            logger.warning("Dynamic credential unavailable, using static token: %s", type(exc).__name__)
            return token
        if isinstance(dynamic_token, str) and dynamic_token:
            return dynamic_token
        return token

    __call__ = resolve


def build_credential_resolver(*, static_token: str, github_app: GitHubAppConfig | None) -> CredentialResolver:
    """Wire the configured credential sources into a resolver."""
    dynamic: TokenProvider | None = None
    if github_app is not None:
        dynamic = GitHubAppAuth(config=github_app).get_installation_token
    return CredentialResolver(static_token=static_token, dynamic=dynamic)
