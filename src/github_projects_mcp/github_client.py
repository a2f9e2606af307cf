"""GitHub REST client wrapper.

Only the calls the project tools need: looking up an issue to learn its GraphQL node id.
Shares the error taxonomy of the GraphQL client; no retries, no client-side timeout.
"""

from __future__ import annotations

import logging
import time
from urllib.parse import quote

import httpx

from .auth import TokenProvider
from .errors import DecodeError, HTTPStatusError, TransportError
from .models import Issue

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.github.com"


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(
        self,
        *,
        credentials: TokenProvider,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GitHub REST client.

        Args:
            credentials: Async callable returning the bearer token for each request.
            transport: Optional httpx transport for tests.
        """
        self._credentials = credentials
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=API_BASE_URL,
                follow_redirects=False,
                timeout=None,
                transport=self._transport,
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def request_json(self, *, method: str, path: str) -> object:
        """Make a request and return decoded JSON."""
        token = await self._credentials()
        start = time.perf_counter()
        try:
            resp = await self._client().request(method, path, headers=self._headers(token))
        except httpx.HTTPError as exc:
            raise TransportError(f"failed to execute {method} {path}: {exc}") from exc

        logger.debug(
            "REST %s %s status=%s duration_ms=%s",
            method,
            path,
            resp.status_code,
            int((time.perf_counter() - start) * 1000),
        )
        if resp.status_code < 200 or resp.status_code >= 300:
            raise HTTPStatusError(status_code=resp.status_code, body=resp.text[:500], what=f"{method} {path}")

        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(f"GitHub returned invalid JSON for {method} {path}") from exc

    async def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        """Fetch ``/repos/{owner}/{repo}/issues/{number}``."""
        path = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/issues/{number}"
        data = await self.request_json(method="GET", path=path)
        return Issue.from_rest(data)
