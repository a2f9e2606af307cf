"""GitHub GraphQL client.

Executes fixed query/mutation documents against ``https://api.github.com/graphql``
and decodes the response envelope into a typed value.

Failure modes map onto ``errors.GitHubRequestError`` subclasses, one per stage:
marshal, build request, transport, HTTP status, read body, decode, GraphQL errors.
There are no retries and no client-side timeout; deadlines and cancellation
belong to the calling task.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, TypeVar

import httpx

from .auth import TokenProvider
from .errors import (
    BuildRequestError,
    DecodeError,
    GraphQLResponseError,
    HTTPStatusError,
    MarshalError,
    ReadBodyError,
    TransportError,
)

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"

T = TypeVar("T")


class GitHubGraphQLClient:
    """Minimal GitHub GraphQL client (POST /graphql only)."""

    def __init__(
        self,
        *,
        credentials: TokenProvider,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GraphQL client.

        Args:
            credentials: Async callable returning the bearer token for each request.
            transport: Optional httpx transport for tests.
        """
        self._credentials = credentials
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _client(self) -> httpx.AsyncClient:
        # One pooled client per instance, shared by all calls.
        if self._http is None:
            self._http = httpx.AsyncClient(
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
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        }

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        decode: Callable[[Any], T],
    ) -> T:
        """Execute a GraphQL document and return ``decode(data)``.

        The whole envelope is decoded before ``errors`` is inspected. When GitHub
        reports errors, ``GraphQLResponseError`` carries the first message and the
        decoded (possibly partial or empty) data.

        Raises:
            ValueError: If ``query`` is blank.
            GitHubRequestError: On any failure talking to GitHub.
        """
        if not isinstance(query, str) or not query.strip():
            raise ValueError("GraphQL query is missing")

        try:
            payload = json.dumps({"query": query, "variables": variables or {}})
        except (TypeError, ValueError) as exc:
            raise MarshalError(f"failed to marshal GraphQL request: {exc}") from exc

        token = await self._credentials()
        client = self._client()

        try:
            request = client.build_request(
                "POST",
                GRAPHQL_URL,
                content=payload.encode("utf-8"),
                headers=self._headers(token),
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise BuildRequestError(f"failed to create GraphQL request: {exc}") from exc

        start = time.perf_counter()
        try:
            resp = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError(f"failed to execute GraphQL request: {exc}") from exc

        try:
            logger.debug(
                "GraphQL POST status=%s duration_ms=%s",
                resp.status_code,
                int((time.perf_counter() - start) * 1000),
            )
            if resp.status_code != 200:
                raise HTTPStatusError(status_code=resp.status_code, body=await self._best_effort_text(resp))
            try:
                body = await resp.aread()
            except httpx.HTTPError as exc:
                raise ReadBodyError(f"failed to read GraphQL response: {exc}") from exc
        finally:
            await resp.aclose()

        return self._decode_envelope(body, decode)

    @staticmethod
    async def _best_effort_text(resp: httpx.Response) -> str:
        try:
            raw = await resp.aread()
        except httpx.HTTPError:
            return ""
        return raw.decode("utf-8", errors="replace")

    @staticmethod
    def _decode_envelope(body: bytes, decode: Callable[[Any], T]) -> T:
        try:
            envelope = json.loads(body)
        except ValueError as exc:
            raise DecodeError(f"failed to decode GraphQL response: {exc}") from exc
        if not isinstance(envelope, dict):
            raise DecodeError(f"failed to decode GraphQL response: expected object, got {type(envelope).__name__}")

        errors = envelope.get("errors") or []
        if not isinstance(errors, list):
            raise DecodeError("failed to decode GraphQL response: 'errors' is not a list")
        messages: list[str] = []
        for err in errors:
            if not isinstance(err, dict):
                raise DecodeError("failed to decode GraphQL response: malformed error entry")
            message = err.get("message", "")
            if not isinstance(message, str):
                raise DecodeError("failed to decode GraphQL response: error message is not a string")
            messages.append(message)

        try:
            result = decode(envelope.get("data"))
        except DecodeError as exc:
            raise DecodeError(f"failed to decode GraphQL response: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"failed to decode GraphQL response: {exc}") from exc

        if messages:
            raise GraphQLResponseError(messages[0], data=result)
        return result
