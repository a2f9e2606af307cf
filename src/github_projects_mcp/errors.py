"""Error types and serialization helpers.

Two families live here:

- ``SafeError``: tool-level errors (bad input, configuration, auth). These are
  returned to agents as a structured envelope and must be non-secret and stable.
- ``GitHubRequestError`` and ``ToolExecutionError``: hard failures talking to
  GitHub. These propagate out of tool handlers instead of being folded into a
  result envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SafeError(Exception):
    """An error safe to expose to agents.

    This must never include secrets (tokens, private key content, key path, installation IDs).
    """

    code: str
    message: str
    hint: str | None = None
    status_code: int | None = None


def safe_error_to_result(err: SafeError) -> dict[str, Any]:
    """Convert a SafeError into the standard tool envelope."""
    return to_error_result(code=err.code, message=err.message, hint=err.hint)


def to_error_result(*, code: str, message: str, hint: str | None = None) -> dict[str, Any]:
    """Build a standard tool error envelope."""
    out: dict[str, Any] = {"ok": False, "code": code, "message": message}
    if hint:
        out["hint"] = hint
    return out


def user_input_error(message: str, hint: str | None = None) -> SafeError:
    """Error for invalid tool arguments."""
    return SafeError(code="UserInput", message=message, hint=hint)


class GitHubRequestError(Exception):
    """Base class for failures while talking to the GitHub API."""


class MarshalError(GitHubRequestError):
    """The request payload could not be serialized to JSON."""


class BuildRequestError(GitHubRequestError):
    """The HTTP request could not be constructed."""


class TransportError(GitHubRequestError):
    """Network, DNS, TLS or protocol failure while sending the request."""


class HTTPStatusError(GitHubRequestError):
    """GitHub answered with an unexpected HTTP status."""

    def __init__(self, *, status_code: int, body: str, what: str = "GraphQL request") -> None:
        super().__init__(f"{what} failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ReadBodyError(GitHubRequestError):
    """The response body could not be read."""


class DecodeError(GitHubRequestError):
    """The response body was not the JSON shape we expected."""


class GraphQLResponseError(GitHubRequestError):
    """GitHub returned a GraphQL ``errors`` list alongside HTTP 200.

    Only the first error message is kept. ``data`` holds whatever was decoded
    from the envelope before the errors were inspected (often the empty shape).
    """

    def __init__(self, message: str, *, data: Any = None) -> None:
        super().__init__(f"GraphQL errors: {message}")
        self.message = message
        self.data = data


class MissingNodeIDError(GitHubRequestError):
    """An issue lookup succeeded but carried no GraphQL node id."""


class ToolExecutionError(Exception):
    """A tool failed for infrastructural reasons (not because of its input).

    The message names the failed operation, e.g. ``failed to add issue to project: ...``;
    the underlying error is chained as ``__cause__``.
    """
