"""Tool table, argument validation and per-call dispatch.

Each call gets a correlation id and exactly one audit event. Rejected arguments
become a JSON error envelope for the agent; GitHub failures are raised.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .audit import AuditLogger, build_event, new_correlation_id
from .auth import CredentialResolver, build_credential_resolver
from .config import AppConfig, load_config_from_env
from .errors import GitHubRequestError, SafeError, ToolExecutionError, safe_error_to_result, user_input_error
from .github_client import GitHubClient
from .graphql_client import GitHubGraphQLClient
from .params import MAX_PER_PAGE
from .projects import PROJECT_STATES, add_issue_to_project, list_org_projects, update_project_item_state
from .safety import redact_text, validate_no_secrets

logger = logging.getLogger(__name__)

_PAGINATION_PROPERTIES: dict[str, Any] = {
    "page": {"type": "number", "minimum": 1, "description": "Page number for pagination (min 1)"},
    "perPage": {
        "type": "number",
        "minimum": 1,
        "maximum": MAX_PER_PAGE,
        "description": f"Results per page for pagination (min 1, max {MAX_PER_PAGE})",
    },
}

TOOL_METADATA: dict[str, dict[str, Any]] = {
    "list_org_projects": {
        "title": "List organization projects",
        "description": "List projects in a GitHub organization using the GraphQL API.",
        "readOnlyHint": True,
        "inputSchema": {
            "type": "object",
            "required": ["org"],
            "properties": {
                "org": {"type": "string", "minLength": 1, "description": "Organization name"},
                "state": {
                    "type": "string",
                    "enum": list(PROJECT_STATES),
                    "description": "Filter projects by state",
                },
                **_PAGINATION_PROPERTIES,
            },
            "additionalProperties": False,
        },
    },
    "add_issue_to_project": {
        "title": "Add issue to project",
        "description": "Add an issue to a GitHub project using GraphQL API.",
        "readOnlyHint": False,
        "inputSchema": {
            "type": "object",
            "required": ["project_id", "owner", "repo", "issue_number"],
            "properties": {
                "owner": {"type": "string", "minLength": 1, "description": "Repository owner"},
                "repo": {"type": "string", "minLength": 1, "description": "Repository name"},
                "issue_number": {"type": "number", "minimum": 1, "description": "Issue number to add to project"},
                "project_id": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Project ID (GraphQL node ID) to add the issue to",
                },
            },
            "additionalProperties": False,
        },
    },
    "update_project_item_state": {
        "title": "Update project item state",
        "description": "Update a project item's state using GraphQL API.",
        "readOnlyHint": False,
        "inputSchema": {
            "type": "object",
            "required": ["project_id", "item_id", "field_id", "value"],
            "properties": {
                "project_id": {"type": "string", "minLength": 1, "description": "Project ID (GraphQL node ID)"},
                "item_id": {"type": "string", "minLength": 1, "description": "Project item ID to update"},
                "field_id": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Field ID (status/state field) to update",
                },
                "value": {
                    "type": "string",
                    "minLength": 1,
                    "description": "New value for the field (single-select option ID)",
                },
            },
            "additionalProperties": False,
        },
    },
}


@dataclass(frozen=True, slots=True)
class Runtime:
    """Per-server runtime dependencies shared across tool calls."""

    config: AppConfig
    audit: AuditLogger
    credentials: CredentialResolver
    github: GitHubClient
    graphql: GitHubGraphQLClient


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Text returned to the agent; ``is_error`` marks a tool-level error envelope."""

    text: str
    is_error: bool = False


_RUNTIME: Runtime | None = None

_TOOL_FUNCS: dict[str, Callable[[Runtime, dict[str, Any]], Awaitable[Any]]] = {
    "list_org_projects": list_org_projects,
    "add_issue_to_project": add_issue_to_project,
    "update_project_item_state": update_project_item_state,
}


_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
}


def _matches_type(value: Any, json_type: str) -> bool:
    if json_type != "boolean" and isinstance(value, bool):
        return False
    return isinstance(value, _JSON_TYPES.get(json_type, (object,)))


def _check_property(key: str, value: Any, prop: dict[str, Any]) -> None:
    json_type = prop.get("type", "")
    if not _matches_type(value, json_type):
        raise user_input_error(f"parameter {key} is not of type {json_type}")
    if json_type == "string" and len(value) < prop.get("minLength", 0):
        raise user_input_error(f"missing required parameter: {key}")
    if json_type in ("number", "integer"):
        if "minimum" in prop and value < prop["minimum"]:
            raise user_input_error(f"parameter {key} must be >= {prop['minimum']}")
        if "maximum" in prop and value > prop["maximum"]:
            raise user_input_error(f"parameter {key} must be <= {prop['maximum']}")
    if "enum" in prop and value not in prop["enum"]:
        raise user_input_error(f"parameter {key} must be one of: {', '.join(map(str, prop['enum']))}")


def validate_tool_arguments(tool_name: str, arguments: dict[str, Any]) -> None:
    """Check ``arguments`` against the subset of JSON Schema used in ``TOOL_METADATA``.

    Covers required keys, ``additionalProperties: false``, primitive types,
    ``minLength``, ``minimum``/``maximum`` and ``enum``. Optional keys set to
    ``null`` are treated as absent.
    """
    meta = TOOL_METADATA.get(tool_name)
    if meta is None:
        raise user_input_error(f"Unknown tool: {tool_name}")
    schema = meta["inputSchema"]
    props: dict[str, Any] = schema["properties"]
    required = set(schema.get("required", ()))

    missing = [k for k in schema.get("required", ()) if k not in arguments]
    if missing:
        raise user_input_error(f"missing required parameter: {missing[0]}")

    if not schema.get("additionalProperties", True):
        extras = sorted(set(arguments) - set(props))
        if extras:
            raise user_input_error(f"Unexpected fields are not allowed: {', '.join(extras)}")

    for key, value in arguments.items():
        if key not in props or (value is None and key not in required):
            continue
        _check_property(key, value, props[key])


def initialize_runtime_from_env() -> Runtime:
    """Build the shared runtime from the environment once and reuse it.

    ``run_server`` calls this at startup so bad configuration fails fast.
    """
    global _RUNTIME  # pylint: disable=global-statement
    if _RUNTIME is not None:
        return _RUNTIME

    config = load_config_from_env()
    audit = AuditLogger(
        sink_path=config.audit_log_path,
        max_bytes=config.audit_max_bytes,
        max_backups=config.audit_max_backups,
    )
    credentials = build_credential_resolver(
        static_token=config.personal_access_token,
        github_app=config.github_app,
    )
    github = GitHubClient(credentials=credentials)
    graphql = GitHubGraphQLClient(credentials=credentials)

    _RUNTIME = Runtime(config=config, audit=audit, credentials=credentials, github=github, graphql=graphql)
    return _RUNTIME


async def close_runtime() -> None:
    """Release pooled HTTP connections held by the cached runtime."""
    global _RUNTIME  # pylint: disable=global-statement
    if _RUNTIME is None:
        return
    runtime, _RUNTIME = _RUNTIME, None
    await runtime.github.aclose()
    await runtime.graphql.aclose()


def _target_from_args(name: str, arguments: dict[str, Any]) -> str:
    if name == "list_org_projects":
        org = arguments.get("org")
        return org if isinstance(org, str) and org else "<unknown>"
    if name == "add_issue_to_project":
        owner = arguments.get("owner")
        repo = arguments.get("repo")
        if isinstance(owner, str) and isinstance(repo, str) and owner and repo:
            return f"{owner}/{repo}#{arguments.get('issue_number')}"
        return "<unknown>"
    project_id = arguments.get("project_id")
    return project_id if isinstance(project_id, str) and project_id else "<unknown>"


def _runtime_for_call() -> Runtime:
    try:
        return initialize_runtime_from_env()
    except SafeError as err:
        raise ToolExecutionError(f"failed to get GitHub client: {err.message}") from err


async def _run_with_deadline(
    func: Callable[..., Awaitable[Any]], runtime: Runtime, name: str, arguments: dict[str, Any]
) -> Any:
    timeout = runtime.config.limits.call_timeout_s
    try:
        return await asyncio.wait_for(func(runtime, arguments), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ToolExecutionError(f"{name} did not complete within {timeout}s") from exc


async def dispatch_tool(name: str, arguments: dict[str, Any]) -> ToolResult:
    """Dispatch a tool call.

    Returns the JSON text of the tool's output, or a tool error envelope when the
    arguments are rejected. Failures reaching GitHub are raised.
    """
    correlation_id = new_correlation_id()
    target = redact_text(_target_from_args(name, arguments))

    runtime: Runtime | None = None
    audit = AuditLogger(sink_path=None)
    start = audit.measure_start()

    def _audit(outcome: str, reason: str | None) -> None:
        (runtime.audit if runtime is not None else audit).write_event(
            build_event(
                correlation_id=correlation_id,
                operation=name,
                target=target,
                outcome=outcome,
                reason=reason,
                duration_ms=audit.measure_duration_ms(start),
            )
        )

    try:
        validate_no_secrets(arguments)
        if name not in TOOL_METADATA:
            raise SafeError(
                code="UserInput",
                message=f"Unknown tool: {name}",
                hint=f"Available tools: {', '.join(sorted(TOOL_METADATA.keys()))}",
            )
        validate_tool_arguments(name, arguments)

        runtime = _runtime_for_call()
        result = await _run_with_deadline(_TOOL_FUNCS[name], runtime, name, arguments)

    except SafeError as err:
        _audit("denied", err.message)
        envelope = safe_error_to_result(err)
        envelope["correlation_id"] = correlation_id
        return ToolResult(text=json.dumps(envelope), is_error=True)
    except (ToolExecutionError, GitHubRequestError) as exc:
        _audit("failed", type(exc).__name__)
        logger.error("Tool %s failed (correlation_id=%s): %s", name, correlation_id, exc)
        raise

    _audit("succeeded", None)
    return ToolResult(text=json.dumps(result, separators=(",", ":")))
