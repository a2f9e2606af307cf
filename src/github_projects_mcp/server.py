"""MCP wiring: tools, resources and the stdio loop.

Tool calls go through ``tools.dispatch_tool``. Argument problems come back as an
error-flagged result whose text is the JSON error envelope; GitHub failures are
raised and the MCP layer turns them into error results.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Callable

from mcp.server import Server
from mcp.types import CallToolResult, Resource, TextContent, Tool, ToolAnnotations

from . import __version__
from .errors import GitHubRequestError, SafeError, ToolExecutionError
from .graphql_client import GRAPHQL_URL
from .tools import TOOL_METADATA, close_runtime, dispatch_tool, initialize_runtime_from_env

# stdout carries the MCP protocol; everything else goes to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVER_NAME = "github-projects-mcp"
STATUS_URI = f"{SERVER_NAME}://server-status"
CAPABILITIES_URI = f"{SERVER_NAME}://capabilities"

server = Server(SERVER_NAME)


def _status_payload() -> dict[str, Any]:
    payload: dict[str, Any] = {
        "server": SERVER_NAME,
        "version": __version__,
        "tools_available": len(TOOL_METADATA),
        "tool_names": sorted(TOOL_METADATA),
        "configured": False,
    }
    try:
        runtime = initialize_runtime_from_env()
    except SafeError:
        return payload

    payload["configured"] = True
    # Which sources exist, never their values.
    payload["credentials"] = {
        "personal_access_token": runtime.credentials.has_static,
        "github_app": runtime.credentials.has_dynamic,
    }
    payload["limits"] = {"call_timeout_s": runtime.config.limits.call_timeout_s}
    payload["audit"] = {"file_sink_enabled": runtime.config.audit_log_path is not None}
    return payload


def _capabilities_payload() -> dict[str, Any]:
    return {
        "server": SERVER_NAME,
        "version": __version__,
        "operations": sorted(TOOL_METADATA),
        "read_only_operations": sorted(n for n, meta in TOOL_METADATA.items() if meta["readOnlyHint"]),
        "constraints": {
            "github_graphql_endpoint": GRAPHQL_URL,
            "single_page_per_call": True,
            "field_value_types": ["singleSelectOptionId"],
            "retries": False,
        },
    }


_RESOURCES: dict[str, tuple[str, str, Callable[[], dict[str, Any]]]] = {
    STATUS_URI: ("Server Status", "Non-secret server configuration", _status_payload),
    CAPABILITIES_URI: ("Capabilities", "Available operations and their constraints", _capabilities_payload),
}


def _build_tools() -> list[Tool]:
    out: list[Tool] = []
    for tool_name, meta in TOOL_METADATA.items():
        out.append(
            Tool(
                name=tool_name,
                description=meta["description"],
                inputSchema=meta["inputSchema"],
                annotations=ToolAnnotations(title=meta["title"], readOnlyHint=meta["readOnlyHint"]),
            )
        )
    return out


def _build_resources() -> list[Resource]:
    return [Resource(uri=uri, name=name, description=desc) for uri, (name, desc, _) in _RESOURCES.items()]


@server.list_tools()
async def list_tools() -> list[Tool]:
    tools = _build_tools()
    logger.info("Listed %s tools", len(tools))
    return tools


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent] | CallToolResult:
    logger.info("Tool called: %s", name)
    try:
        result = await dispatch_tool(name, arguments if isinstance(arguments, dict) else {})
    except (ToolExecutionError, GitHubRequestError) as exc:
        logger.error("Tool %s failed: %s", name, exc)
        raise
    content = [TextContent(type="text", text=result.text)]
    if result.is_error:
        return CallToolResult(content=content, isError=True)
    return content


@server.list_resources()
async def list_resources() -> list[Resource]:
    return _build_resources()


@server.read_resource()
async def read_resource(uri: Any) -> str:
    key = (uri if isinstance(uri, str) else str(uri)).rstrip("/")
    entry = _RESOURCES.get(key)
    if entry is None:
        return json.dumps({"ok": False, "code": "NotFound", "message": "Unknown resource"}, indent=2)
    return json.dumps(entry[2](), indent=2)


async def run_server() -> None:
    """Serve MCP over stdio until the client disconnects.

    Configuration is loaded first so that a misconfigured host fails at startup
    rather than on the first tool call.
    """
    try:
        initialize_runtime_from_env()
    except SafeError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await close_runtime()


async def test_server() -> None:
    """Offline self-check: build tool and resource listings, no GitHub calls."""
    tools = _build_tools()
    resources = _build_resources()
    print(f"{SERVER_NAME} {__version__}: {len(tools)} tools, {len(resources)} resources", file=sys.stderr)
