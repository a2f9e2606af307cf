"""Server wiring smoke tests."""

from __future__ import annotations

import json

import github_projects_mcp.tools as tools
import pytest
from github_projects_mcp.errors import ToolExecutionError
from mcp.types import CallToolResult, TextContent
from github_projects_mcp.server import (
    CAPABILITIES_URI,
    STATUS_URI,
    call_tool,
    list_resources,
    list_tools,
    read_resource,
)


@pytest.mark.asyncio
async def test_server_lists_the_project_tools() -> None:
    listed = await list_tools()
    assert sorted(t.name for t in listed) == [
        "add_issue_to_project",
        "list_org_projects",
        "update_project_item_state",
    ]
    by_name = {t.name: t for t in listed}
    assert by_name["list_org_projects"].annotations.readOnlyHint is True
    assert by_name["add_issue_to_project"].annotations.readOnlyHint is False
    assert by_name["list_org_projects"].inputSchema["required"] == ["org"]


@pytest.mark.asyncio
async def test_tools_do_not_emit_secrets_in_metadata() -> None:
    listed = await list_tools()
    as_json = json.dumps([t.model_dump() for t in listed], sort_keys=True)

    assert "ghp_" not in as_json
    assert "github_pat_" not in as_json
    assert "Bearer " not in as_json


@pytest.mark.asyncio
async def test_server_lists_resources() -> None:
    uris = {str(r.uri).rstrip("/") for r in await list_resources()}
    assert uris == {STATUS_URI, CAPABILITIES_URI}


@pytest.mark.asyncio
async def test_capabilities_resource_lists_operations() -> None:
    caps = json.loads(await read_resource(CAPABILITIES_URI))
    assert caps["operations"] == ["add_issue_to_project", "list_org_projects", "update_project_item_state"]
    assert caps["read_only_operations"] == ["list_org_projects"]


@pytest.mark.asyncio
async def test_status_resource_reports_unconfigured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tools, "_RUNTIME", None)
    for var in (
        "GITHUB_PERSONAL_ACCESS_TOKEN",
        "GITHUB_APP_ID",
        "GITHUB_APP_INSTALLATION_ID",
        "GITHUB_APP_PRIVATE_KEY_PATH",
    ):
        monkeypatch.delenv(var, raising=False)

    status = json.loads(await read_resource(STATUS_URI))
    assert status["configured"] is False
    assert status["tools_available"] == 3


@pytest.mark.asyncio
async def test_status_resource_reports_credential_sources_without_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tools, "_RUNTIME", None)
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "ghp_supersecretvalue")
    for var in ("GITHUB_APP_ID", "GITHUB_APP_INSTALLATION_ID", "GITHUB_APP_PRIVATE_KEY_PATH"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("GITHUB_PROJECTS_MCP_AUDIT_LOG_PATH", raising=False)
    monkeypatch.delenv("GITHUB_PROJECTS_MCP_CALL_TIMEOUT_S", raising=False)

    text = await read_resource(STATUS_URI)
    status = json.loads(text)
    assert status["configured"] is True
    assert status["credentials"] == {"personal_access_token": True, "github_app": False}
    assert "ghp_" not in text


@pytest.mark.asyncio
async def test_call_tool_flags_rejected_arguments_as_error() -> None:
    result = await call_tool("list_org_projects", {})
    assert isinstance(result, CallToolResult)
    assert result.isError is True
    assert len(result.content) == 1
    payload = json.loads(result.content[0].text)
    assert payload["ok"] is False
    assert payload["message"] == "missing required parameter: org"


@pytest.mark.asyncio
async def test_call_tool_reraises_hard_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing_dispatch(name: str, arguments: dict) -> tools.ToolResult:
        raise ToolExecutionError("failed to list organization projects: boom")

    monkeypatch.setattr("github_projects_mcp.server.dispatch_tool", failing_dispatch)

    with pytest.raises(ToolExecutionError):
        await call_tool("list_org_projects", {"org": "acme"})


@pytest.mark.asyncio
async def test_call_tool_success_is_plain_text_content(monkeypatch: pytest.MonkeyPatch) -> None:
    async def ok_dispatch(name: str, arguments: dict) -> tools.ToolResult:
        return tools.ToolResult(text="[]")

    monkeypatch.setattr("github_projects_mcp.server.dispatch_tool", ok_dispatch)

    content = await call_tool("list_org_projects", {"org": "acme"})
    assert content == [TextContent(type="text", text="[]")]
