"""GitHub Projects (v2) tool implementations.

Each handler takes the shared runtime and the raw tool arguments, and returns a
JSON-serializable value. Bad arguments raise ``SafeError``; failures talking to
GitHub raise ``ToolExecutionError`` (or ``MissingNodeIDError``) and are not
turned into tool error results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .errors import GitHubRequestError, MissingNodeIDError, ToolExecutionError, user_input_error
from .models import AddProjectItemData, OrgProjectsData, Project, ProjectItem, UpdateProjectItemData
from .params import optional_pagination_params, optional_param, required_int, required_param

if TYPE_CHECKING:
    from .tools import Runtime

PROJECT_STATES = ("open", "closed", "all")

QUERY_LIST_ORG_PROJECTS = """
query($org: String!, $first: Int, $after: String) {
  organization(login: $org) {
    projectsV2(first: $first, after: $after) {
      nodes {
        id
        title
        shortDescription
        url
        closed
        number
        items { totalCount }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
""".strip()

MUTATION_ADD_ITEM_TO_PROJECT = """
mutation($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: { projectId: $projectId, contentId: $contentId }) {
    item { id }
  }
}
""".strip()

MUTATION_UPDATE_ITEM_FIELD_VALUE = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $value: ProjectV2FieldValue!) {
  updateProjectV2ItemFieldValue(
    input: { projectId: $projectId, itemId: $itemId, fieldId: $fieldId, value: $value }
  ) {
    projectV2Item { id }
  }
}
""".strip()


def state_matches(project: Project, state: str | None) -> bool:
    """Return True if ``project`` passes the ``state`` filter ("all" and None keep everything)."""
    if state is None or state in ("", "all"):
        return True
    if state == "closed":
        return project.closed
    if state == "open":
        return not project.closed
    return False


async def list_org_projects(runtime: Runtime, arguments: dict[str, Any]) -> list[dict[str, Any]]:
    """List the first page of an organization's projects, optionally filtered by state.

    Filtering happens after the page is fetched, so a page may shrink (or empty)
    without further pages being requested.
    """
    org = required_param(arguments, "org", str)
    state = optional_param(arguments, "state", str, "")
    if state and state not in PROJECT_STATES:
        raise user_input_error(f"parameter state must be one of: {', '.join(PROJECT_STATES)}")
    pagination = optional_pagination_params(arguments)

    try:
        data = await runtime.graphql.execute(
            QUERY_LIST_ORG_PROJECTS,
            {"org": org, "first": pagination.per_page},
            decode=OrgProjectsData.from_data,
        )
    except GitHubRequestError as exc:
        raise ToolExecutionError(f"failed to list organization projects: {exc}") from exc

    return [p.to_dict() for p in data.nodes if state_matches(p, state)]


async def add_issue_to_project(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    """Add an issue (addressed by owner/repo/number) to a project."""
    project_id = required_param(arguments, "project_id", str)
    owner = required_param(arguments, "owner", str)
    repo = required_param(arguments, "repo", str)
    issue_number = required_int(arguments, "issue_number")

    try:
        issue = await runtime.github.get_issue(owner, repo, issue_number)
    except GitHubRequestError as exc:
        raise ToolExecutionError(f"failed to get issue: {exc}") from exc

    if issue.node_id is None:
        raise MissingNodeIDError(f"issue {owner}/{repo}#{issue_number} has no node ID")

    try:
        data = await runtime.graphql.execute(
            MUTATION_ADD_ITEM_TO_PROJECT,
            {"projectId": project_id, "contentId": issue.node_id},
            decode=AddProjectItemData.from_data,
        )
    except GitHubRequestError as exc:
        raise ToolExecutionError(f"failed to add issue to project: {exc}") from exc

    return ProjectItem(id=data.item_id, type="ISSUE", content_id=issue.node_id).to_dict()


async def update_project_item_state(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    """Set a single-select field (e.g. Status) on a project item.

    ``value`` is the option id of the single-select field; other field types
    (text, number, date, iteration) need a different value shape and are not handled.
    """
    project_id = required_param(arguments, "project_id", str)
    item_id = required_param(arguments, "item_id", str)
    field_id = required_param(arguments, "field_id", str)
    value = required_param(arguments, "value", str)

    variables = {
        "projectId": project_id,
        "itemId": item_id,
        "fieldId": field_id,
        "value": {"singleSelectOptionId": value},
    }
    try:
        data = await runtime.graphql.execute(
            MUTATION_UPDATE_ITEM_FIELD_VALUE,
            variables,
            decode=UpdateProjectItemData.from_data,
        )
    except GitHubRequestError as exc:
        raise ToolExecutionError(f"failed to update project item state: {exc}") from exc

    return ProjectItem(id=data.item_id, field_id=field_id).to_dict()
