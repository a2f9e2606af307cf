"""Records returned by the project tools and typed GraphQL response shapes.

Output records serialize with GitHub's camelCase keys. Response shapes are
built from the GraphQL ``data`` object with ``from_data``; a ``None`` payload
(GitHub sends ``"data": null`` next to errors) yields the empty shape, while a
value of the wrong JSON type raises ``DecodeError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import DecodeError


def _obj(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"expected object for {what}, got {type(value).__name__}")
    return value


def _str(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"expected string for {key!r}, got {type(value).__name__}")
    return value


def _int(obj: dict[str, Any], key: str) -> int:
    value = obj.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"expected integer for {key!r}, got {type(value).__name__}")
    return value


def _bool(obj: dict[str, Any], key: str) -> bool:
    value = obj.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"expected boolean for {key!r}, got {type(value).__name__}")
    return value


# --- Output records -------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class Project:
    """A GitHub Project (v2) as reported to agents."""

    id: str
    title: str
    short_description: str
    url: str
    closed: bool
    number: int
    # Snapshot of items.totalCount at query time.
    item_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "shortDescription": self.short_description,
            "url": self.url,
            "closed": self.closed,
            "number": self.number,
            "itemCount": self.item_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            id=data["id"],
            title=data["title"],
            short_description=data["shortDescription"],
            url=data["url"],
            closed=data["closed"],
            number=data["number"],
            item_count=data["itemCount"],
        )


@dataclass(frozen=True, slots=True)
class ProjectItem:
    """A row of a project board; only the fields relevant to the operation are set.

    Unset (``None``) fields are left out of ``to_dict``; an empty string is kept.
    """

    id: str
    type: str | None = None
    field_id: str | None = None
    column_id: str | None = None
    content_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id}
        if self.type is not None:
            out["type"] = self.type
        if self.field_id is not None:
            out["fieldId"] = self.field_id
        if self.column_id is not None:
            out["columnId"] = self.column_id
        if self.content_id is not None:
            out["contentId"] = self.content_id
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectItem:
        return cls(
            id=data["id"],
            type=data.get("type"),
            field_id=data.get("fieldId"),
            column_id=data.get("columnId"),
            content_id=data.get("contentId"),
        )


@dataclass(frozen=True, slots=True)
class Issue:
    """The parts of a REST issue payload we need."""

    number: int
    node_id: str | None
    title: str
    url: str

    @classmethod
    def from_rest(cls, data: Any) -> Issue:
        obj = _obj(data, "issue")
        node_id = obj.get("node_id")
        if node_id is not None and not isinstance(node_id, str):
            raise DecodeError(f"expected string for 'node_id', got {type(node_id).__name__}")
        return cls(
            number=_int(obj, "number"),
            node_id=node_id or None,
            title=_str(obj, "title"),
            url=_str(obj, "html_url"),
        )


# --- GraphQL response shapes ------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class PageInfo:
    has_next_page: bool = False
    end_cursor: str = ""


@dataclass(frozen=True, slots=True)
class OrgProjectsData:
    """``organization.projectsV2`` for the list-projects query."""

    nodes: tuple[Project, ...] = ()
    page_info: PageInfo = PageInfo()

    @classmethod
    def from_data(cls, data: Any) -> OrgProjectsData:
        org = _obj(_obj(data, "data").get("organization"), "organization")
        conn = _obj(org.get("projectsV2"), "projectsV2")

        raw_nodes = conn.get("nodes") or []
        if not isinstance(raw_nodes, list):
            raise DecodeError("expected list for 'nodes'")

        nodes = []
        for raw in raw_nodes:
            node = _obj(raw, "project node")
            items = _obj(node.get("items"), "items")
            nodes.append(
                Project(
                    id=_str(node, "id"),
                    title=_str(node, "title"),
                    short_description=_str(node, "shortDescription"),
                    url=_str(node, "url"),
                    closed=_bool(node, "closed"),
                    number=_int(node, "number"),
                    item_count=_int(items, "totalCount"),
                )
            )

        page_info = _obj(conn.get("pageInfo"), "pageInfo")
        return cls(
            nodes=tuple(nodes),
            page_info=PageInfo(
                has_next_page=_bool(page_info, "hasNextPage"),
                end_cursor=_str(page_info, "endCursor"),
            ),
        )


@dataclass(frozen=True, slots=True)
class AddProjectItemData:
    """``addProjectV2ItemById.item``."""

    item_id: str = ""

    @classmethod
    def from_data(cls, data: Any) -> AddProjectItemData:
        payload = _obj(_obj(data, "data").get("addProjectV2ItemById"), "addProjectV2ItemById")
        item = _obj(payload.get("item"), "item")
        return cls(item_id=_str(item, "id"))


@dataclass(frozen=True, slots=True)
class UpdateProjectItemData:
    """``updateProjectV2ItemFieldValue.projectV2Item``."""

    item_id: str = ""

    @classmethod
    def from_data(cls, data: Any) -> UpdateProjectItemData:
        payload = _obj(_obj(data, "data").get("updateProjectV2ItemFieldValue"), "updateProjectV2ItemFieldValue")
        item = _obj(payload.get("projectV2Item"), "projectV2Item")
        return cls(item_id=_str(item, "id"))
