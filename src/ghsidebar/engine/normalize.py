"""Decode GitHub search nodes into WorkItems.

A search over ``type: ISSUE`` returns a mix of issues and pull requests. Each
node is decoded as a tagged variant keyed on ``__typename`` and flattened into
the same WorkItem shape, so callers never branch on where an item came from.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar, Iterable, Literal, Mapping, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ghsidebar.core.errors import MalformedNodeError
from ghsidebar.core.models import DELETED_AUTHOR, WorkItem


class _Author(BaseModel):
    login: str


class _Repository(BaseModel):
    url: str


class _SearchNode(BaseModel):
    number: int = Field(gt=0)
    title: str
    url: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    author: _Author | None = None
    repository: _Repository


class IssueNode(_SearchNode):
    kind: ClassVar[str] = "issue"
    typename: Literal["Issue"] = Field(alias="__typename")


class PullRequestNode(_SearchNode):
    kind: ClassVar[str] = "pull_request"
    typename: Literal["PullRequest"] = Field(alias="__typename")


SearchNode = Annotated[Union[IssueNode, PullRequestNode], Field(discriminator="typename")]

_NODE_ADAPTER: TypeAdapter[IssueNode | PullRequestNode] = TypeAdapter(SearchNode)


def decode_node(raw: Mapping[str, Any]) -> IssueNode | PullRequestNode:
    try:
        return _NODE_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        typename = raw.get("__typename") if isinstance(raw, Mapping) else None
        raise MalformedNodeError(
            f"Search node has no usable issue or pull request variant (__typename={typename!r}): "
            f"{exc.error_count()} validation error(s)"
        ) from exc


def normalize_node(raw: Mapping[str, Any]) -> WorkItem:
    node = decode_node(raw)
    return WorkItem(
        number=node.number,
        repository_url=node.repository.url,
        title=node.title,
        author=node.author.login if node.author else DELETED_AUTHOR,
        created_at=node.created_at,
        updated_at=node.updated_at,
        html_url=node.url,
        kind=node.kind,
    )


def normalize_nodes(nodes: Iterable[Mapping[str, Any]]) -> list[WorkItem]:
    return [normalize_node(raw) for raw in nodes]
