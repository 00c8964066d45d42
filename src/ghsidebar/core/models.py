from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Sequence

from ghsidebar.core.errors import ExhaustionMismatchError, PaginationError

DELETED_AUTHOR = "<deleted>"


@dataclass(frozen=True)
class WorkItem:
    number: int
    repository_url: str
    title: str
    author: str
    created_at: datetime
    updated_at: datetime
    html_url: str
    kind: Literal["issue", "pull_request"]

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "repository_url": self.repository_url,
            "title": self.title,
            "user": {"login": self.author},
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "html_url": self.html_url,
        }


@dataclass(frozen=True)
class SearchRequest:
    query: str
    cursor: str | None = None


@dataclass(frozen=True)
class PageResult:
    nodes: Sequence[Mapping[str, Any]]
    has_next_page: bool
    end_cursor: str | None = None


@dataclass
class QuerySpec:
    """One named search whose cursor advances page by page.

    The query text is fixed at construction; only ``cursor`` and
    ``exhausted`` change while the owning aggregation loop runs.
    """

    name: str
    query: str
    cursor: str | None = None
    exhausted: bool = False
    pages: int = field(default=0, compare=False)

    @classmethod
    def create(cls, name: str, query: str, org: str | None = None) -> "QuerySpec":
        return cls(name=name, query=scope_to_org(query, org))

    def request(self) -> SearchRequest:
        if self.exhausted:
            raise ExhaustionMismatchError(f"Query {self.name!r} was requested after its last page")
        return SearchRequest(query=self.query, cursor=self.cursor)

    def advance(self, page: PageResult) -> None:
        if self.exhausted:
            raise ExhaustionMismatchError(f"Query {self.name!r} received a page after its last page")
        self.pages += 1
        if not page.has_next_page:
            self.exhausted = True
            return
        if not page.end_cursor:
            raise PaginationError(f"Query {self.name!r} reported more pages without an end cursor")
        if page.end_cursor == self.cursor:
            raise PaginationError(f"Query {self.name!r} did not advance past cursor {self.cursor!r}")
        self.cursor = page.end_cursor


def scope_to_org(query: str, org: str | None) -> str:
    """Restrict a search query to an organization.

    Returns the query untouched when no org is configured or when the query
    already carries the same ``org:`` qualifier.
    """
    if not org:
        return query
    qualifier = f"org:{org}"
    if qualifier in query.split():
        return query
    return f"{qualifier} {query}"


@dataclass(frozen=True)
class PullRequestRef:
    url: str
    number: int


@dataclass(frozen=True)
class PRDetails:
    url: str
    number: int
    status: str = ""
    mergeable: bool = False
    requested_reviewers: list[str] = field(default_factory=list)
    reviews: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "number": self.number,
            "status": self.status,
            "mergeable": self.mergeable,
            "requestedReviewers": list(self.requested_reviewers),
            "reviews": list(self.reviews),
        }
