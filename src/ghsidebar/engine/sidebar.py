from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ghsidebar.core.errors import AggregationError
from ghsidebar.core.models import WorkItem
from ghsidebar.engine.aggregator import Aggregator
from ghsidebar.engine.queries import (
    ASSIGNMENTS,
    ISSUE_SEARCH,
    MENTIONS,
    OPEN_PRS,
    REVIEW_REQUESTS,
    assignments_query,
    issues_search_query,
    mentions_query,
    open_prs_query,
    review_requests_query,
    sidebar_queries,
)


@dataclass(frozen=True)
class SidebarData:
    open_prs: list[WorkItem] = field(default_factory=list)
    reviews: list[WorkItem] = field(default_factory=list)
    assignments: list[WorkItem] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            OPEN_PRS: len(self.open_prs),
            REVIEW_REQUESTS: len(self.reviews),
            ASSIGNMENTS: len(self.assignments),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "counts": self.counts(),
            OPEN_PRS: [item.to_dict() for item in self.open_prs],
            REVIEW_REQUESTS: [item.to_dict() for item in self.reviews],
            ASSIGNMENTS: [item.to_dict() for item in self.assignments],
        }


class SidebarProvider:
    """Named searches behind the sidebar counters and lists for one user."""

    def __init__(self, aggregator: Aggregator, username: str, timeout: float | None = None) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._aggregator = aggregator
        self._username = username
        self._timeout = timeout

    def get_sidebar_data(self) -> SidebarData:
        results = self._aggregator.aggregate(sidebar_queries(self._username), timeout=self._timeout)
        return SidebarData(
            open_prs=results[OPEN_PRS],
            reviews=results[REVIEW_REQUESTS],
            assignments=results[ASSIGNMENTS],
        )

    def get_sidebar_data_or_empty(self) -> SidebarData:
        try:
            return self.get_sidebar_data()
        except AggregationError as exc:
            self._logger.warning(
                "Failed to load sidebar data; rendering empty sidebar",
                extra={"github_user": self._username, "error": str(exc)},
            )
            return SidebarData()

    def get_your_prs(self) -> list[WorkItem]:
        return self._single(OPEN_PRS, open_prs_query(self._username))

    def get_reviews(self) -> list[WorkItem]:
        return self._single(REVIEW_REQUESTS, review_requests_query(self._username))

    def get_your_assignments(self) -> list[WorkItem]:
        return self._single(ASSIGNMENTS, assignments_query(self._username))

    def get_mentions(self) -> list[WorkItem]:
        return self._single(MENTIONS, mentions_query(self._username))

    def search_issues(self, term: str) -> list[WorkItem]:
        return self._single(ISSUE_SEARCH, issues_search_query(term))

    def _single(self, name: str, query: str) -> list[WorkItem]:
        return self._aggregator.aggregate({name: query}, timeout=self._timeout)[name]
