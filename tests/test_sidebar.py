from __future__ import annotations

import logging

from ghsidebar.core.errors import TransportError
from ghsidebar.core.models import PageResult
from ghsidebar.engine.aggregator import Aggregator
from ghsidebar.engine.sidebar import SidebarData, SidebarProvider


def _node(number: int, typename: str = "PullRequest") -> dict:
    return {
        "__typename": typename,
        "number": number,
        "title": f"Item {number}",
        "url": f"https://github.com/acme/widgets/pull/{number}",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-02T00:00:00Z",
        "author": {"login": "alice"},
        "repository": {"url": "https://github.com/acme/widgets"},
    }


class _QueryClient:
    """Answers every search with the pages registered for its query text."""

    def __init__(self, pages: dict[str, list[PageResult]], fail: bool = False) -> None:
        self._pages = pages
        self._fail = fail
        self.requested: list[set[str]] = []

    def search(self, query, cursor, timeout=None):
        self.requested.append({query})
        return self._next(query)

    def search_many(self, requests, timeout=None):
        self.requested.append({request.query for request in requests.values()})
        if self._fail:
            raise TransportError("GitHub is down")
        return {name: self._next(request.query) for name, request in requests.items()}

    def _next(self, query: str) -> PageResult:
        return self._pages[query].pop(0)


def test_sidebar_data_collects_three_result_sets() -> None:
    """The sidebar gathers its three sets in one aggregation."""
    client = _QueryClient(
        {
            "author:alice is:pr is:open archived:false": [
                PageResult(nodes=[_node(1), _node(2)], has_next_page=False)
            ],
            "review-requested:alice is:pr is:open archived:false": [
                PageResult(nodes=[_node(3)], has_next_page=True, end_cursor="r1"),
                PageResult(nodes=[_node(4)], has_next_page=False),
            ],
            "assignee:alice is:open archived:false": [
                PageResult(nodes=[_node(5, "Issue")], has_next_page=False)
            ],
        }
    )
    provider = SidebarProvider(Aggregator(client), username="alice")

    data = provider.get_sidebar_data()

    assert data.counts() == {"open_prs": 2, "reviews": 2, "assignments": 1}
    assert [item.number for item in data.reviews] == [3, 4]
    assert data.assignments[0].kind == "issue"
    assert len(client.requested) == 2
    assert client.requested[1] == {"review-requested:alice is:pr is:open archived:false"}


def test_sidebar_data_scoped_to_org() -> None:
    """Sidebar searches carry the org clause."""
    client = _QueryClient(
        {
            "org:acme author:alice is:pr is:open archived:false": [PageResult(nodes=[], has_next_page=False)],
            "org:acme review-requested:alice is:pr is:open archived:false": [
                PageResult(nodes=[], has_next_page=False)
            ],
            "org:acme assignee:alice is:open archived:false": [PageResult(nodes=[], has_next_page=False)],
        }
    )
    provider = SidebarProvider(Aggregator(client, org="acme"), username="alice")

    assert provider.get_sidebar_data() == SidebarData()


def test_sidebar_failure_renders_empty(caplog) -> None:
    """A failed aggregation renders an empty sidebar."""
    provider = SidebarProvider(Aggregator(_QueryClient({}, fail=True)), username="alice")

    caplog.set_level(logging.WARNING)
    data = provider.get_sidebar_data_or_empty()

    assert data.counts() == {"open_prs": 0, "reviews": 0, "assignments": 0}
    assert any("rendering empty sidebar" in record.message for record in caplog.records)


def test_single_result_set_providers() -> None:
    """Single-set providers each run their own search."""
    client = _QueryClient(
        {
            "author:alice is:pr is:open archived:false": [PageResult(nodes=[_node(1)], has_next_page=False)],
            "assignee:alice is:open archived:false": [PageResult(nodes=[_node(2, "Issue")], has_next_page=False)],
            "is:open mentions:alice archived:false": [PageResult(nodes=[_node(3)], has_next_page=False)],
        }
    )
    provider = SidebarProvider(Aggregator(client), username="alice")

    assert [item.number for item in provider.get_your_prs()] == [1]
    assert [item.number for item in provider.get_your_assignments()] == [2]
    assert [item.number for item in provider.get_mentions()] == [3]


def test_sidebar_to_dict_shape() -> None:
    """Sidebar JSON carries counts and issue-like items."""
    client = _QueryClient(
        {
            "author:alice is:pr is:open archived:false": [PageResult(nodes=[_node(1)], has_next_page=False)],
            "review-requested:alice is:pr is:open archived:false": [PageResult(nodes=[], has_next_page=False)],
            "assignee:alice is:open archived:false": [PageResult(nodes=[], has_next_page=False)],
        }
    )

    payload = SidebarProvider(Aggregator(client), username="alice").get_sidebar_data().to_dict()

    assert payload["counts"]["open_prs"] == 1
    assert payload["open_prs"][0]["number"] == 1
    assert payload["open_prs"][0]["user"] == {"login": "alice"}
    assert payload["reviews"] == []


def test_review_requests_provider() -> None:
    """Review requests are paged to exhaustion."""
    client = _QueryClient(
        {
            "review-requested:alice is:pr is:open archived:false": [
                PageResult(nodes=[_node(8)], has_next_page=True, end_cursor="r1"),
                PageResult(nodes=[_node(9)], has_next_page=False),
            ]
        }
    )

    reviews = SidebarProvider(Aggregator(client), username="alice").get_reviews()

    assert [item.number for item in reviews] == [8, 9]


def test_search_issues_scoped_to_org() -> None:
    """Issue search is scoped to the org like every other search."""
    client = _QueryClient(
        {
            "org:acme is:issue is:open archived:false flaky test": [
                PageResult(nodes=[_node(21, "Issue")], has_next_page=False)
            ]
        }
    )
    provider = SidebarProvider(Aggregator(client, org="acme"), username="alice")

    found = provider.search_issues("  flaky test ")

    assert [item.number for item in found] == [21]
    assert found[0].kind == "issue"
