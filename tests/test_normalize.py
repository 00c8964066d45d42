from datetime import datetime, timezone
from typing import get_args, get_type_hints

import pytest

from ghsidebar.core.errors import MalformedNodeError
from ghsidebar.core.models import WorkItem
from ghsidebar.engine.normalize import IssueNode, PullRequestNode, decode_node, normalize_node


def _raw(typename: str, number: int, **overrides) -> dict:
    raw = {
        "__typename": typename,
        "number": number,
        "title": "Fix the flux capacitor",
        "url": f"https://github.com/acme/widgets/issues/{number}",
        "createdAt": "2024-03-01T10:00:00Z",
        "updatedAt": "2024-03-02T11:30:00Z",
        "author": {"login": "bob"},
        "repository": {"url": "https://github.com/acme/widgets"},
    }
    raw.update(overrides)
    return raw


def test_issue_variant_fields_are_copied() -> None:
    """Issue nodes map field by field onto WorkItem."""
    item = normalize_node(_raw("Issue", 42))

    assert item.number == 42
    assert item.kind == "issue"
    assert item.title == "Fix the flux capacitor"
    assert item.author == "bob"
    assert item.repository_url == "https://github.com/acme/widgets"
    assert item.html_url == "https://github.com/acme/widgets/issues/42"
    assert item.created_at == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert item.updated_at == datetime(2024, 3, 2, 11, 30, tzinfo=timezone.utc)


def test_pull_request_variant_fields_are_copied() -> None:
    """Pull request nodes map field by field onto WorkItem."""
    item = normalize_node(
        _raw(
            "PullRequest",
            7,
            title="Add widgets",
            url="https://github.com/acme/widgets/pull/7",
            author={"login": "carol"},
        )
    )

    assert item.number == 7
    assert item.kind == "pull_request"
    assert item.title == "Add widgets"
    assert item.author == "carol"
    assert item.html_url == "https://github.com/acme/widgets/pull/7"


def test_issue_and_pull_request_share_output_shape() -> None:
    """Both variants serialize to the same keys."""
    issue = normalize_node(_raw("Issue", 1)).to_dict()
    pr = normalize_node(_raw("PullRequest", 2)).to_dict()

    assert issue.keys() == pr.keys()
    assert issue["user"] == {"login": "bob"}


def test_decode_node_returns_tagged_variant() -> None:
    """Nodes decode to the variant named by __typename."""
    assert isinstance(decode_node(_raw("Issue", 1)), IssueNode)
    assert isinstance(decode_node(_raw("PullRequest", 1)), PullRequestNode)


def test_missing_author_becomes_deleted_user() -> None:
    """A null author becomes the deleted-user placeholder."""
    item = normalize_node(_raw("PullRequest", 3, author=None))

    assert item.author == "<deleted>"


@pytest.mark.parametrize(
    "raw",
    [
        {},
        _raw("Issue", 0),
        _raw("Repository", 5),
        {key: value for key, value in _raw("Issue", 5).items() if key != "__typename"},
        {key: value for key, value in _raw("PullRequest", 5).items() if key != "repository"},
    ],
    ids=["empty", "zero-number", "unknown-type", "no-typename", "no-repository"],
)
def test_unusable_nodes_are_rejected(raw: dict) -> None:
    """Nodes without a usable variant or number are rejected."""
    with pytest.raises(MalformedNodeError):
        normalize_node(raw)


def test_kind_values_match_declared_work_item_kinds() -> None:
    """Each node variant produces one of the kinds WorkItem declares."""
    declared = set(get_args(get_type_hints(WorkItem)["kind"]))

    assert declared == {"issue", "pull_request"}
    assert {IssueNode.kind, PullRequestNode.kind} == declared
