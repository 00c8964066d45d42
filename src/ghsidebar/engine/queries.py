from __future__ import annotations

OPEN_PRS = "open_prs"
REVIEW_REQUESTS = "reviews"
ASSIGNMENTS = "assignments"
MENTIONS = "mentions"
ISSUE_SEARCH = "issues"


def open_prs_query(username: str) -> str:
    return f"author:{username} is:pr is:open archived:false"


def review_requests_query(username: str) -> str:
    return f"review-requested:{username} is:pr is:open archived:false"


def assignments_query(username: str) -> str:
    # Issues and pull requests alike.
    return f"assignee:{username} is:open archived:false"


def mentions_query(username: str) -> str:
    return f"is:open mentions:{username} archived:false"


def issues_search_query(term: str) -> str:
    """Free-text search over open issues, e.g. for linking an issue from chat."""
    term = term.strip()
    if not term:
        raise ValueError("Issue search term must not be empty")
    return f"is:issue is:open archived:false {term}"


def sidebar_queries(username: str) -> dict[str, str]:
    return {
        OPEN_PRS: open_prs_query(username),
        REVIEW_REQUESTS: review_requests_query(username),
        ASSIGNMENTS: assignments_query(username),
    }
