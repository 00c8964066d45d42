"""PR details: review, reviewer and CI state for a list of pull requests."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Sequence

from ghsidebar.core.errors import TransportError
from ghsidebar.core.interfaces import PullRequestReader
from ghsidebar.core.models import PRDetails, PullRequestRef

logger = logging.getLogger(__name__)

_REPO_URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?(?:api\.)?github\.com/(?:repos/)?([^/\s]+)/([^/\s#?]+)"
)


def parse_repo_from_url(url: str) -> tuple[str, str] | None:
    """Parse a repository or pull request URL into (owner, repo).

    Supports formats:
    - https://github.com/owner/repo/pull/123
    - https://api.github.com/repos/owner/repo
    - github.com/owner/repo

    Returns None if URL is invalid.
    """
    match = _REPO_URL_PATTERN.search(url or "")
    if not match:
        return None
    owner, repo = match.groups()
    return owner, repo.removesuffix(".git")


def parse_pr_url(url: str) -> PullRequestRef | None:
    """Parse a GitHub PR web URL (``github.com/owner/repo/pull/123``) into a ref."""
    match = re.search(r"(?:https?://)?(?:www\.)?github\.com/([^/]+)/([^/]+)/pull/(\d+)", url)
    if not match:
        return None
    owner, repo, number = match.groups()
    return PullRequestRef(url=f"https://github.com/{owner}/{repo}", number=int(number))


def fetch_pr_details(reader: PullRequestReader, ref: PullRequestRef) -> PRDetails:
    """Fetch reviews, and PR info plus combined status, side by side.

    A failing half logs a warning and leaves its fields at their defaults.
    """
    parsed = parse_repo_from_url(ref.url)
    if parsed is None:
        logger.warning("Unrecognized pull request URL", extra={"url": ref.url})
        return PRDetails(url=ref.url, number=ref.number)
    owner, repo = parsed

    with ThreadPoolExecutor(max_workers=2) as executor:
        reviews_future = executor.submit(_fetch_reviews, reader, owner, repo, ref.number)
        state_future = executor.submit(_fetch_state, reader, owner, repo, ref.number)
        reviews = reviews_future.result()
        status, mergeable, requested_reviewers = state_future.result()

    return PRDetails(
        url=ref.url,
        number=ref.number,
        status=status,
        mergeable=mergeable,
        requested_reviewers=requested_reviewers,
        reviews=reviews,
    )


def fetch_prs_details(
    reader: PullRequestReader, refs: Sequence[PullRequestRef], max_workers: int = 8
) -> list[PRDetails]:
    """Fetch details for every ref; result i always belongs to refs[i]."""
    if not refs:
        return []
    workers = max(1, min(max_workers, len(refs)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda ref: fetch_pr_details(reader, ref), refs))


def _fetch_reviews(
    reader: PullRequestReader, owner: str, repo: str, number: int
) -> list[dict[str, Any]]:
    try:
        return reader.list_reviews(owner, repo, number)
    except TransportError:
        logger.warning(
            "Failed to fetch reviews for PR details",
            exc_info=True,
            extra={"repo": f"{owner}/{repo}", "pr_number": number},
        )
        return []


def _fetch_state(
    reader: PullRequestReader, owner: str, repo: str, number: int
) -> tuple[str, bool, list[str]]:
    try:
        pr = reader.get_pull_request(owner, repo, number)
    except TransportError:
        logger.warning(
            "Failed to fetch PR for PR details",
            exc_info=True,
            extra={"repo": f"{owner}/{repo}", "pr_number": number},
        )
        return "", False, []

    mergeable = pr.get("mergeable") is True
    requested_reviewers = [
        reviewer.get("login")
        for reviewer in pr.get("requested_reviewers") or []
        if reviewer.get("login")
    ]
    head_sha = (pr.get("head") or {}).get("sha")
    if not head_sha:
        return "", mergeable, requested_reviewers
    try:
        combined = reader.get_combined_status(owner, repo, head_sha)
    except TransportError:
        logger.warning(
            "Failed to fetch combined status",
            exc_info=True,
            extra={"repo": f"{owner}/{repo}", "pr_number": number},
        )
        return "", mergeable, requested_reviewers
    return combined.get("state") or "", mergeable, requested_reviewers
