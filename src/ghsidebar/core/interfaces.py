from __future__ import annotations

from typing import Any, Mapping, Protocol

from ghsidebar.core.models import PageResult, SearchRequest


class SearchClient(Protocol):
    def search(self, query: str, cursor: str | None, timeout: float | None = None) -> PageResult:
        """Fetch one page of an issue/pull request search."""

    def search_many(
        self, requests: Mapping[str, SearchRequest], timeout: float | None = None
    ) -> dict[str, PageResult]:
        """Fetch one page for each named search in a single round trip."""


class PullRequestReader(Protocol):
    def get_pull_request(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        """Return the pull request payload."""

    def list_reviews(self, owner: str, repo: str, number: int) -> list[dict[str, Any]]:
        """Return submitted reviews for a pull request."""

    def get_combined_status(self, owner: str, repo: str, ref: str) -> dict[str, Any]:
        """Return the combined commit status for a ref."""
