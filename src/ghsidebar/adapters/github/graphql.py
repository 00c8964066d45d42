from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Mapping

import httpx

from ghsidebar.adapters.github.ratelimit import parse_rate_limit
from ghsidebar.core.errors import DeadlineExceededError, TransportError
from ghsidebar.core.models import PageResult, SearchRequest

_NODE_FIELDS = """
        number
        title
        url
        createdAt
        updatedAt
        author { login }
        repository { url }"""

_SEARCH_SELECTION = (
    "{\n"
    "    issueCount\n"
    "    pageInfo { hasNextPage endCursor }\n"
    "    nodes {\n"
    "      __typename\n"
    "      ... on Issue {" + _NODE_FIELDS + "\n      }\n"
    "      ... on PullRequest {" + _NODE_FIELDS + "\n      }\n"
    "    }\n"
    "  }"
)


def build_search_document(count: int, page_size: int) -> str:
    """Build a GraphQL query with ``count`` aliased search fields ``q0..qN``.

    Each field reads its search text from ``$query_i`` and its cursor from
    ``$cursor_i`` so one request can page several searches independently.
    """
    variables = ", ".join(f"$query_{i}: String!, $cursor_{i}: String" for i in range(count))
    fields = "\n".join(
        f"  q{i}: search(first: {page_size}, after: $cursor_{i}, query: $query_{i}, type: ISSUE) "
        + _SEARCH_SELECTION
        for i in range(count)
    )
    return f"query({variables}) {{\n{fields}\n}}"


class GitHubGraphQLAdapter:
    def __init__(
        self,
        token: str,
        graphql_url: str = "https://api.github.com/graphql",
        page_size: int = 100,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._clock = clock
        self._url = graphql_url
        self._page_size = page_size
        self._client = httpx.Client(
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubGraphQLAdapter":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def search(self, query: str, cursor: str | None, timeout: float | None = None) -> PageResult:
        pages = self.search_many({"search": SearchRequest(query=query, cursor=cursor)}, timeout=timeout)
        return pages["search"]

    def search_many(
        self, requests: Mapping[str, SearchRequest], timeout: float | None = None
    ) -> dict[str, PageResult]:
        if not requests:
            return {}
        names = list(requests)
        variables: dict[str, Any] = {}
        for index, name in enumerate(names):
            variables[f"query_{index}"] = requests[name].query
            variables[f"cursor_{index}"] = requests[name].cursor
        document = build_search_document(len(names), self._page_size)

        data = self._execute(document, variables, timeout)
        pages: dict[str, PageResult] = {}
        for index, name in enumerate(names):
            search = data.get(f"q{index}")
            if not isinstance(search, dict):
                raise TransportError(f"GraphQL response is missing search results for {name!r}")
            pages[name] = _parse_search(search)
        return pages

    def _execute(self, document: str, variables: dict[str, Any], timeout: float | None) -> dict:
        payload = {"query": document, "variables": variables}
        expires_at = None if timeout is None else self._clock() + timeout
        try:
            with self._client.stream("POST", self._url, json=payload, timeout=timeout) as response:
                chunks: list[bytes] = []
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    if expires_at is not None and self._clock() >= expires_at:
                        self._logger.warning(
                            "GitHub GraphQL response exceeded time budget",
                            extra={"timeout": timeout, "bytes_read": sum(len(c) for c in chunks)},
                        )
                        raise DeadlineExceededError(
                            f"GitHub GraphQL response not received within {timeout:.2f}s"
                        )
                status_code = response.status_code
                headers = response.headers
        except httpx.TimeoutException as exc:
            self._logger.warning("GitHub GraphQL request timed out", extra={"error": str(exc)})
            raise DeadlineExceededError(f"GitHub GraphQL request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            self._logger.warning("GitHub GraphQL request failed", extra={"error": str(exc)})
            raise TransportError(f"GitHub GraphQL request failed: {exc}") from exc
        content = b"".join(chunks)

        rate_limit = parse_rate_limit(headers)
        if rate_limit.nearly_exhausted:
            self._logger.warning(
                "GitHub rate limit nearly exhausted",
                extra={
                    "remaining": rate_limit.remaining,
                    "reset_at": rate_limit.reset_at.isoformat()
                    if rate_limit.reset_at
                    else None,
                },
            )

        if status_code != 200:
            self._logger.warning(
                "GitHub GraphQL request rejected",
                extra={
                    "status_code": status_code,
                    "response_message": content[:200].decode("utf-8", errors="replace"),
                },
            )
            raise TransportError(f"GitHub GraphQL request returned HTTP {status_code}")

        try:
            body = json.loads(content)
        except ValueError as exc:
            raise TransportError("GitHub GraphQL response is not valid JSON") from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors if isinstance(err, dict))
            self._logger.warning("GitHub GraphQL query returned errors", extra={"errors": messages})
            raise TransportError(f"GitHub GraphQL query failed: {messages or errors}")

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise TransportError("GitHub GraphQL response has no data")
        return data


def _parse_search(search: dict) -> PageResult:
    page_info = search.get("pageInfo") or {}
    nodes = search.get("nodes") or []
    return PageResult(
        nodes=list(nodes),
        has_next_page=bool(page_info.get("hasNextPage")),
        end_cursor=page_info.get("endCursor"),
    )

