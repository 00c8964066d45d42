from __future__ import annotations

import logging
from typing import Any

import httpx

from ghsidebar.adapters.github.ratelimit import parse_rate_limit
from ghsidebar.core.errors import TransportError


class GitHubRestAdapter:
    """REST reads used to enrich pull requests with review and CI state."""

    def __init__(self, token: str, api_base: str = "https://api.github.com", timeout: float = 30.0) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._client = httpx.Client(
            base_url=api_base,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubRestAdapter":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def get_pull_request(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        return self._get_json(f"/repos/{owner}/{repo}/pulls/{number}", params={})

    def list_reviews(self, owner: str, repo: str, number: int) -> list[dict[str, Any]]:
        reviews = self._get_json(
            f"/repos/{owner}/{repo}/pulls/{number}/reviews", params={"per_page": 100}
        )
        if not isinstance(reviews, list):
            raise TransportError(f"Unexpected reviews payload for {owner}/{repo}#{number}")
        return reviews

    def get_combined_status(self, owner: str, repo: str, ref: str) -> dict[str, Any]:
        return self._get_json(f"/repos/{owner}/{repo}/commits/{ref}/status", params={})

    def _get_json(self, path: str, params: dict) -> Any:
        try:
            response = self._client.request("GET", path, params=params)
        except httpx.HTTPError as exc:
            self._logger.warning("GitHub request failed", extra={"path": path, "error": str(exc)})
            raise TransportError(f"GitHub request failed for {path}: {exc}") from exc

        rate_limit = parse_rate_limit(response.headers)
        if rate_limit.nearly_exhausted:
            self._logger.warning(
                "GitHub rate limit nearly exhausted",
                extra={
                    "path": path,
                    "remaining": rate_limit.remaining,
                    "reset_at": rate_limit.reset_at.isoformat()
                    if rate_limit.reset_at
                    else None,
                },
            )

        if response.status_code in {401, 403}:
            self._log_permission_issue(path, response)
        elif response.status_code == 404:
            self._log_not_found(path, response)
        if response.status_code != 200:
            raise TransportError(f"GitHub returned HTTP {response.status_code} for {path}")
        try:
            return response.json()
        except ValueError as exc:
            self._logger.warning(
                "GitHub response is not valid JSON",
                extra={"path": path, "response_message": response.text[:200]},
            )
            raise TransportError(f"GitHub returned a non-JSON body for {path}") from exc

    def _log_permission_issue(self, path: str, response: httpx.Response) -> None:
        self._logger.warning(
            "GitHub permission or visibility issue",
            extra={
                "path": path,
                "status_code": response.status_code,
                "response_message": response.text[:200],
            },
        )

    def _log_not_found(self, path: str, response: httpx.Response) -> None:
        self._logger.warning(
            "GitHub resource not found",
            extra={
                "path": path,
                "status_code": response.status_code,
                "response_message": response.text[:200],
            },
        )
