"""Paginated aggregation of GitHub issue/pull request searches."""

from __future__ import annotations

import logging
import time
from typing import Callable, Mapping, Sequence

from ghsidebar.core.errors import DeadlineExceededError, ExhaustionMismatchError, TransportError
from ghsidebar.core.interfaces import SearchClient
from ghsidebar.core.models import PageResult, QuerySpec, WorkItem
from ghsidebar.engine.normalize import normalize_nodes


class Deadline:
    """Single time budget shared by every round trip of one aggregation."""

    def __init__(self, timeout: float | None, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._expires_at = None if timeout is None else clock() + timeout

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        left = self._expires_at - self._clock()
        if left <= 0:
            raise DeadlineExceededError("Aggregation deadline elapsed before pagination finished")
        return left


class Aggregator:
    """Run named searches to exhaustion and collect normalized WorkItems.

    With ``batch`` enabled every round trip carries one page request for each
    query that still has pages left; exhausted queries are never re-issued.
    Without it the queries are paged one after another. Either way a failure
    anywhere aborts the call and nothing collected so far is returned.
    """

    def __init__(
        self,
        client: SearchClient,
        org: str | None = None,
        batch: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._client = client
        self._org = org or None
        self._batch = batch
        self._clock = clock

    def aggregate(
        self, filters: Mapping[str, str], timeout: float | None = None
    ) -> dict[str, list[WorkItem]]:
        if not filters:
            return {}
        specs = [QuerySpec.create(name, query, self._org) for name, query in filters.items()]
        results: dict[str, list[WorkItem]] = {spec.name: [] for spec in specs}
        deadline = Deadline(timeout, self._clock)

        if self._batch:
            round_trips = self._run_batched(specs, results, deadline)
        else:
            round_trips = self._run_sequential(specs, results, deadline)

        self._logger.info(
            "Aggregation complete",
            extra={
                "round_trips": round_trips,
                "counts": {name: len(items) for name, items in results.items()},
            },
        )
        return results

    def _run_batched(
        self,
        specs: Sequence[QuerySpec],
        results: dict[str, list[WorkItem]],
        deadline: Deadline,
    ) -> int:
        round_trips = 0
        while True:
            pending = [spec for spec in specs if not spec.exhausted]
            if not pending:
                return round_trips
            requests = {spec.name: spec.request() for spec in pending}
            pages = self._client.search_many(requests, timeout=deadline.remaining())
            round_trips += 1
            self._logger.debug(
                "Fetched search page batch",
                extra={"round_trip": round_trips, "queries": sorted(requests)},
            )
            # A round trip that overran the deadline must not contribute results.
            deadline.remaining()

            unexpected = set(pages) - set(requests)
            if unexpected:
                raise ExhaustionMismatchError(
                    f"Search response included queries that were not requested: {sorted(unexpected)}"
                )
            for spec in pending:
                page = pages.get(spec.name)
                if page is None:
                    raise TransportError(f"Search response is missing query {spec.name!r}")
                self._collect(spec, page, results)

    def _run_sequential(
        self,
        specs: Sequence[QuerySpec],
        results: dict[str, list[WorkItem]],
        deadline: Deadline,
    ) -> int:
        round_trips = 0
        for spec in specs:
            while not spec.exhausted:
                request = spec.request()
                page = self._client.search(
                    request.query, request.cursor, timeout=deadline.remaining()
                )
                round_trips += 1
                self._logger.debug(
                    "Fetched search page",
                    extra={"round_trip": round_trips, "query": spec.name, "page": spec.pages + 1},
                )
                deadline.remaining()
                self._collect(spec, page, results)
        return round_trips

    @staticmethod
    def _collect(spec: QuerySpec, page: PageResult, results: dict[str, list[WorkItem]]) -> None:
        results[spec.name].extend(normalize_nodes(page.nodes))
        spec.advance(page)
