from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping


@dataclass(frozen=True)
class RateLimitStatus:
    remaining: int | None
    reset_at: datetime | None

    @property
    def nearly_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 1


def parse_rate_limit(headers: Mapping[str, str]) -> RateLimitStatus:
    remaining = headers.get("X-RateLimit-Remaining")
    reset = headers.get("X-RateLimit-Reset")
    remaining_val = int(remaining) if remaining and remaining.isdigit() else None
    reset_at = (
        datetime.fromtimestamp(int(reset), tz=timezone.utc) if reset and reset.isdigit() else None
    )
    return RateLimitStatus(remaining=remaining_val, reset_at=reset_at)
