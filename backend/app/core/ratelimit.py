from datetime import datetime, timedelta, timezone
from typing import Dict, List

from fastapi import HTTPException

from app.core.config import settings


class RateLimiter:
    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self.hits: Dict[str, List[datetime]] = {}

    def _prune(self, window_start: datetime) -> None:
        for other_key in list(self.hits.keys()):
            if self.hits[other_key][-1] < window_start:
                del self.hits[other_key]

    def check(self, key: str) -> None:
        now = datetime.now(timezone.utc)
        window_start = now - self.window
        self._prune(window_start)
        entries = [ts for ts in self.hits.get(key, []) if ts >= window_start]

        if len(entries) >= self.limit:
            oldest_in_window = min(entries)
            retry_after = int(max(1, (oldest_in_window + self.window - now).total_seconds()))
            raise HTTPException(
                status_code=429,
                detail={
                    "error": "Rate limit exceeded",
                    "retry_after_seconds": retry_after,
                },
            )

        entries.append(now)
        self.hits[key] = entries

    def clear_prefix(self, prefix: str) -> None:
        for key in list(self.hits.keys()):
            if key.startswith(prefix):
                del self.hits[key]


insight_rate_limiter = RateLimiter(limit=settings.ai_rate_limit_per_minute, window_seconds=60)
