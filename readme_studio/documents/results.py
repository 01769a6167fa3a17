"""Short-lived in-memory store for generated README results."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredResult:
    """A generated README kept for later retrieval."""

    id: str
    readme: str
    created_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "readme": self.readme,
            "timestamp": int(self.created_at.timestamp() * 1000),
        }


class ResultCache:
    """Maps fresh ids to generated documents until they expire."""

    def __init__(self, *, ttl: timedelta = timedelta(hours=24)) -> None:
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive.")
        self._ttl = ttl
        self._results: dict[str, StoredResult] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def store(self, readme: str, *, now: datetime | None = None) -> StoredResult:
        """Store a document under a fresh id and return the record."""
        result = StoredResult(
            id=f"proj_{uuid4().hex}",
            readme=readme,
            created_at=now or datetime.now(UTC),
        )
        with self._lock:
            self._results[result.id] = result
        return result

    def get(self, result_id: str, *, now: datetime | None = None) -> StoredResult | None:
        """Return a stored result unless it is missing or expired."""
        with self._lock:
            result = self._results.get(result_id)
        if result is None:
            return None
        if self._expired(result, now or datetime.now(UTC)):
            return None
        return result

    def sweep(self, *, now: datetime | None = None) -> int:
        """Drop expired results and return how many were removed."""
        current = now or datetime.now(UTC)
        with self._lock:
            expired = [key for key, item in self._results.items() if self._expired(item, current)]
            for key in expired:
                del self._results[key]
        if expired:
            logger.debug("Swept %s expired results.", len(expired))
        return len(expired)

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Sweep periodically until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep()

    def _expired(self, result: StoredResult, now: datetime) -> bool:
        return now - result.created_at > self._ttl
