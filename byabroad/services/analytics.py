"""Analytics for product URL requests.

Counts how often each store domain is requested so the most wanted stores
without a structured extractor can be prioritized.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


class DomainRequestTracker:
    """In-memory counter of parsed URLs per domain.

    Attributes:
        started_at: When counting started.
    """

    def __init__(self) -> None:
        self._requests: Counter[str] = Counter()
        self._failures: Counter[str] = Counter()
        self.started_at = datetime.now()

    def record(self, domain: str, success: bool = True) -> None:
        """Record one URL parse for ``domain``."""
        self._requests[domain] += 1
        if not success:
            self._failures[domain] += 1
        logger.debug(f"Domain request recorded: {domain} (success={success})")

    def count(self, domain: str) -> int:
        return self._requests[domain]

    def most_requested(self, limit: int = 10) -> list[tuple[str, int]]:
        """Domains ordered by request count, highest first."""
        return self._requests.most_common(limit)

    def get_stats(self) -> dict[str, Any]:
        """Summary of recorded requests.

        Returns:
            Dictionary with totals, failure counts and the top domains.
        """
        total = sum(self._requests.values())
        failed = sum(self._failures.values())
        return {
            "total_requests": total,
            "failed_requests": failed,
            "success_rate": (total - failed) / total * 100 if total else 0.0,
            "unique_domains": len(self._requests),
            "top_domains": self.most_requested(5),
            "since": self.started_at.isoformat(),
        }

    def reset(self) -> None:
        self._requests.clear()
        self._failures.clear()
        self.started_at = datetime.now()
