"""Retry backoff curve for stage execution.

TAG: [EXECUTION] [RETRY]
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from planflow.core.config import Settings


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff with jitter.

    The delay before retry ``n`` (1-based) is
    ``min(base_ms * multiplier ** (n - 1), max_backoff_ms)`` scaled by a
    factor drawn uniformly from ``[1 - jitter_ratio, 1]``.

    Attributes:
        multiplier: Growth factor between consecutive retries.
        max_backoff_ms: Cap applied before jitter.
        jitter_ratio: 0 disables jitter; 1 allows any delay down to zero.
    """

    multiplier: float = 2.0
    max_backoff_ms: float = 10_000
    jitter_ratio: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> BackoffPolicy:
        return cls(
            multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
            max_backoff_ms=settings.RETRY_MAX_BACKOFF_MS,
            jitter_ratio=settings.RETRY_JITTER_RATIO,
        )

    def delay_ms(self, base_ms: float, retry: int, rng: random.Random | None = None) -> float:
        """Delay in milliseconds before retry number ``retry``.

        Args:
            base_ms: The worker's ``retry_policy.backoff_ms``.
            retry: 1 for the first retry, 2 for the second, ...
            rng: Random source; the module-level generator when omitted.

        Returns:
            A non-negative delay. Zero when ``base_ms`` is zero.
        """
        if base_ms <= 0 or retry < 1:
            return 0.0
        capped = min(base_ms * self.multiplier ** (retry - 1), self.max_backoff_ms)
        if self.jitter_ratio <= 0:
            return float(capped)
        uniform = (rng or random).uniform
        return capped * uniform(1.0 - self.jitter_ratio, 1.0)


__all__ = ["BackoffPolicy"]
