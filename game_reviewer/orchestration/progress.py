# game_reviewer/orchestration/progress.py
"""
Derives a single 0-100 progress value across both review phases.

Collecting evaluations (phase one) is where nearly all the time goes, so it
owns the first 95 points by default; classification fills the rest.
"""

import math
from typing import Optional

import structlog

from game_reviewer.types import ProgressCallback

logger = structlog.get_logger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProgressReporter:
    """Tracks progress and forwards every increase to an optional async callback."""

    def __init__(self, callback: Optional[ProgressCallback] = None, phase_one_weight: float = 95.0):
        self._callback = callback
        self._phase_one_weight = phase_one_weight
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    async def _report(self, value: int) -> None:
        value = max(0, min(value, 100))
        # Progress never moves backwards.
        if value <= self._value:
            return
        self._value = value
        if self._callback is not None:
            await self._callback(value)

    async def phase_one(self, completed: int, total: int) -> None:
        """Reports `completed` of `total` plies collected."""
        if total <= 0:
            return
        await self._report(_round_half_up(completed / total * self._phase_one_weight))

    async def phase_two(self, completed: int, total: int) -> None:
        """Reports `completed` of `total` plies classified."""
        if total <= 0:
            return
        phase_two_weight = 100.0 - self._phase_one_weight
        await self._report(_round_half_up(self._phase_one_weight + completed / total * phase_two_weight))

    async def complete(self) -> None:
        await self._report(100)
