# game_reviewer/tracing.py

"""
tracing
~~~~~~~

This module provides components for run-level traceability and
context-aware logging.
"""

import functools
from dataclasses import asdict, dataclass
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

@dataclass(frozen=True, slots=True)
class ReviewCorrelationID:
    """A unique identifier for a single review run."""
    review_id: str
    generation: int

    @property
    def short_id(self) -> str:
        """A short, human-readable version of the full ID."""
        return f"{self.review_id}:{self.generation}"

    def as_dict(self) -> dict:
        """Returns the ID as a dictionary suitable for logging."""
        return asdict(self)


def trace_stage(func: Callable) -> Callable:
    """A decorator to add structured tracing to a processing stage."""
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        stage_name = args[0].__class__.__name__
        logger.debug("Entering processing stage.", stage=stage_name)
        result = await func(*args, **kwargs)
        logger.debug("Exiting processing stage.", stage=stage_name)
        return result
    return wrapper
