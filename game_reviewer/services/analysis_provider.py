# game_reviewer/services/analysis_provider.py
"""
Provides a cache-aside `PositionEvaluator`.

The `AnalysisProvider` wraps the real evaluator:
1. It first checks the local store for a stored evaluation.
2. On a miss, it calls the evaluator.
3. It then stores the new result for future reviews.

Because it satisfies the `PositionEvaluator` protocol itself, the pipeline
does not know whether an evaluation came from disk or from a fresh search.
Store failures never fail an evaluation.
"""

from typing import TYPE_CHECKING

import aiosqlite
import structlog

from game_reviewer.exceptions import CacheError
from game_reviewer.types import CacheKey, FEN, PositionEvaluation, PositionEvaluator
from game_reviewer.utils import metrics

if TYPE_CHECKING:
    from game_reviewer.services.sqlite_cache_service import SqliteCacheService

logger = structlog.get_logger(__name__)

_STORE_ERRORS = (CacheError, aiosqlite.Error)


class AnalysisProvider(PositionEvaluator):
    """A position evaluator with a persistent cache-aside layer in front of the engine."""

    def __init__(self, evaluator: PositionEvaluator, store: "SqliteCacheService"):
        """
        Args:
            evaluator: The underlying engine.
            store: An opened `SqliteCacheService`.
        """
        self._evaluator = evaluator
        self._store = store
        self._engine_id: str = ""

    async def _get_engine_id(self) -> str:
        if not self._engine_id:
            get_identifier = getattr(self._evaluator, "get_engine_identifier", None)
            self._engine_id = await get_identifier() if get_identifier else type(self._evaluator).__name__
        return self._engine_id

    async def evaluate(self, fen: FEN, depth: int, multipv: int) -> PositionEvaluation:
        key = CacheKey(fen=fen, depth=depth, multipv=multipv, engine_id=await self._get_engine_id())

        try:
            stored = await self._store.get(key)
        except _STORE_ERRORS as e:
            logger.warning("Evaluation store read failed, treating as a miss.", fen=fen, error=str(e))
            stored = None

        if stored is not None:
            metrics.STORED_EVALUATIONS_TOTAL.labels(source="store_hit").inc()
            return stored

        metrics.STORED_EVALUATIONS_TOTAL.labels(source="engine_run").inc()
        evaluation = await self._evaluator.evaluate(fen, depth, multipv)

        if evaluation.lines:
            try:
                await self._store.put(key, evaluation)
            except _STORE_ERRORS as e:
                logger.warning("Could not store evaluation.", fen=fen, error=str(e))
        return evaluation
