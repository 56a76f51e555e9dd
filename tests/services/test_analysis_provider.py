# tests/services/test_analysis_provider.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from game_reviewer.exceptions import CacheReadError, CacheWriteError
from game_reviewer.services.analysis_provider import AnalysisProvider
from game_reviewer.services.sqlite_cache_service import SqliteCacheService
from game_reviewer.types import CacheKey, EngineLine, PositionEvaluation

FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
EVALUATION = PositionEvaluation(best_move_uci="e7e5", lines=[EngineLine(cp=-30, mate=None, depth=11)])


@pytest.fixture
def evaluator():
    mock = MagicMock()
    mock.evaluate = AsyncMock(return_value=EVALUATION)
    mock.get_engine_identifier = AsyncMock(return_value="stockfish_16")
    return mock

@pytest.fixture
def store():
    mock = MagicMock(spec=SqliteCacheService)
    mock.get = AsyncMock(return_value=None)
    mock.put = AsyncMock()
    return mock


@pytest.mark.asyncio
async def test_store_hit_skips_engine(evaluator, store):
    # Arrange
    store.get.return_value = EVALUATION
    provider = AnalysisProvider(evaluator, store)

    # Act
    result = await provider.evaluate(FEN, 11, 3)

    # Assert
    assert result == EVALUATION
    evaluator.evaluate.assert_not_awaited()
    store.get.assert_awaited_once_with(CacheKey(fen=FEN, depth=11, multipv=3, engine_id="stockfish_16"))

@pytest.mark.asyncio
async def test_miss_runs_engine_and_stores(evaluator, store):
    provider = AnalysisProvider(evaluator, store)

    result = await provider.evaluate(FEN, 11, 3)

    assert result == EVALUATION
    evaluator.evaluate.assert_awaited_once_with(FEN, 11, 3)
    store.put.assert_awaited_once_with(
        CacheKey(fen=FEN, depth=11, multipv=3, engine_id="stockfish_16"), EVALUATION
    )

@pytest.mark.asyncio
async def test_empty_evaluations_are_not_stored(evaluator, store):
    evaluator.evaluate.return_value = PositionEvaluation(best_move_uci=None, lines=[])
    provider = AnalysisProvider(evaluator, store)

    await provider.evaluate(FEN, 11, 3)

    store.put.assert_not_awaited()

@pytest.mark.asyncio
async def test_store_failures_never_fail_an_evaluation(evaluator, store):
    store.get.side_effect = CacheReadError("disk gone")
    store.put.side_effect = CacheWriteError("disk gone")
    provider = AnalysisProvider(evaluator, store)

    assert await provider.evaluate(FEN, 11, 3) == EVALUATION
    evaluator.evaluate.assert_awaited_once()

@pytest.mark.asyncio
async def test_engine_identifier_is_resolved_once(evaluator, store):
    provider = AnalysisProvider(evaluator, store)

    await provider.evaluate(FEN, 11, 3)
    await provider.evaluate(FEN, 12, 3)

    evaluator.get_engine_identifier.assert_awaited_once()

@pytest.mark.asyncio
async def test_evaluator_without_identifier_uses_class_name(store):
    class FixedEvaluator:
        async def evaluate(self, fen, depth, multipv):
            return EVALUATION

    provider = AnalysisProvider(FixedEvaluator(), store)
    await provider.evaluate(FEN, 11, 3)

    key = store.put.await_args.args[0]
    assert key.engine_id == "FixedEvaluator"
