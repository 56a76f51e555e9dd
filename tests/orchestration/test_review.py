# tests/orchestration/test_review.py
from typing import Dict, List

import chess
import pytest
from unittest.mock import AsyncMock, MagicMock

from game_reviewer.config.settings import ReviewSettings
from game_reviewer.core.opening_book import PartitionedOpeningBook
from game_reviewer.core.rules_engine import ChessRulesEngine
from game_reviewer.exceptions import EvaluatorUnavailableError
from game_reviewer.orchestration.review import review_moves
from game_reviewer.types import (CandidateMove, EngineLine, MoveQuality, PositionEvaluation,
                                 ReviewCollaborators)

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
AFTER_A3 = "rnbqkbnr/pppppppp/8/8/8/P7/1PPPPPPP/RNBQKBNR b KQkq - 0 1"


class ScriptedCache:
    """An evaluation cache answering from a fixed FEN table."""

    def __init__(self, table: Dict[str, List[CandidateMove]]):
        self._table = table

    async def lookup(self, fen):
        return self._table.get(fen, [])


def _candidate(uci, winrate):
    return CandidateMove(uci=uci, san=uci, score=0, winrate_percent=winrate)

def _collaborators(book=None, cache=None, evaluator=...):
    if evaluator is ...:
        evaluator = MagicMock()
        evaluator.evaluate = AsyncMock(
            return_value=PositionEvaluation(best_move_uci=None, lines=[EngineLine(cp=0, mate=None, depth=11)])
        )
    return ReviewCollaborators(
        rules_engine_factory=ChessRulesEngine,
        evaluator=evaluator,
        opening_book=book or PartitionedOpeningBook(),
        evaluation_cache=cache,
    )


@pytest.mark.asyncio
async def test_book_move_is_reported_as_book():
    collaborators = _collaborators(book=PartitionedOpeningBook([[AFTER_E4]]))

    result = await review_moves(["e4"], ReviewSettings(), collaborators)

    (analysis,) = result.analyses
    assert analysis.quality == MoveQuality.BOOK
    assert analysis.player == "w"

@pytest.mark.asyncio
async def test_large_win_rate_loss_is_a_blunder():
    # Arrange: White drops from 55 to 20; Black's own view of the next position is 80.
    cache = ScriptedCache({
        chess.STARTING_FEN: [_candidate("e2e4", 55.0)],
        AFTER_A3: [_candidate("e7e5", 80.0)],
    })

    # Act
    result = await review_moves(["a3", "e5"], ReviewSettings(), _collaborators(cache=cache))

    # Assert
    assert result.analyses[0].quality == MoveQuality.BLUNDER

@pytest.mark.asyncio
async def test_reversed_outcome_is_brilliant():
    cache = ScriptedCache({
        chess.STARTING_FEN: [_candidate("d2d4", 45.0), _candidate("c2c4", 55.0)],
        AFTER_E4: [_candidate("e7e5", 20.0)],
    })

    result = await review_moves(["e4", "e5"], ReviewSettings(), _collaborators(cache=cache))

    first = result.analyses[0]
    assert first.quality == MoveQuality.BRILLIANT
    assert first.quality.display_label() == "Very Good"

@pytest.mark.asyncio
async def test_engine_best_move_is_best_even_when_win_rate_drops():
    cache = ScriptedCache({
        chess.STARTING_FEN: [_candidate("e2e4", 60.0)],
        AFTER_E4: [_candidate("e7e5", 60.0)],
    })

    result = await review_moves(["e4", "e5"], ReviewSettings(), _collaborators(cache=cache))

    assert result.analyses[0].quality == MoveQuality.BEST
    assert result.analyses[0].best_move_san == "e2e4"

@pytest.mark.asyncio
async def test_legal_game_yields_contiguous_ply_numbers_and_full_progress():
    # Arrange
    progress_callback = AsyncMock()
    moves = ["e4", "e5", "Nf3", "Nc6", "Bb5"]

    # Act
    result = await review_moves(moves, ReviewSettings(), _collaborators(), progress_callback)

    # Assert
    assert [a.ply_number for a in result.analyses] == [0, 1, 2, 3, 4]
    assert [a.move_san for a in result.analyses] == moves
    assert result.errors == []
    assert progress_callback.await_args_list[-1].args == (100,)
    reported = [c.args[0] for c in progress_callback.await_args_list]
    assert reported == sorted(reported)

@pytest.mark.asyncio
async def test_illegal_moves_are_returned_as_errors():
    result = await review_moves(["e4", "Qxf7", "e5"], ReviewSettings(), _collaborators())

    assert [a.ply_number for a in result.analyses] == [0, 2]
    assert [e.ply_number for e in result.errors] == [1]

@pytest.mark.asyncio
async def test_missing_evaluator_processes_nothing():
    progress_callback = AsyncMock()

    with pytest.raises(EvaluatorUnavailableError):
        await review_moves(["e4"], ReviewSettings(), _collaborators(evaluator=None), progress_callback)

    progress_callback.assert_not_awaited()

@pytest.mark.asyncio
async def test_empty_game():
    result = await review_moves([], ReviewSettings(), _collaborators())
    assert result.analyses == []
    assert result.completed
