# game_reviewer/orchestration/pipeline_stages.py
"""
Defines the sequential stages of the review pipeline.

Each stage conforms to the `ProcessingStage` protocol and is executed by
passing a mutable `ReviewContext` from one stage to the next:

1. `PlyCollectionStage` replays the moves on one board and gathers one
   `PlyState` per applied ply, from the opening book, the evaluation cache or
   the engine, strictly in order.
2. `ClassificationStage` reads the collected states, never modifying them,
   and labels each ply.

Phase two needs ply `i+1` to judge ply `i`, so phase one always completes first.
"""

from typing import List, Optional, TYPE_CHECKING

import structlog

from game_reviewer.core.chess_utils import to_white_perspective
from game_reviewer.core.move_classifier import MoveClassifier, next_pre_move_win_rate
from game_reviewer.core.opening_book import is_book_position
from game_reviewer.core.win_rate import evaluation_to_win_rate
from game_reviewer.exceptions import CacheError, EvaluatorCallError, IllegalMoveError
from game_reviewer.tracing import trace_stage
from game_reviewer.types import (EVALUATED_PLY_TYPES, AppliedMove, BookPly, CacheHitPly,
                                 EngineEvalPly, MoveAnalysis, PlyError, PlyState,
                                 ProcessingStage, ReviewContext, UnevaluatedPly)
from game_reviewer.utils import metrics

if TYPE_CHECKING:
    from game_reviewer.types import EvaluationCache, FEN, RulesEngine

logger = structlog.get_logger(__name__)


# --- Helper Functions ---

async def _lookup_cache(
    cache: Optional["EvaluationCache"], fen: "FEN", mover: str, common: dict
) -> Optional[CacheHitPly]:
    """Builds a `CacheHitPly` from the evaluation cache, or returns None on a miss or failure."""
    if cache is None:
        return None
    try:
        candidates = await cache.lookup(fen)
    except CacheError as e:
        metrics.CACHE_FETCH_FAILURES_TOTAL.inc()
        logger.debug("Evaluation cache lookup failed, using the engine.", fen=fen, error=str(e))
        return None
    except Exception as e:
        # Any cache failure is a miss; the engine still answers.
        metrics.CACHE_FETCH_FAILURES_TOTAL.inc()
        logger.warning("Evaluation cache raised an unexpected error, using the engine.", fen=fen, error=str(e), exc_info=True)
        return None
    if not candidates:
        return None

    best = candidates[0]
    win_rate, score = to_white_perspective(best.winrate_percent, best.score, mover)
    if win_rate is None:
        logger.debug("Cached candidate has no usable win rate, using the engine.", fen=fen)
        return None

    second_best_win_rate = None
    if len(candidates) > 1:
        second_best_win_rate, _ = to_white_perspective(candidates[1].winrate_percent, None, mover)

    return CacheHitPly(
        **common,
        pre_move_win_rate=win_rate,
        second_best_win_rate=second_best_win_rate,
        best_move_uci=best.uci,
        best_move_san=best.san,
        eval_cp=int(round(score)) if score is not None else 0,
    )


# --- Pipeline Stage Implementations ---

class PlyCollectionStage(ProcessingStage):
    """Phase one: replays the game and collects one evaluation record per applied ply."""

    @trace_stage
    async def execute(self, context: ReviewContext) -> ReviewContext:
        collaborators = context.collaborators
        rules = collaborators.rules_engine_factory()
        total = len(context.moves)

        for ply_index, notation in enumerate(context.moves):
            pre_move_fen = rules.current_fen()
            active_player = rules.active_color()

            try:
                applied = rules.apply_move(notation)
            except IllegalMoveError as e:
                logger.warning("Illegal move, skipping ply.", ply=ply_index, notation=notation, fen=pre_move_fen)
                metrics.PLIES_PROCESSED_TOTAL.labels(source="illegal").inc()
                context.errors.append(PlyError(
                    ply_number=ply_index, notation=notation, fen=pre_move_fen, message=str(e)
                ))
                await context.progress.phase_one(ply_index + 1, total)
                continue

            state = await self._collect_ply(context, rules, ply_index, active_player, pre_move_fen, notation, applied)
            context.ply_states.append(state)
            await context.progress.phase_one(ply_index + 1, total)

        return context

    async def _collect_ply(
        self, context: ReviewContext, rules: "RulesEngine", ply_index: int,
        active_player: str, pre_move_fen: "FEN", notation: str, applied: AppliedMove
    ) -> PlyState:
        collaborators = context.collaborators
        common = dict(
            ply_index=ply_index, active_player=active_player,
            pre_move_fen=pre_move_fen, post_move_fen=applied.new_fen,
            move_notation=notation, move_uci=applied.uci, move_san=applied.san,
        )

        if is_book_position(applied.new_fen, collaborators.opening_book):
            metrics.PLIES_PROCESSED_TOTAL.labels(source="book").inc()
            return BookPly(**common)

        cache_hit = await _lookup_cache(collaborators.evaluation_cache, pre_move_fen, active_player, common)
        if cache_hit is not None:
            metrics.PLIES_PROCESSED_TOTAL.labels(source="cache").inc()
            return cache_hit

        settings = context.settings
        try:
            evaluation = await collaborators.evaluator.evaluate(pre_move_fen, settings.depth, settings.multipv)
        except EvaluatorCallError as e:
            if not settings.isolate_evaluator_failures:
                raise
            logger.warning("Evaluation failed, marking ply as unevaluated.", ply=ply_index, error=str(e))
            metrics.PLIES_PROCESSED_TOTAL.labels(source="unevaluated").inc()
            return UnevaluatedPly(**common, error=str(e))

        lines = evaluation.lines
        first_line = lines[0] if lines else None
        best_move_uci = evaluation.best_move_uci
        metrics.PLIES_PROCESSED_TOTAL.labels(source="engine").inc()
        return EngineEvalPly(
            **common,
            pre_move_win_rate=evaluation_to_win_rate(first_line),
            second_best_win_rate=evaluation_to_win_rate(lines[1]) if len(lines) > 1 else None,
            best_move_uci=best_move_uci,
            best_move_san=rules.uci_to_san(pre_move_fen, best_move_uci) if best_move_uci else None,
            eval_cp=first_line.cp if first_line is not None and first_line.cp is not None else 0,
        )


class ClassificationStage(ProcessingStage):
    """Phase two: labels every collected ply."""

    def __init__(self, classifier: MoveClassifier):
        self._classifier = classifier

    @trace_stage
    async def execute(self, context: ReviewContext) -> ReviewContext:
        states = context.ply_states
        total = len(states)

        for i, ply in enumerate(states):
            quality = self._classifier.classify_ply(ply, next_pre_move_win_rate(states, i), context.settings)
            evaluated = isinstance(ply, EVALUATED_PLY_TYPES)
            context.analyses.append(MoveAnalysis(
                ply_number=ply.ply_index,
                notation=ply.move_notation,
                quality=quality,
                fen=ply.pre_move_fen,
                player=ply.active_player,
                post_move_fen=ply.post_move_fen,
                move_uci=ply.move_uci,
                move_san=ply.move_san,
                best_move_san=ply.best_move_san if evaluated else None,
                eval_cp=ply.eval_cp if evaluated else None,
            ))
            await context.progress.phase_two(i + 1, total)

        return context


async def run_review_pipeline(context: ReviewContext, stages: List[ProcessingStage]) -> ReviewContext:
    """Executes the stages sequentially on a `ReviewContext`."""
    current_context = context
    for stage in stages:
        current_context = await stage.execute(current_context)
    return current_context
