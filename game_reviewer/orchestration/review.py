# game_reviewer/orchestration/review.py
"""
The pure entry point of the review pipeline.

`review_moves` owns no state: it takes the moves, the settings and the
collaborators, reports progress through a callback, and returns a fresh
`ReviewResult`. Holding on to results between runs is the caller's job
(see `GameReviewer`).
"""

from typing import Iterable, List, Optional, TYPE_CHECKING

import structlog

from game_reviewer.exceptions import EvaluatorUnavailableError
from game_reviewer.orchestration.pipeline_factory import create_pipeline
from game_reviewer.orchestration.pipeline_stages import run_review_pipeline
from game_reviewer.orchestration.progress import ProgressReporter
from game_reviewer.types import ReviewContext, ReviewResult

if TYPE_CHECKING:
    from game_reviewer.config.settings import ReviewSettings
    from game_reviewer.types import ProcessingStage, ProgressCallback, ReviewCollaborators

logger = structlog.get_logger(__name__)


async def review_moves(
    moves: Iterable[str],
    settings: "ReviewSettings",
    collaborators: "ReviewCollaborators",
    progress_callback: Optional["ProgressCallback"] = None,
    stages: Optional[List["ProcessingStage"]] = None,
) -> ReviewResult:
    """
    Reviews a game given as an ordered list of moves.

    Args:
        moves: Moves in SAN or UCI, starting from the rules engine's initial position.
        settings: Search depth, MultiPV and classification thresholds.
        collaborators: Rules engine factory, evaluator, opening book and optional cache.
        progress_callback: Awaited with every increase of the 0-100 progress value.
        stages: Overrides the default two-phase pipeline.

    Returns:
        One `MoveAnalysis` per applied ply, in order, and one `PlyError` per
        move that could not be applied.

    Raises:
        EvaluatorUnavailableError: If no evaluator was supplied. Nothing is
            processed in that case.
        EvaluatorCallError: If an evaluation fails and
            `settings.isolate_evaluator_failures` is off.
    """
    if collaborators.evaluator is None:
        raise EvaluatorUnavailableError("No position evaluator is available.")

    progress = ProgressReporter(progress_callback, settings.phase_one_weight)
    context = ReviewContext(
        moves=list(moves), settings=settings, collaborators=collaborators, progress=progress
    )
    logger.info("Starting game review.", plies=len(context.moves), depth=settings.depth)

    context = await run_review_pipeline(context, stages or create_pipeline())
    await progress.complete()

    logger.info(
        "Game review complete.",
        analysed=len(context.analyses),
        illegal=len(context.errors),
    )
    return ReviewResult(analyses=context.analyses, errors=context.errors)
